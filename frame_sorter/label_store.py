import logging
import re

from .config import AppConfig

logger = logging.getLogger(__name__)

NAMES_KEY = 'names'
_ENTRY_RE = re.compile(r'^\s+(\d+):\s*(.*)$')


class LabelFileError(ValueError):
    """dataset.yaml 内容不符合约定格式。"""

    def __init__(self, message, line_no=None):
        if line_no is not None:
            message = f"line {line_no}: {message}"
        super().__init__(message)
        self.line_no = line_no


def parse_dataset_yaml(content, warnings=None):
    """
    解析 dataset.yaml 中的 names 段。

    语法::

        names:
          0: cat
          1: dog

    其余顶层 ``key: value`` 行（path/train/val 等）会被跳过；
    names 段在第一个非缩进行处结束。段内出现无法解析的缩进行时同样结束，
    已解析的标签保留，并把带行号的说明追加到 ``warnings``。

    Parameters
    ----------
    content : str
    warnings : list, optional
        收集非致命问题的列表。

    Returns
    -------
    list of str
        按文件顺序排列的标签名。

    Raises
    ------
    LabelFileError
        缺少 names 键、names 写成行内形式、或标签缺少名称。
    """
    labels = []
    in_names = False
    found = False

    for line_no, raw in enumerate(content.splitlines(), start=1):
        line = raw.rstrip()
        if not line.strip() or line.lstrip().startswith('#'):
            continue

        indented = line[0] in ' \t'

        if in_names:
            if indented:
                match = _ENTRY_RE.match(line)
                if not match:
                    message = f"line {line_no}: names 段在无法解析的行处结束: {line.strip()!r}"
                    logger.warning(f"[LabelStore] {message}")
                    if warnings is not None:
                        warnings.append(message)
                    break
                name = match.group(2).strip()
                if not name:
                    raise LabelFileError(f"标签 {match.group(1)} 缺少名称", line_no)
                labels.append(name)
                continue
            # 非缩进行: names 段结束
            break

        if not indented and line.split(':', 1)[0].strip() == NAMES_KEY:
            rest = line.split(':', 1)[1].strip() if ':' in line else None
            if rest is None:
                raise LabelFileError("names 后缺少冒号", line_no)
            if rest:
                raise LabelFileError(f"不支持行内 names 写法: {rest!r}", line_no)
            in_names = True
            found = True

    if not found:
        raise LabelFileError("缺少 names: 键")
    return labels


def dump_dataset_yaml(labels):
    content = f'{NAMES_KEY}:\n'
    for index, label in enumerate(labels):
        content += f'  {index}: {label}\n'
    return content


class LabelStore:
    """
    有序标签列表，与 dataset.yaml 同步。

    标签的身份就是它在列表中的位置(序号)：删除中间的标签会让后面的标签
    全部前移一位，快捷键数字与统计键随之改变。

    Parameters
    ----------
    fs : FileSystem
        文件系统网关。
    state : AppState
        用于发出提示消息。
    """

    def __init__(self, fs, state):
        self.fs = fs
        self.state = state
        self.labels = []
        self.path = None
        self._editor_open = False

    def __len__(self):
        return len(self.labels)

    def __getitem__(self, ordinal):
        return self.labels[ordinal]

    def load(self, path):
        """读取标签文件；缺失或格式错误时返回空列表并给出警告。"""
        self.path = path
        self.labels = []
        try:
            content = self.fs.read_file(path)
        except FileNotFoundError:
            self.state.notify('No dataset.yaml found in folder', 'warning')
            return self.labels
        except (OSError, UnicodeDecodeError) as e:
            self.state.notify(f'Error loading dataset: {e}', 'warning')
            return self.labels

        warnings = []
        try:
            self.labels = parse_dataset_yaml(content, warnings)
        except LabelFileError as e:
            self.state.notify(f'Error parsing dataset.yaml: {e}', 'warning')
            return self.labels
        for message in warnings:
            self.state.notify(f'dataset.yaml {message}', 'warning')

        logger.info(f"[LabelStore] 已加载 {len(self.labels)} 个标签: {path}")
        return self.labels

    def save(self, path=None, labels=None):
        """整体覆盖写入标签文件。"""
        path = path or self.path
        labels = self.labels if labels is None else labels
        self.fs.write_file(path, dump_dataset_yaml(labels))
        logger.info(f"[LabelStore] 已保存 {len(labels)} 个标签: {path}")

    def add(self, name=AppConfig.DEFAULT_NEW_LABEL):
        self.labels.append(name)
        return len(self.labels) - 1

    def remove(self, ordinal):
        return self.labels.pop(ordinal)

    def rename(self, ordinal, name):
        self.labels[ordinal] = name

    def ordinal_valid(self, ordinal):
        return 0 <= ordinal < len(self.labels)

    # --- 标签编辑器会话 ---

    @property
    def editor_open(self):
        return self._editor_open

    def open_editor(self):
        self._editor_open = True

    def close_editor(self):
        """
        关闭编辑器。只有 打开 -> 关闭 的转换会把整个编辑会话写盘一次。
        """
        if not self._editor_open:
            return False
        self._editor_open = False

        if not self.path:
            return False
        try:
            self.save()
        except OSError as e:
            self.state.notify(f'Error writing dataset.yaml: {e}', 'error')
            return False
        return True
