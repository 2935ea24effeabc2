import logging
import os
from collections import namedtuple

from . import state as app_state

logger = logging.getLogger(__name__)

MoveRecord = namedtuple('MoveRecord', ['source', 'destination'])

SINGLE = 'single'
TOGGLE = 'toggle'
RANGE = 'range'

LEFT = 'left'
RIGHT = 'right'
UP = 'up'
DOWN = 'down'


class Selection:
    """
    画廊中的选中集合与锚点。

    Attributes
    ----------
    items : list of str
        已选中的图片名（按选中顺序）。
    anchor : int or None
        最近一次交互的位置，范围选择以它为起点。
    """

    def __init__(self):
        self.items = []
        self.anchor = None

    def __len__(self):
        return len(self.items)

    def __contains__(self, name):
        return name in self.items

    def reset(self, images):
        """目录重新加载后：选中第一张图（若有）。"""
        if images:
            self.items = [images[0]]
            self.anchor = 0
        else:
            self.items = []
            self.anchor = None

    def clear(self):
        self.items = []

    def select(self, images, index, mode=SINGLE):
        if not 0 <= index < len(images):
            return False
        image = images[index]

        if mode == RANGE and self.anchor is not None:
            start, end = sorted((self.anchor, index))
            for i in range(start, min(end, len(images) - 1) + 1):
                if images[i] not in self.items:
                    self.items.append(images[i])
        elif mode in (TOGGLE, RANGE):
            if image in self.items:
                self.items.remove(image)
            else:
                self.items.append(image)
        else:
            self.items = [image]

        self.anchor = index
        return True


class LabelingWorkflow:
    """
    标注流程：维护选中集合，把选中的图片移动到标签文件夹，并支持撤回最后一批。

    Parameters
    ----------
    fs : FileSystem
    state : AppState
    catalog : MediaCatalog
    labels : LabelStore
    """

    def __init__(self, fs, state, catalog, labels):
        self.fs = fs
        self.state = state
        self.catalog = catalog
        self.labels = labels
        self.selection = Selection()
        self.history_stack = []

    # --- 选择 ---

    def init_selection(self):
        self.selection.reset(self.catalog.image_files)

    def select(self, index, mode=SINGLE):
        return self.selection.select(self.catalog.image_files, index, mode)

    @property
    def selected_images(self):
        return list(self.selection.items)

    def move_cursor(self, direction, columns=1, extend=False):
        """方向键导航：移动锚点后按单选(或范围选)选中新位置。"""
        images = self.catalog.image_files
        if not images:
            return None

        index = self.selection.anchor or 0
        step = {LEFT: -1, RIGHT: 1, UP: -max(1, columns), DOWN: max(1, columns)}[direction]
        index = max(0, min(index + step, len(images) - 1))

        self.select(index, RANGE if extend else SINGLE)
        return index

    # --- 标注 ---

    def assign_label(self, ordinal):
        """
        把选中的图片全部移动到序号为 ordinal 的标签文件夹。

        单个文件失败只提示警告，不影响其余文件（尽力而为，非事务）。

        Returns
        -------
        int
            成功移动的文件数。
        """
        queue_folder = app_state.image_queue_folder(self.state)
        if not queue_folder or not self.selection.items:
            self.state.notify('Select output folder and images', 'warning')
            return 0

        if not self.labels.ordinal_valid(ordinal):
            self.state.notify('Invalid label index', 'warning')
            return 0

        label = self.labels[ordinal]
        label_dir = app_state.label_folder(self.state, label)

        try:
            self.fs.create_directory(label_dir)
        except OSError as e:
            self.state.notify(f'Error creating folder {label}: {e}', 'warning')

        moved_count = 0
        self.history_stack = []
        for image in list(self.selection.items):
            source = os.path.join(queue_folder, image)
            destination = os.path.join(label_dir, image)
            try:
                self.fs.move(source, destination)
            except OSError as e:
                self.state.notify(f'Error moving {image}: {e}', 'warning')
                continue

            self.history_stack.append(MoveRecord(source, destination))
            self.catalog.remove_image(image)
            moved_count += 1

        self.selection.clear()
        self.catalog.bump_statistic(label, moved_count)
        self.state.notify(f'Moved {moved_count} image(s) to {label}', 'success')
        return moved_count

    def undo_last_batch(self):
        """
        撤回最后一批移动：从最近的记录开始逐个移回。
        某个文件移回失败只提示，继续处理剩余记录；结束后从磁盘重建目录与统计。

        Returns
        -------
        int
            成功移回的文件数。
        """
        if not self.state.output_folder:
            self.state.notify('Select output folder first', 'warning')
            return 0
        if not self.history_stack:
            self.state.notify('No moves to undo', 'info')
            return 0

        restored = 0
        while self.history_stack:
            record = self.history_stack.pop()
            try:
                self.fs.move(record.destination, record.source)
                restored += 1
            except OSError as e:
                name = os.path.basename(record.destination)
                self.state.notify(f'Error undoing move of {name}: {e}', 'warning')

        self.reload()
        self.state.notify(f'Restored {restored} image(s)', 'success')
        return restored

    def reload(self):
        """从磁盘重新读取队列与统计，并重置选中。"""
        self.catalog.load_image_files(app_state.image_queue_folder(self.state))
        self.catalog.update_label_statistics(self.state.output_folder, self.labels.labels)
        self.init_selection()
