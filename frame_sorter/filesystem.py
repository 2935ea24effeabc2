import os
import shutil
from collections import namedtuple
from pathlib import Path

FILE = 'FILE'
DIRECTORY = 'DIRECTORY'

DirEntry = namedtuple('DirEntry', ['entry', 'type'])
PathStats = namedtuple('PathStats', ['exists', 'is_directory', 'size'])


class FileSystem:
    """
    文件系统网关。
    所有读写/移动/复制操作都经过这里，失败时直接抛出 OSError 系列异常，
    由调用方在单个条目的边界上捕获。
    """

    encoding = 'utf-8'
    # 读取时容忍 Windows 编辑器写入的 BOM；写入不带 BOM
    read_encoding = 'utf-8-sig'

    def read_directory(self, folder):
        """
        列出目录内容。

        Returns
        -------
        list of DirEntry
            (名称, 'FILE' | 'DIRECTORY')，其他类型(符号链接失效等)不返回。
        """
        entries = []
        with os.scandir(folder) as it:
            for item in it:
                if item.is_file():
                    entries.append(DirEntry(item.name, FILE))
                elif item.is_dir():
                    entries.append(DirEntry(item.name, DIRECTORY))
        return entries

    def list_files(self, folder):
        """只返回普通文件名。"""
        return [e.entry for e in self.read_directory(folder) if e.type == FILE]

    def read_file(self, path):
        with open(path, 'r', encoding=self.read_encoding) as f:
            return f.read()

    def write_file(self, path, content):
        # 整体覆盖写入
        with open(path, 'w', encoding=self.encoding, newline='') as f:
            f.write(content)

    def create_directory(self, folder):
        """创建目录（已存在时不报错）。"""
        Path(folder).mkdir(parents=True, exist_ok=True)

    def get_stats(self, path):
        p = Path(path)
        try:
            st = p.stat()
        except FileNotFoundError:
            return PathStats(False, False, 0)
        return PathStats(True, p.is_dir(), st.st_size)

    def exists(self, path):
        return self.get_stats(path).exists

    def is_directory(self, path):
        return self.get_stats(path).is_directory

    def move(self, source, destination):
        """
        移动文件。目标已存在时抛出 FileExistsError，不覆盖。
        """
        if not os.path.lexists(source):
            raise FileNotFoundError(f"源文件不存在: {source}")
        if os.path.lexists(destination):
            raise FileExistsError(f"目标已存在: {destination}")
        shutil.move(str(source), str(destination))

    def copy(self, source, destination):
        """复制文件（保留元数据），目标存在时覆盖。"""
        shutil.copy2(str(source), str(destination))
