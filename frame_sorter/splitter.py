import logging
import math
import os
import random
from collections import namedtuple

from .config import AppConfig

logger = logging.getLogger(__name__)

SplitResult = namedtuple('SplitResult', ['label', 'train', 'val'])


def shuffle_in_place(items, rng):
    """Fisher-Yates 原地洗牌。"""
    for index in range(len(items) - 1, 0, -1):
        random_index = rng.randint(0, index)
        items[index], items[random_index] = items[random_index], items[index]
    return items


class DatasetSplitter:
    """
    按比例把每个标签文件夹随机划分为 train / val，并**复制**到
    ``<output>/train/<label>`` 与 ``<output>/val/<label>``。

    源标签文件夹保持不变；重复运行会重新洗牌并再次复制，不会清空目标目录。
    """

    def __init__(self, fs, state=None, rng=None):
        self.fs = fs
        self.state = state
        self.rng = rng or random.Random()
        # 上一次 split 中出错的标签
        self.failed = []

    def split(self, output_root, labels, ratio):
        """
        Parameters
        ----------
        output_root : str
            输出根目录。
        labels : list of str
            标签名；不存在的标签文件夹直接跳过。
        ratio : float
            训练集比例 [0, 1]。

        Returns
        -------
        list of SplitResult
        """
        if not 0 <= ratio <= 1:
            raise ValueError(f"ratio must be within [0, 1], got {ratio}")

        results = []
        self.failed = []
        for label in labels:
            label_dir = os.path.join(output_root, label)
            if not self.fs.get_stats(label_dir).is_directory:
                continue
            try:
                results.append(self._split_label(output_root, label, label_dir, ratio))
            except OSError as e:
                self.failed.append(label)
                self._report(f'Error creating training dataset for {label}: {e}')
        return results

    def _split_label(self, output_root, label, label_dir, ratio):
        # 先排序，保证同一随机种子得到相同划分
        files = shuffle_in_place(sorted(self.fs.list_files(label_dir)), self.rng)
        train_count = math.floor(len(files) * ratio)

        train_dir = os.path.join(output_root, AppConfig.TRAIN_DIR_NAME, label)
        val_dir = os.path.join(output_root, AppConfig.VAL_DIR_NAME, label)
        self.fs.create_directory(train_dir)
        self.fs.create_directory(val_dir)

        for i, name in enumerate(files):
            target = train_dir if i < train_count else val_dir
            self.fs.copy(os.path.join(label_dir, name), os.path.join(target, name))

        logger.info(f"[DatasetSplitter] {label}: train {train_count} / val {len(files) - train_count}")
        return SplitResult(label, train_count, len(files) - train_count)

    def _report(self, message):
        if self.state is not None:
            self.state.notify(message, 'error')
        else:
            logger.error(message)
