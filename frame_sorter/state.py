import logging
import os
import time
from collections import namedtuple

from .config import AppConfig

logger = logging.getLogger(__name__)

Notice = namedtuple('Notice', ['message', 'level', 'expires_at'])

_LOG_LEVELS = {
    'info': logging.INFO,
    'success': logging.INFO,
    'warning': logging.WARNING,
    'error': logging.ERROR,
}


class AppState:
    """
    应用程序的显式状态容器。

    只保存"源头"字段；界面上需要的派生值（队列目录、是否可以抽帧、
    过滤后的视频列表等）由本模块的纯函数按需计算。

    Attributes
    ----------
    video_folder : str or None
        视频源文件夹。
    output_folder : str or None
        输出/标签根目录，队列目录与各标签文件夹都在其下。
    hide_processed_videos : bool
        是否在视频列表中隐藏已处理的视频。
    framerate : float
        抽帧频率 (帧/秒)。
    training_split : float
        训练集比例。
    notices : list of Notice
        提示消息历史（相当于界面上的 snackbar）。
    """

    def __init__(self, video_folder=None, output_folder=None,
                 hide_processed_videos=AppConfig.HIDE_PROCESSED_VIDEOS,
                 framerate=AppConfig.DEFAULT_FRAMERATE,
                 training_split=AppConfig.DEFAULT_TRAINING_SPLIT):
        self.video_folder = video_folder
        self.output_folder = output_folder
        self.hide_processed_videos = hide_processed_videos
        self.framerate = framerate
        self.training_split = training_split
        self.is_preprocessing = False
        self.notices = []

    def notify(self, message, level='info', duration=AppConfig.MESSAGE_DURATION):
        """记录一条提示消息，并同步写入日志。"""
        expires_at = time.time() + duration if duration > 0 else -1
        self.notices.append(Notice(message, level, expires_at))
        logger.log(_LOG_LEVELS.get(level, logging.INFO), message)

    def current_notice(self, now=None):
        """返回仍在显示期内的最新提示，没有则返回 None。"""
        if not self.notices:
            return None
        last = self.notices[-1]
        now = time.time() if now is None else now
        if last.expires_at == -1 or now <= last.expires_at:
            return last
        return None


def image_queue_folder(state):
    if not state.output_folder:
        return None
    return os.path.join(state.output_folder, AppConfig.QUEUE_DIR_NAME)


def dataset_path(state):
    if not state.output_folder:
        return None
    return os.path.join(state.output_folder, AppConfig.DATASET_FILE_NAME)


def processed_list_path(state):
    if not state.output_folder:
        return None
    return os.path.join(state.output_folder, AppConfig.PROCESSED_FILE_NAME)


def label_folder(state, label):
    return os.path.join(state.output_folder, label)


def can_preprocess(state, catalog):
    return bool(state.video_folder and state.output_folder and catalog.video_files)


def filtered_video_files(state, catalog):
    return catalog.visible_videos(state.hide_processed_videos)
