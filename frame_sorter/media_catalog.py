import logging
import os

from .config import AppConfig
from .filesystem import FILE

logger = logging.getLogger(__name__)


def file_extension(name):
    """取最后一个点之后的部分(小写，含点)；没有点则返回空串。"""
    if '.' not in name:
        return ''
    return '.' + name.rsplit('.', 1)[-1].lower()


def filter_media(entries, extensions):
    """
    按扩展名白名单过滤目录项。

    只保留普通文件，排除以点开头的隐藏文件，结果按字典序排序。
    """
    names = [
        e.entry for e in entries
        if e.type == FILE
        and not e.entry.startswith('.')
        and file_extension(e.entry) in extensions
    ]
    return sorted(names)


class MediaCatalog:
    """
    视频源目录与图片队列目录的清单。

    每次文件夹变化都整体重建，不做增量比对。

    Attributes
    ----------
    video_files : list of str
        视频源目录中的视频文件名。
    image_files : list of str
        队列目录中待标注的图片文件名。
    processed_video_files : set of str
        已抽帧的视频文件名（持久化在 processed_videos.txt）。
    label_statistics : dict
        {标签名: 标签文件夹中的文件数}。
    """

    def __init__(self, fs, state):
        self.fs = fs
        self.state = state
        self.video_files = []
        self.image_files = []
        self.processed_video_files = set()
        self.label_statistics = {}

    # --- 视频 ---

    def scan_videos(self, source_folder):
        try:
            entries = self.fs.read_directory(source_folder)
        except OSError as e:
            self.state.notify(f'Error loading videos: {e}', 'warning')
            return []
        return filter_media(entries, AppConfig.VIDEO_EXTENSIONS)

    def load_video_files(self, source_folder):
        if not source_folder:
            self.video_files = []
            return self.video_files
        self.video_files = self.scan_videos(source_folder)
        logger.info(f"[MediaCatalog] 视频: {len(self.video_files)} 个 ({source_folder})")
        return self.video_files

    def is_processed(self, video):
        return video in self.processed_video_files

    def visible_videos(self, hide_processed=True):
        if hide_processed:
            return [v for v in self.video_files if v not in self.processed_video_files]
        return list(self.video_files)

    def load_processed_list(self, path):
        """读取已处理视频列表（每行一个文件名），文件不存在视为空。"""
        self.processed_video_files = set()
        try:
            content = self.fs.read_file(path)
        except FileNotFoundError:
            return self.processed_video_files
        except (OSError, UnicodeDecodeError) as e:
            self.state.notify(f'Error loading processed video list: {e}', 'warning')
            return self.processed_video_files

        for line in content.split('\n'):
            line = line.strip()
            if line:
                self.processed_video_files.add(line)
        return self.processed_video_files

    def save_processed_list(self, path):
        try:
            self.fs.write_file(path, '\n'.join(self.processed_video_files))
        except OSError as e:
            self.state.notify(f'Error saving processed video list: {e}', 'error')
            return False
        return True

    def mark_processed(self, videos):
        for video in videos:
            self.processed_video_files.add(video)

    # --- 图片队列 ---

    def scan_image_queue(self, queue_folder):
        # 队列目录尚未创建属于正常状态
        if not queue_folder or not self.fs.exists(queue_folder):
            return []
        try:
            entries = self.fs.read_directory(queue_folder)
        except OSError as e:
            self.state.notify(f'Error loading images: {e}', 'warning')
            return []
        return filter_media(entries, AppConfig.IMAGE_EXTENSIONS)

    def load_image_files(self, queue_folder):
        self.image_files = self.scan_image_queue(queue_folder)
        return self.image_files

    def remove_image(self, image):
        if image in self.image_files:
            self.image_files.remove(image)

    # --- 统计 ---

    def count_label_files(self, folder):
        stats = self.fs.get_stats(folder)
        if not stats.is_directory:
            return 0
        return len(self.fs.list_files(folder))

    def update_label_statistics(self, output_root, labels):
        """从磁盘重新统计每个标签文件夹中的文件数。"""
        self.label_statistics = {}
        if not output_root:
            return self.label_statistics
        for label in labels:
            try:
                self.label_statistics[label] = self.count_label_files(os.path.join(output_root, label))
            except OSError as e:
                logger.warning(f"[MediaCatalog] 统计 {label} 失败: {e}")
                self.label_statistics[label] = 0
        return self.label_statistics

    def bump_statistic(self, label, count):
        self.label_statistics[label] = self.label_statistics.get(label, 0) + count
