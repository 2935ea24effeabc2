import argparse
import logging
import os

import cv2

from . import state as app_state
from .config import AppConfig
from .filesystem import FileSystem
from .label_store import LabelStore
from .labeling import LabelingWorkflow, TOGGLE, LEFT, RIGHT, UP, DOWN
from .media_catalog import MediaCatalog
from .renderer import GalleryRenderer
from .settings import Settings
from .splitter import DatasetSplitter
from .state import AppState
from .transcoder import FrameExtractor, TranscoderError, frame_output_pattern
from .video_controller import VideoController

logger = logging.getLogger(__name__)


class LabelingApp:
    """
    主应用程序控制器。

    把视频目录、图片队列、标签文件和数据集划分串成一个完整流程：
    选择文件夹 -> 抽帧 -> 在画廊中选图并按数字键归类 -> 划分 train/val。

    Parameters
    ----------
    video_folder : str, optional
        视频源文件夹。
    output_folder : str, optional
        输出根目录。结构为: output / queue / 帧.jpg, output / 标签名 / 帧.jpg
    settings : Settings, optional
        持久化设置；为 None 时不记住文件夹选择。
    fs : FileSystem, optional
    extractor : FrameExtractor, optional
    framerate : float, optional
        抽帧频率 (帧/秒)。
    training_split : float, optional
        训练集比例。
    rng : random.Random, optional
        数据集划分使用的随机源。
    """

    def __init__(self, video_folder=None, output_folder=None, settings=None, fs=None,
                 extractor=None, framerate=AppConfig.DEFAULT_FRAMERATE,
                 training_split=AppConfig.DEFAULT_TRAINING_SPLIT, rng=None):
        # 1. Init Modules
        self.fs = fs or FileSystem()
        self.state = AppState(framerate=framerate, training_split=training_split)
        self.catalog = MediaCatalog(self.fs, self.state)
        self.labels = LabelStore(self.fs, self.state)
        self.workflow = LabelingWorkflow(self.fs, self.state, self.catalog, self.labels)
        self.splitter = DatasetSplitter(self.fs, self.state, rng)
        self.extractor = extractor or FrameExtractor()
        self.settings = settings

        # 2. State
        self.selected_video_files = []
        self.window_name = 'Frame Sorter'
        self.renderer = None
        self.running = False

        if video_folder:
            self.select_video_folder(video_folder)
        if output_folder:
            self.select_output_folder(output_folder)

    # --- 文件夹选择 ---

    def load_settings(self):
        """启动时恢复上次使用的文件夹。"""
        if self.settings is None:
            return
        self.settings.load()
        video_folder = self.settings.get('video_folder')
        output_folder = self.settings.get('output_folder')
        if video_folder:
            self.state.video_folder = video_folder
            self.load_video_files()
        if output_folder:
            self.state.output_folder = output_folder
            self.load_output_folder()

    def select_video_folder(self, folder):
        self.state.video_folder = str(folder)
        self.load_video_files()
        self.state.notify('Video folder loaded', 'success')
        if self.settings is not None:
            self.settings.set('video_folder', self.state.video_folder)

    def select_output_folder(self, folder):
        self.state.output_folder = str(folder)
        self.load_output_folder()
        self.state.notify('Output folder loaded', 'success')
        if self.settings is not None:
            self.settings.set('output_folder', self.state.output_folder)

    def load_video_files(self):
        self.catalog.load_video_files(self.state.video_folder)
        self.selected_video_files = []

    def load_output_folder(self):
        self.load_image_files()
        self.labels.load(app_state.dataset_path(self.state))
        self.catalog.load_processed_list(app_state.processed_list_path(self.state))
        self.catalog.update_label_statistics(self.state.output_folder, self.labels.labels)

    def load_image_files(self):
        self.catalog.load_image_files(app_state.image_queue_folder(self.state))
        self.workflow.init_selection()
        if self.renderer is not None:
            self.renderer.clear_cache()

    @property
    def visible_videos(self):
        return app_state.filtered_video_files(self.state, self.catalog)

    @property
    def can_preprocess(self):
        return app_state.can_preprocess(self.state, self.catalog)

    # --- 视频 ---

    def toggle_selected_video(self, video):
        if video in self.selected_video_files:
            self.selected_video_files.remove(video)
        else:
            self.selected_video_files.append(video)

    def select_all_visible_videos(self):
        self.selected_video_files = list(self.visible_videos)
        return self.selected_video_files

    def video_info(self, video):
        """读取视频元数据，并按当前抽帧频率预估图片数量。"""
        path = os.path.join(self.state.video_folder, video)
        with VideoController(path) as vc:
            return {
                'name': vc.name,
                'fps': vc.fps,
                'total_frames': vc.total_frames,
                'duration': vc.duration(),
                'resolution': (vc.width, vc.height),
                'estimated_frames': vc.estimated_frames(self.state.framerate),
            }

    def extract_frames_from_videos(self):
        """
        对选中的视频逐个抽帧到队列目录。

        单个视频失败只提示警告，不影响其余视频；默认所有尝试过的视频
        (无论成功与否) 都会记为已处理，见 AppConfig.MARK_FAILED_AS_PROCESSED。

        Returns
        -------
        int
            抽帧成功的视频数。
        """
        queue_folder = app_state.image_queue_folder(self.state)
        if not self.state.video_folder or not queue_folder:
            self.state.notify('Select both video and process folders', 'warning')
            return 0

        try:
            self.fs.create_directory(queue_folder)
        except OSError as e:
            self.state.notify(f'Error creating queue folder: {e}', 'error')
            return 0

        self.state.is_preprocessing = True
        processed_count = 0
        attempted = []
        succeeded = []
        try:
            for video in self.selected_video_files:
                attempted.append(video)
                video_path = os.path.join(self.state.video_folder, video)
                output_pattern = frame_output_pattern(queue_folder, video)
                logger.info(f"[LabelingApp] 抽帧: {video} @ {self.state.framerate} fps")
                try:
                    self.extractor.extract_frames(video_path, output_pattern, self.state.framerate)
                    succeeded.append(video)
                    processed_count += 1
                except TranscoderError as e:
                    self.state.notify(f'Error processing {video}: {e}', 'warning')
        finally:
            self.state.is_preprocessing = False

        self.load_image_files()
        self.state.notify(f'Processed {processed_count} video(s)', 'success')

        self.catalog.mark_processed(attempted if AppConfig.MARK_FAILED_AS_PROCESSED else succeeded)
        self.selected_video_files = []
        self.catalog.save_processed_list(app_state.processed_list_path(self.state))
        return processed_count

    # --- 标签 ---

    def open_label_editor(self):
        self.labels.open_editor()

    def close_label_editor(self):
        saved = self.labels.close_editor()
        self.catalog.update_label_statistics(self.state.output_folder, self.labels.labels)
        return saved

    def add_label(self, name=AppConfig.DEFAULT_NEW_LABEL):
        return self.labels.add(name)

    def remove_label(self, ordinal):
        return self.labels.remove(ordinal)

    def assign_label(self, ordinal):
        return self.workflow.assign_label(ordinal)

    def undo_last_move(self):
        return self.workflow.undo_last_batch()

    # --- 数据集 ---

    def create_training_dataset(self):
        if not self.state.output_folder:
            self.state.notify('Select output folder first', 'warning')
            return []
        try:
            results = self.splitter.split(self.state.output_folder, self.labels.labels,
                                          self.state.training_split)
        except ValueError as e:
            self.state.notify(f'Error creating training dataset: {e}', 'error')
            return []
        if self.splitter.failed:
            self.state.notify(f'Training dataset created with {len(self.splitter.failed)} error(s): '
                              f'{", ".join(self.splitter.failed)}', 'warning')
        else:
            self.state.notify('Training dataset created successfully', 'success')
        return results

    # --- 界面 ---

    def ui_state(self):
        return {
            'images': self.catalog.image_files,
            'queue_folder': app_state.image_queue_folder(self.state) or '',
            'selected': self.workflow.selected_images,
            'anchor': self.workflow.selection.anchor,
            'editing_labels': self.labels.editor_open,
            'labels': self.labels.labels,
            'statistics': self.catalog.label_statistics,
            'notice': self.state.current_notice(),
            'video_count': len(self.catalog.video_files),
            'pending_videos': len(self.visible_videos),
        }

    def run(self):
        """启动主循环"""
        self.renderer = GalleryRenderer()
        self._show_intro()
        cv2.namedWindow(self.window_name, cv2.WINDOW_NORMAL)

        self.running = True
        while self.running:
            cv2.imshow(self.window_name, self.renderer.draw_interface(self.ui_state()))
            key = cv2.waitKey(50) & 0xFF
            if key != 0xFF:
                self.handle_key(key)

        self.cleanup()

    def handle_key(self, key):
        cfg = AppConfig
        if self.labels.editor_open:
            self._handle_editor_key(key)
        elif key == cfg.KEY_ESC:
            self.running = False
        elif ord('0') <= key <= ord('9'):
            index = key - ord('0')
            if index < len(self.labels) and self.workflow.selected_images:
                self.assign_label(index)
        elif key in (cfg.KEY_LEFT, cfg.KEY_RIGHT, cfg.KEY_UP, cfg.KEY_DOWN):
            direction = {cfg.KEY_LEFT: LEFT, cfg.KEY_RIGHT: RIGHT,
                         cfg.KEY_UP: UP, cfg.KEY_DOWN: DOWN}[key]
            self.workflow.move_cursor(direction, self.renderer.columns if self.renderer else 1)
        elif key == cfg.KEY_SPACE:
            anchor = self.workflow.selection.anchor
            if anchor is not None:
                self.workflow.select(anchor, TOGGLE)
        elif key == cfg.KEY_RANGE:
            self.workflow.move_cursor(RIGHT, extend=True)
        elif key in (cfg.KEY_UNDO, cfg.KEY_BACKSPACE):
            self.undo_last_move()
        elif key == cfg.KEY_EXTRACT:
            self.select_all_visible_videos()
            self.extract_frames_from_videos()
        elif key == cfg.KEY_SPLIT:
            self.create_training_dataset()
        elif key == cfg.KEY_TOGGLE_HIDDEN:
            self.state.hide_processed_videos = not self.state.hide_processed_videos
        elif key == cfg.KEY_RELOAD:
            self.load_video_files()
            self.load_image_files()
        elif key == cfg.KEY_EDIT_LABELS:
            self.open_label_editor()

    def _handle_editor_key(self, key):
        """标签编辑模式: N 新增, 0-9 删除对应标签, K/ESC 保存并退出。"""
        cfg = AppConfig
        if key in (cfg.KEY_EDIT_LABELS, cfg.KEY_ESC):
            self.close_label_editor()
        elif key == cfg.KEY_ADD_LABEL:
            self.add_label()
        elif ord('0') <= key <= ord('9'):
            index = key - ord('0')
            if self.labels.ordinal_valid(index):
                self.remove_label(index)

    def _show_intro(self):
        print(f"----- Frame Sorter V{AppConfig.__version__} -----")
        print(f"视频目录: {self.state.video_folder}")
        print(f"输出目录: {self.state.output_folder}")
        print("---------------------------------------------------------")
        print("【当前标签映射】")
        for i, label in enumerate(self.labels.labels[:10]):
            print(f"  按键 '{i}' -> 类别: {label} ({self.catalog.label_statistics.get(label, 0)})")
        print("---------------------------------------------------------")
        print("【选择】 W/A/S/D: 移动 | 空格: 切换选中 | R: 向右扩展选择")
        print("【操作】 0-9: 归类 | U/Backspace: 撤回 | E: 抽帧 | T: 划分 train/val | H: 显示/隐藏已处理视频")
        print("【标签编辑】 K: 进入/保存退出 | N: 新增标签 | 0-9: 删除对应标签")
        print("【退出程序】 ESC")
        print("---------------------------------------------------------")

    def cleanup(self):
        self.running = False
        cv2.destroyAllWindows()


def build_parser():
    p = argparse.ArgumentParser("frame-sorter: sort video frames into an image-classification dataset")
    p.add_argument("--video-folder", help="folder with source videos")
    p.add_argument("--output-folder", help="output / label root folder")
    p.add_argument("--framerate", type=float, default=AppConfig.DEFAULT_FRAMERATE,
                   help="frames per second to extract")
    p.add_argument("--split", type=float, default=AppConfig.DEFAULT_TRAINING_SPLIT,
                   help="training ratio for train/val split")
    p.add_argument("--label", action="append", default=[],
                   help="append a label to dataset.yaml (repeatable)")
    p.add_argument("--settings", default=None, help="settings CSV file")
    p.add_argument("--verbose", action="store_true", help="debug logging")
    return p


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    app = LabelingApp(settings=Settings(args.settings), framerate=args.framerate,
                      training_split=args.split)
    app.load_settings()
    if args.video_folder:
        app.select_video_folder(args.video_folder)
    if args.output_folder:
        app.select_output_folder(args.output_folder)

    if args.label:
        app.open_label_editor()
        for name in args.label:
            app.add_label(name)
        app.close_label_editor()

    app.run()


if __name__ == "__main__":
    main()
