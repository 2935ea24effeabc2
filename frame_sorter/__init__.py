# frame_sorter/__init__.py
"""
Frame Sorter (视频帧分类数据集构建工具包)
=====================================

从视频素材构建图像分类数据集：抽帧 -> 人工归类 -> 划分 train/val。

主要功能
-------
1. **批量抽帧**：调用 ffmpeg 按固定帧率把视频抽成图片，放入队列目录。
2. **画廊归类**：在画廊中单选/多选/范围选择图片，按数字键 0-9 移动到标签文件夹。
3. **撤回**：一键撤回最后一批移动 (Undo)。
4. **数据集划分**：按比例把每个标签文件夹随机复制到 train/ 与 val/。

目录结构
-------
::

    output/
    ├── dataset.yaml          # names: 0: cat ...
    ├── processed_videos.txt  # 已抽帧的视频
    ├── queue/                # 待归类的帧
    ├── cat/ dog/ ...         # 标签文件夹
    └── train/ val/           # 划分结果

模块结构
-------
- `LabelingApp`: 应用程序主入口。
- `AppConfig`: 全局配置参数（扩展名、文件名、按键映射）。
- `LabelStore`: dataset.yaml 的读写。
- `LabelingWorkflow`: 选择、归类与撤回。
- `DatasetSplitter`: train/val 划分。

使用示例
-------
>>> from frame_sorter import LabelingApp
>>> app = LabelingApp(video_folder="videos", output_folder="my_dataset")
>>> app.select_all_visible_videos()
>>> app.extract_frames_from_videos()
>>> app.run()
"""

from .config import AppConfig
from .label_store import LabelStore, LabelFileError
from .labeling import LabelingWorkflow
from .main import LabelingApp
from .splitter import DatasetSplitter

__version__ = AppConfig.__version__

__all__ = ['LabelingApp', 'AppConfig', 'LabelStore', 'LabelFileError',
           'LabelingWorkflow', 'DatasetSplitter']
