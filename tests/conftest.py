import os

import cv2
import numpy as np
import pytest

from frame_sorter.filesystem import FileSystem
from frame_sorter.label_store import LabelStore
from frame_sorter.labeling import LabelingWorkflow
from frame_sorter.media_catalog import MediaCatalog
from frame_sorter.state import AppState
from frame_sorter.transcoder import TranscoderError


def touch(path, content='x'):
    os.makedirs(os.path.dirname(str(path)), exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(content)
    return path


def levels(state):
    return [n.level for n in state.notices]


@pytest.fixture
def fs():
    return FileSystem()


@pytest.fixture
def state():
    return AppState()


@pytest.fixture
def workspace(tmp_path, fs):
    """输出目录 + 队列中的三张图片 + 两个标签。"""
    out = tmp_path / 'out'
    for name in ('frame_001.jpg', 'frame_002.jpg', 'frame_003.jpg'):
        touch(out / 'queue' / name, name)

    state = AppState(output_folder=str(out))
    catalog = MediaCatalog(fs, state)
    labels = LabelStore(fs, state)
    labels.labels = ['cat', 'dog']
    workflow = LabelingWorkflow(fs, state, catalog, labels)
    catalog.load_image_files(str(out / 'queue'))
    workflow.init_selection()
    return workflow


class FakeExtractor:
    """把每个视频抽成 frames_per_video 张假图片；fail 中的视频抛出 TranscoderError。"""

    def __init__(self, frames_per_video=2, fail=()):
        self.frames_per_video = frames_per_video
        self.fail = set(fail)
        self.calls = []

    def extract_frames(self, video_path, output_pattern, framerate=1):
        self.calls.append((video_path, output_pattern, framerate))
        if os.path.basename(video_path) in self.fail:
            raise TranscoderError('Invalid data found when processing input')
        for i in range(1, self.frames_per_video + 1):
            touch(output_pattern % i)


@pytest.fixture
def fake_extractor():
    return FakeExtractor()


def make_clip(path, frames=10, fps=5, size=(64, 48)):
    """用 OpenCV 写一个真实的 MJPG 短视频 (.avi)。"""
    os.makedirs(os.path.dirname(str(path)), exist_ok=True)
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*'MJPG'), fps, size)
    for i in range(frames):
        frame = np.full((size[1], size[0], 3), i * 20 % 256, dtype=np.uint8)
        writer.write(frame)
    writer.release()
    return path
