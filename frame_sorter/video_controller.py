from pathlib import Path

import cv2


class VideoController:
    """
    视频元数据读取包装器（帧数、帧率、分辨率），用于在抽帧前预估结果。
    """

    def __init__(self, path):
        path = Path(path)
        self.cap = cv2.VideoCapture(str(path))
        if not self.cap.isOpened():
            raise IOError(f"Cannot open video: {path}")

        self.name = path.name
        self.total_frames = int(self.cap.get(cv2.CAP_PROP_FRAME_COUNT))
        self.fps = self.cap.get(cv2.CAP_PROP_FPS)
        self.width = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        self.height = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.release()

    def duration(self):
        """时长(秒)"""
        return self.total_frames / self.fps if self.fps > 0 else 0

    def estimated_frames(self, framerate):
        """按 framerate 抽帧时大约会得到多少张图片。"""
        return int(self.duration() * framerate)

    def release(self):
        self.cap.release()
