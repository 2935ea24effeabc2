import logging

import ffmpeg

from .config import AppConfig

logger = logging.getLogger(__name__)


class TranscoderError(RuntimeError):
    """外部 ffmpeg 抽帧失败（非零退出或找不到可执行文件）。"""


def frame_output_pattern(queue_folder, video_name):
    """
    抽帧输出文件名模板: ``<queue>/<视频名第一个点之前的部分>_%05d.jpg``
    """
    stem = video_name.split('.')[0]
    return f"{queue_folder}/{AppConfig.FRAME_NAME_PATTERN.format(stem=stem)}"


class FrameExtractor:
    """
    ffmpeg 抽帧包装器。每个视频执行一次外部命令，无超时、不可中途取消。
    """

    def __init__(self, binary=AppConfig.FFMPEG_BINARY):
        self.binary = binary

    def build_stream(self, video_path, output_pattern, framerate):
        # 不读终端、不弹覆盖确认：批处理中 ffmpeg 不能停下来等待输入
        return (
            ffmpeg
            .input(str(video_path))
            .output(str(output_pattern), vf=f'fps={framerate}')
            .global_args('-nostdin')
            .overwrite_output()
        )

    def build_command(self, video_path, output_pattern, framerate):
        return self.build_stream(video_path, output_pattern, framerate).compile(cmd=self.binary)

    def extract_frames(self, video_path, output_pattern, framerate=AppConfig.DEFAULT_FRAMERATE):
        """
        以 framerate (帧/秒) 从视频中抽帧到 output_pattern。

        Raises
        ------
        TranscoderError
            ffmpeg 返回非零或无法启动。
        """
        stream = self.build_stream(video_path, output_pattern, framerate)
        logger.debug(f"[FrameExtractor] {' '.join(stream.compile(cmd=self.binary))}")
        try:
            ffmpeg.run(stream, cmd=self.binary, capture_stdout=True, capture_stderr=True)
        except ffmpeg.Error as e:
            stderr = (e.stderr or b'').decode('utf-8', errors='replace').strip()
            detail = stderr.splitlines()[-1] if stderr else 'ffmpeg exited with an error'
            raise TranscoderError(detail) from e
        except OSError as e:
            raise TranscoderError(f"cannot run {self.binary}: {e}") from e
