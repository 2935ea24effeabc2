import csv
import logging
import os
from pathlib import Path

from .config import AppConfig

logger = logging.getLogger(__name__)

# 参数名 -> 说明
SETTING_KEYS = {
    'video_folder': 'Last used video source folder',
    'output_folder': 'Last used output / label root folder',
}


def default_settings_path():
    home = os.environ.get(AppConfig.SETTINGS_DIR_ENV)
    root = Path(home) if home else Path.home() / AppConfig.SETTINGS_DIR_NAME
    return root / AppConfig.SETTINGS_FILE_NAME


class Settings:
    """
    持久化的键值设置（上次选择的视频文件夹与输出文件夹）。
    以 CSV 保存: parameter, value, description。
    """

    def __init__(self, path=None):
        self.path = Path(path) if path else default_settings_path()
        self.values = {}

    def load(self):
        """读取设置；文件不存在或读取失败时返回空设置。"""
        self.values = {}
        if not self.path.exists():
            return self.values
        try:
            with open(self.path, mode='r', newline='', encoding='utf-8') as f:
                reader = csv.reader(f)
                next(reader, None)  # Skip header
                for row in reader:
                    if len(row) < 2:
                        continue
                    key, value = row[0], row[1]
                    if key in SETTING_KEYS and value:
                        self.values[key] = value
            logger.info(f"[Settings] 已加载设置: {self.values}")
        except (OSError, csv.Error) as e:
            logger.warning(f"[Settings] 读取设置失败: {e}")
        return self.values

    def get(self, key, default=None):
        return self.values.get(key, default)

    def set(self, key, value):
        """更新一个设置并立即写盘。"""
        if key not in SETTING_KEYS:
            raise KeyError(f"Unknown setting: {key}")
        self.values[key] = value
        return self.save()

    def save(self):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, mode='w', newline='', encoding='utf-8') as f:
                writer = csv.writer(f)
                writer.writerow(['parameter', 'value', 'description'])  # Header
                for key, description in SETTING_KEYS.items():
                    writer.writerow([key, self.values.get(key, ''), description])
        except OSError as e:
            logger.warning(f"[Settings] 无法保存设置: {e}")
            return False
        return True
