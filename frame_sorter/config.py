import cv2


class AppConfig:
    """
    应用程序全局配置类。
    存储扩展名白名单、持久化文件名、默认参数、颜色与按键映射等常量。
    """

    __version__ = '1.2.0'

    # 支持的扩展名 (小写, 含点)
    VIDEO_EXTENSIONS = ('.mp4', '.avi', '.mov', '.mkv', '.flv', '.wmv', '.webm')
    IMAGE_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.gif', '.bmp', '.webp')

    # 输出目录下的固定文件/文件夹名
    QUEUE_DIR_NAME = 'queue'
    DATASET_FILE_NAME = 'dataset.yaml'
    PROCESSED_FILE_NAME = 'processed_videos.txt'
    STATS_FILE_NAME = 'dataset_stats.csv'
    TRAIN_DIR_NAME = 'train'
    VAL_DIR_NAME = 'val'

    # 用户设置 (记住上次选择的文件夹)
    SETTINGS_DIR_ENV = 'FRAME_SORTER_HOME'
    SETTINGS_DIR_NAME = '.frame_sorter'
    SETTINGS_FILE_NAME = 'settings.csv'

    # 抽帧与数据集划分默认参数
    FFMPEG_BINARY = 'ffmpeg'
    DEFAULT_FRAMERATE = 1
    FRAME_NAME_PATTERN = '{stem}_%05d.jpg'
    DEFAULT_TRAINING_SPLIT = 0.8
    DEFAULT_NEW_LABEL = 'new_label'
    HIDE_PROCESSED_VIDEOS = True
    # 抽帧失败的视频也记为已处理 (与旧版行为一致)
    MARK_FAILED_AS_PROCESSED = True

    # 画廊布局
    PREVIEW_SIZE = 128
    GRID_COLUMNS = 6
    GRID_ROWS = 4
    GRID_PADDING = 8
    SIDEBAR_WIDTH = 320
    MESSAGE_DURATION = 3  # 秒

    # 基础颜色定义 (BGR 格式)
    COLORS = {
        'red': (0, 0, 255),
        'green': (0, 255, 0),
        'blue': (255, 0, 0),
        'yellow': (0, 255, 255),
        'white': (255, 255, 255),
        'black': (0, 0, 0),
        'gray': (50, 50, 50),
        'light_gray': (200, 200, 200),
        'shadow': (0, 0, 0)
    }

    # 提示等级 -> 颜色
    NOTICE_COLORS = {
        'info': (255, 255, 0),
        'success': (0, 255, 0),
        'warning': (0, 200, 255),
        'error': (0, 0, 255),
    }

    # 按键定义 (cv2.waitKey & 0xFF)
    KEY_ESC = 27
    KEY_BACKSPACE = 8
    KEY_SPACE = 32
    KEY_LEFT = ord('a')
    KEY_RIGHT = ord('d')
    KEY_UP = ord('w')
    KEY_DOWN = ord('s')
    KEY_RANGE = ord('r')
    KEY_UNDO = ord('u')
    KEY_EXTRACT = ord('e')
    KEY_SPLIT = ord('t')
    KEY_TOGGLE_HIDDEN = ord('h')
    KEY_RELOAD = ord('l')
    KEY_EDIT_LABELS = ord('k')
    KEY_ADD_LABEL = ord('n')

    # 字体配置
    FONT = cv2.FONT_HERSHEY_SIMPLEX
    FONT_SCALE_TITLE = 1.0
    FONT_SCALE_NORMAL = 0.6
