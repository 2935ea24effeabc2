import csv
from pathlib import Path
from typing import Union, List, Optional

from frame_sorter.config import AppConfig
from frame_sorter.main import LabelingApp


class ProjectManager:
    """
    批量处理与数据集统计管理器（无界面）。

    负责：
    1. 扫描源文件夹中的视频，批量抽取所有未处理视频的帧。
    2. 按比例划分 train / val。
    3. 生成各类别统计报表 (dataset_stats.csv)。
    4. 需要人工归类时启动 LabelingApp 画廊。
    """

    def __init__(self,
                 video_folder: Union[str, Path],
                 output_folder: Union[str, Path] = './dataset',
                 class_names: Optional[List[str]] = None,
                 framerate: float = AppConfig.DEFAULT_FRAMERATE,
                 training_split: float = AppConfig.DEFAULT_TRAINING_SPLIT,
                 app: Optional[LabelingApp] = None):
        """
        初始化项目管理器。

        Parameters
        ----------
        video_folder : str | Path
            存放原始视频的文件夹路径。
        output_folder : str | Path
            输出根目录（队列、标签文件夹、dataset.yaml 都在这里）。
        class_names : list, optional
            dataset.yaml 不存在时用于初始化的类别列表；已有标签文件时忽略。
        framerate : float
            抽帧频率 (帧/秒)。
        training_split : float
            训练集比例。
        app : LabelingApp, optional
            注入已构建的应用（测试用）。
        """
        self.video_folder = Path(video_folder)
        self.output_folder = Path(output_folder)

        if not self.video_folder.exists():
            raise FileNotFoundError(f"源文件夹不存在: {self.video_folder}")
        self.output_folder.mkdir(parents=True, exist_ok=True)

        self.app = app or LabelingApp(framerate=framerate, training_split=training_split)
        self.app.select_video_folder(self.video_folder)
        self.app.select_output_folder(self.output_folder)

        # 已有 dataset.yaml 时以文件为准，保证同一项目的标注标准一致
        if class_names and not len(self.app.labels):
            self._init_labels(class_names)

    def _init_labels(self, class_names):
        self.app.open_label_editor()
        for name in class_names:
            self.app.add_label(name)
        self.app.close_label_editor()
        print(f"✅ 新项目标签已创建: {list(class_names)}")

    def extract_all(self):
        """
        抽取所有未处理视频的帧。

        Returns
        -------
        int
            抽帧成功的视频数。
        """
        videos = self.app.select_all_visible_videos()
        total = len(videos)
        print(f"\n=== 开始批量抽帧: {total} 个视频 ===")
        print(f"源目录: {self.video_folder}")
        print(f"输出至: {self.output_folder / AppConfig.QUEUE_DIR_NAME}\n")

        if not videos:
            print("没有未处理的视频。")
            return 0

        estimated = 0
        for video in videos:
            try:
                info = self.app.video_info(video)
            except IOError:
                print(f"  - {video}: 无法读取视频信息")
                continue
            estimated += info['estimated_frames']
            print(f"  - {video}: {info['duration']:.1f}s, "
                  f"{info['resolution'][0]}x{info['resolution'][1]}, 预计 {info['estimated_frames']} 帧")
        print(f"预计共 {estimated} 帧\n")

        ok = self.app.extract_frames_from_videos()
        print(f"=== 抽帧完成: {ok}/{total} 成功, 队列中共 {len(self.app.catalog.image_files)} 张图片 ===")
        return ok

    def create_training_dataset(self, ratio: Optional[float] = None):
        if ratio is not None:
            self.app.state.training_split = ratio
        results = self.app.create_training_dataset()
        for r in results:
            print(f"  - {r.label}: train {r.train} / val {r.val}")
        return results

    def write_statistics(self):
        """生成各类别统计 CSV，返回文件路径。"""
        stats = self.app.catalog.update_label_statistics(str(self.output_folder), self.app.labels.labels)
        total = sum(stats.values())
        csv_path = self.output_folder / AppConfig.STATS_FILE_NAME

        with open(csv_path, mode='w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(['Attribute', 'Value'])
            writer.writerow(['Output Folder', str(self.output_folder)])
            writer.writerow(['Total Images', total])
            writer.writerow(['Queued Images', len(self.app.catalog.image_files)])
            writer.writerow([])  # 空行
            writer.writerow(['Class Name', 'Count', 'Percentage'])

            # 按数量降序排列
            sorted_stats = sorted(stats.items(), key=lambda x: x[1], reverse=True)
            for cls, count in sorted_stats:
                percent = (count / total * 100) if total > 0 else 0
                writer.writerow([cls, count, f"{percent:.2f}%"])

        print(f"统计文件已保存: {csv_path}")
        for cls, count in sorted_stats:
            print(f"  - {cls}: {count}")
        return csv_path

    def run(self):
        """抽取未处理视频后打开画廊进行人工归类。"""
        self.extract_all()
        self.app.run()
        self.write_statistics()


if __name__ == "__main__":
    pm = ProjectManager(r"C:\videos", "dataset", ['cat', 'dog'])
    pm.run()
    pm.create_training_dataset(0.8)
