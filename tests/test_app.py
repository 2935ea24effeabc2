import os
import random

import pytest

from frame_sorter.config import AppConfig
from frame_sorter.main import LabelingApp, build_parser
from frame_sorter.settings import Settings

from conftest import FakeExtractor, make_clip, touch, levels


@pytest.fixture
def folders(tmp_path):
    videos = tmp_path / 'videos'
    for name in ('a.mp4', 'b.mp4', 'c.mov'):
        touch(videos / name)
    out = tmp_path / 'out'
    out.mkdir()
    (out / 'dataset.yaml').write_text("names:\n  0: cat\n  1: dog\n", encoding='utf-8')
    return videos, out


def test_select_folders_loads_everything(folders):
    videos, out = folders
    touch(out / 'queue' / 'x_00001.jpg')
    touch(out / 'cat' / 'old.jpg')
    (out / 'processed_videos.txt').write_text("a.mp4\n", encoding='utf-8')

    app = LabelingApp(video_folder=str(videos), output_folder=str(out), extractor=FakeExtractor())

    assert app.catalog.video_files == ['a.mp4', 'b.mp4', 'c.mov']
    assert app.visible_videos == ['b.mp4', 'c.mov']
    assert app.catalog.image_files == ['x_00001.jpg']
    assert app.workflow.selected_images == ['x_00001.jpg']
    assert app.labels.labels == ['cat', 'dog']
    assert app.catalog.label_statistics == {'cat': 1, 'dog': 0}
    assert app.can_preprocess

    app.state.hide_processed_videos = False
    assert app.visible_videos == ['a.mp4', 'b.mp4', 'c.mov']


def test_extract_batch_continues_and_marks_all_processed(folders):
    videos, out = folders
    extractor = FakeExtractor(frames_per_video=2, fail={'b.mp4'})
    app = LabelingApp(video_folder=str(videos), output_folder=str(out), extractor=extractor)

    app.select_all_visible_videos()
    assert app.extract_frames_from_videos() == 2

    assert [os.path.basename(c[0]) for c in extractor.calls] == ['a.mp4', 'b.mp4', 'c.mov']
    assert extractor.calls[0][1] == f"{out / 'queue'}/a_%05d.jpg"
    assert app.catalog.image_files == ['a_00001.jpg', 'a_00002.jpg', 'c_00001.jpg', 'c_00002.jpg']
    assert app.catalog.processed_video_files == {'a.mp4', 'b.mp4', 'c.mov'}
    assert app.selected_video_files == []
    assert app.visible_videos == []
    assert not app.state.is_preprocessing

    saved = (out / 'processed_videos.txt').read_text(encoding='utf-8').split('\n')
    assert sorted(saved) == ['a.mp4', 'b.mp4', 'c.mov']
    assert 'warning' in levels(app.state)
    assert app.state.notices[-1].message == 'Processed 2 video(s)'


def test_extract_requires_folders(fake_extractor):
    app = LabelingApp(extractor=fake_extractor)
    assert app.extract_frames_from_videos() == 0
    assert app.state.notices[-1].message == 'Select both video and process folders'
    assert fake_extractor.calls == []


def test_label_then_split(folders):
    videos, out = folders
    app = LabelingApp(video_folder=str(videos), output_folder=str(out),
                      extractor=FakeExtractor(frames_per_video=5), rng=random.Random(0))
    app.toggle_selected_video('a.mp4')
    app.extract_frames_from_videos()

    app.workflow.select(0)
    app.workflow.select(4, 'range')
    assert app.assign_label(0) == 5
    assert app.catalog.label_statistics['cat'] == 5

    results = app.create_training_dataset()
    assert [(r.label, r.train, r.val) for r in results] == [('cat', 4, 1)]
    assert len(os.listdir(out / 'train' / 'cat')) == 4
    assert len(os.listdir(out / 'val' / 'cat')) == 1
    assert app.state.notices[-1].message == 'Training dataset created successfully'


def test_split_without_output_folder(fake_extractor):
    app = LabelingApp(extractor=fake_extractor)
    assert app.create_training_dataset() == []
    assert levels(app.state) == ['warning']


def test_split_with_bad_ratio(folders, fake_extractor):
    videos, out = folders
    app = LabelingApp(output_folder=str(out), extractor=fake_extractor, training_split=2)
    assert app.create_training_dataset() == []
    assert app.state.notices[-1].level == 'error'


def test_label_editor_session_writes_dataset_yaml(folders, fake_extractor):
    videos, out = folders
    app = LabelingApp(output_folder=str(out), extractor=fake_extractor)

    app.open_label_editor()
    app.remove_label(0)
    app.add_label('bird')
    assert app.close_label_editor()

    assert (out / 'dataset.yaml').read_text(encoding='utf-8') == "names:\n  0: dog\n  1: bird\n"
    assert app.catalog.label_statistics == {'dog': 0, 'bird': 0}


def test_settings_remember_folders(folders, tmp_path, fake_extractor):
    videos, out = folders
    settings_path = tmp_path / 'cfg' / 'settings.csv'

    app = LabelingApp(settings=Settings(settings_path), extractor=fake_extractor)
    app.select_video_folder(str(videos))
    app.select_output_folder(str(out))

    restored = LabelingApp(settings=Settings(settings_path), extractor=fake_extractor)
    restored.load_settings()
    assert restored.state.video_folder == str(videos)
    assert restored.state.output_folder == str(out)
    assert restored.labels.labels == ['cat', 'dog']


def test_keys_drive_workflow(folders, fake_extractor):
    videos, out = folders
    for name in ('f1.jpg', 'f2.jpg', 'f3.jpg'):
        touch(out / 'queue' / name)
    app = LabelingApp(output_folder=str(out), extractor=fake_extractor)

    app.handle_key(ord('d'))             # move right -> f2
    app.handle_key(ord('r'))             # extend -> f2, f3
    app.handle_key(ord('1'))             # -> dog
    assert sorted(os.listdir(out / 'dog')) == ['f2.jpg', 'f3.jpg']

    app.handle_key(ord('u'))
    assert app.catalog.image_files == ['f1.jpg', 'f2.jpg', 'f3.jpg']

    app.running = True
    app.handle_key(27)
    assert not app.running


def test_video_info_rejects_non_video(folders, fake_extractor):
    videos, out = folders
    app = LabelingApp(video_folder=str(videos), extractor=fake_extractor)
    with pytest.raises(IOError):
        app.video_info('a.mp4')


def test_video_info_reads_real_clip(tmp_path, fake_extractor):
    make_clip(tmp_path / 'videos' / 'clip.avi', frames=10, fps=5)
    app = LabelingApp(video_folder=str(tmp_path / 'videos'), extractor=fake_extractor, framerate=2)

    info = app.video_info('clip.avi')
    assert info['total_frames'] == 10
    assert info['resolution'] == (64, 48)
    assert info['duration'] == pytest.approx(2.0)
    assert info['estimated_frames'] == 4


def test_parser_defaults():
    args = build_parser().parse_args(['--label', 'cat', '--label', 'dog'])
    assert args.label == ['cat', 'dog']
    assert args.framerate == 1
    assert args.split == 0.8


def test_failed_videos_can_stay_unprocessed(folders, monkeypatch):
    monkeypatch.setattr(AppConfig, 'MARK_FAILED_AS_PROCESSED', False)
    videos, out = folders
    app = LabelingApp(video_folder=str(videos), output_folder=str(out),
                      extractor=FakeExtractor(fail={'b.mp4'}))
    app.select_all_visible_videos()
    app.extract_frames_from_videos()

    assert app.visible_videos == ['b.mp4']


def test_split_errors_replace_success_message(folders, fake_extractor):
    videos, out = folders
    touch(out / 'cat' / 'c1.jpg')
    touch(out / 'dog' / 'd1.jpg')
    touch(out / 'val' / 'dog')

    app = LabelingApp(output_folder=str(out), extractor=fake_extractor)
    results = app.create_training_dataset()

    assert [r.label for r in results] == ['cat']
    assert levels(app.state)[-2:] == ['error', 'warning']
    assert app.state.notices[-1].message == 'Training dataset created with 1 error(s): dog'


def test_label_editor_keys(folders, fake_extractor):
    videos, out = folders
    touch(out / 'queue' / 'f1.jpg')
    app = LabelingApp(output_folder=str(out), extractor=fake_extractor)

    app.handle_key(ord('k'))
    assert app.ui_state()['editing_labels']
    app.handle_key(ord('0'))             # 删除 cat，不归类图片
    app.handle_key(ord('n'))
    app.handle_key(ord('9'))             # 无效序号
    assert not (out / 'cat' / 'f1.jpg').exists()
    assert (out / 'dataset.yaml').read_text(encoding='utf-8') == "names:\n  0: cat\n  1: dog\n"

    app.running = True
    app.handle_key(27)                   # ESC 只退出编辑模式
    assert app.running
    assert not app.labels.editor_open
    assert (out / 'dataset.yaml').read_text(encoding='utf-8') == "names:\n  0: dog\n  1: new_label\n"
    assert app.catalog.label_statistics == {'dog': 0, 'new_label': 0}
