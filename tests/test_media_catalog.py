from frame_sorter.media_catalog import MediaCatalog, file_extension

from conftest import touch, levels


def test_file_extension():
    assert file_extension('clip.MP4') == '.mp4'
    assert file_extension('a.b.mov') == '.mov'
    assert file_extension('README') == ''


def test_scan_videos_filters_and_sorts(tmp_path, fs, state):
    for name in ('b.mp4', 'A.MP4', 'c.MkV', '.hidden.mp4', 'notes.txt', 'noext'):
        touch(tmp_path / name)
    (tmp_path / 'folder.mp4').mkdir()

    catalog = MediaCatalog(fs, state)
    assert catalog.scan_videos(str(tmp_path)) == ['A.MP4', 'b.mp4', 'c.MkV']
    assert state.notices == []


def test_scan_videos_unreadable_folder_warns(tmp_path, fs, state):
    catalog = MediaCatalog(fs, state)
    assert catalog.scan_videos(str(tmp_path / 'missing')) == []
    assert levels(state) == ['warning']


def test_scan_image_queue(tmp_path, fs, state):
    for name in ('f_00002.jpg', 'f_00001.JPEG', 'f.gif', '.f.png', 'f.mp4'):
        touch(tmp_path / 'queue' / name)

    catalog = MediaCatalog(fs, state)
    assert catalog.scan_image_queue(str(tmp_path / 'queue')) == ['f.gif', 'f_00001.JPEG', 'f_00002.jpg']


def test_missing_queue_is_not_an_error(tmp_path, fs, state):
    catalog = MediaCatalog(fs, state)
    assert catalog.load_image_files(str(tmp_path / 'queue')) == []
    assert state.notices == []


def test_hide_processed_videos(fs, state):
    catalog = MediaCatalog(fs, state)
    catalog.video_files = ['a.mp4', 'b.mp4']
    catalog.processed_video_files = {'a.mp4'}

    assert catalog.visible_videos(True) == ['b.mp4']
    assert catalog.visible_videos(False) == ['a.mp4', 'b.mp4']
    assert catalog.is_processed('a.mp4')
    assert not catalog.is_processed('b.mp4')


def test_processed_list_round_trip(tmp_path, fs, state):
    path = str(tmp_path / 'processed_videos.txt')
    catalog = MediaCatalog(fs, state)
    catalog.mark_processed(['a.mp4', 'b.mp4'])
    assert catalog.save_processed_list(path)

    other = MediaCatalog(fs, state)
    assert other.load_processed_list(path) == {'a.mp4', 'b.mp4'}


def test_processed_list_ignores_blank_lines(tmp_path, fs, state):
    path = tmp_path / 'processed_videos.txt'
    path.write_text("a.mp4\n\n  b.mp4  \n", encoding='utf-8')

    catalog = MediaCatalog(fs, state)
    assert catalog.load_processed_list(str(path)) == {'a.mp4', 'b.mp4'}


def test_missing_processed_list_is_empty(tmp_path, fs, state):
    catalog = MediaCatalog(fs, state)
    assert catalog.load_processed_list(str(tmp_path / 'processed_videos.txt')) == set()
    assert state.notices == []


def test_undecodable_processed_list_warns(tmp_path, fs, state):
    path = tmp_path / 'processed_videos.txt'
    path.write_bytes(b'a.mp4\n\xff\xfeb.mp4\n')

    catalog = MediaCatalog(fs, state)
    assert catalog.load_processed_list(str(path)) == set()
    assert levels(state) == ['warning']


def test_processed_list_with_bom(tmp_path, fs, state):
    path = tmp_path / 'processed_videos.txt'
    path.write_bytes('a.mp4\r\nb.mp4\r\n'.encode('utf-8-sig'))

    catalog = MediaCatalog(fs, state)
    assert catalog.load_processed_list(str(path)) == {'a.mp4', 'b.mp4'}


def test_label_statistics_from_disk(tmp_path, fs, state):
    touch(tmp_path / 'cat' / '1.jpg')
    touch(tmp_path / 'cat' / '2.jpg')
    (tmp_path / 'cat' / 'nested').mkdir()

    catalog = MediaCatalog(fs, state)
    stats = catalog.update_label_statistics(str(tmp_path), ['cat', 'dog'])
    assert stats == {'cat': 2, 'dog': 0}

    catalog.bump_statistic('dog', 3)
    assert catalog.label_statistics['dog'] == 3


def test_statistics_without_output_folder(fs, state):
    catalog = MediaCatalog(fs, state)
    assert catalog.update_label_statistics(None, ['cat']) == {}
