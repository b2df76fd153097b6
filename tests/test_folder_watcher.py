from pathlib import Path
from queue import Queue

import pytest
from watchdog.events import DirCreatedEvent, FileCreatedEvent, FileMovedEvent

from folder_watcher import FolderWatcher, ImageFileHandler, supported_extensions

CONFIG = {
    'supported_extensions': {'standard': ['.jpg', '.PNG'], 'raw': ['.cr2']},
    'processing': {'debounce_seconds': 2, 'max_concurrent_jobs': 1},
}


@pytest.fixture
def handler(tmp_path):
    handler = ImageFileHandler(str(tmp_path), Queue(), CONFIG)
    yield handler
    handler.running = False


class FakeProcessor:
    def __init__(self, result=True):
        self.result = result
        self.calls = []

    def output_path_for(self, input_path, output_folder):
        return Path(output_folder) / f"{Path(input_path).stem}.png"

    def process_image(self, input_path, output_path):
        self.calls.append((input_path, output_path))
        return self.result


def test_supported_extensions_are_lowercased():
    assert supported_extensions(CONFIG) == {'.jpg', '.png', '.cr2'}
    assert supported_extensions({}) == set()


def test_existing_files_are_queued_once(handler, tmp_path):
    (tmp_path / 'b.jpg').write_bytes(b'x')
    (tmp_path / 'a.CR2').write_bytes(b'x')
    (tmp_path / 'notes.txt').write_text('x')
    (tmp_path / 'sub.png').mkdir()

    assert handler.queue_existing_files() == 2
    assert handler.queue_existing_files() == 0
    queued = [Path(handler.image_queue.get_nowait()).name for _ in range(2)]
    assert queued == ['a.CR2', 'b.jpg']


def test_created_files_wait_for_debounce(handler, tmp_path):
    path = tmp_path / 'shot.jpg'
    handler.on_created(FileCreatedEvent(str(path)))
    handler.on_created(FileCreatedEvent(str(tmp_path / 'shot.txt')))
    handler.on_created(DirCreatedEvent(str(tmp_path / 'folder.jpg')))

    started = handler.pending_files[str(path.resolve())]
    assert len(handler.pending_files) == 1
    assert handler.collect_ready(now=started + 1) == []
    assert handler.collect_ready(now=started + 2) == [str(path.resolve())]
    assert handler.pending_files == {}

    # Already processed files are not tracked again
    handler.on_created(FileCreatedEvent(str(path)))
    assert handler.pending_files == {}


def test_moved_in_files_are_tracked(handler, tmp_path):
    handler.on_moved(FileMovedEvent(str(tmp_path / 'tmp.part'), str(tmp_path / 'final.png')))
    assert list(handler.pending_files) == [str((tmp_path / 'final.png').resolve())]


def test_files_outside_folder_ignored(handler, tmp_path):
    nested = tmp_path / 'nested'
    nested.mkdir()
    handler.on_created(FileCreatedEvent(str(nested / 'shot.jpg')))
    assert handler.pending_files == {}


def test_process_image_counts_results(tmp_path):
    processor = FakeProcessor()
    watcher = FolderWatcher(str(tmp_path / 'in'), str(tmp_path / 'out'), processor, CONFIG)
    try:
        image = tmp_path / 'in' / 'shot.jpg'
        image.write_bytes(b'x')

        assert watcher.process_image(str(image))
        assert processor.calls == [(str(image), str(tmp_path / 'out' / 'shot.png'))]

        processor.result = False
        assert not watcher.process_image(str(image))
        assert not watcher.process_image(str(tmp_path / 'in' / 'gone.jpg'))

        assert (watcher.processed_count, watcher.failed_count) == (1, 1)
        assert (tmp_path / 'out').is_dir()
    finally:
        watcher.event_handler.running = False
