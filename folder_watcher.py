"""
Folder Watcher Service
Monitors a folder for new images and runs each one through the image processor
"""

import time
import logging
from pathlib import Path
from queue import Empty, Queue
from typing import Dict, List, Optional, Set

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from threading import Lock, Thread

logger = logging.getLogger(__name__)


def supported_extensions(config: Dict) -> Set[str]:
    extensions = config.get('supported_extensions', {}) or {}
    return {
        ext.lower()
        for ext in list(extensions.get('standard', [])) + list(extensions.get('raw', []))
    }


class ImageFileHandler(FileSystemEventHandler):
    """Collect new images in the watch folder and queue them once their writes settle"""

    def __init__(self, folder_path: str, image_queue: Queue, config: Dict):
        super().__init__()
        self.folder_path = Path(folder_path).resolve()
        self.image_queue = image_queue
        self.extensions = supported_extensions(config)
        self.processed_files: Set[str] = set()
        self.pending_files: Dict[str, float] = {}  # file_path -> last event time
        self.lock = Lock()
        self.debounce_seconds = config.get('processing', {}).get('debounce_seconds', 2)
        self.running = True

        self.debounce_thread = Thread(target=self._debounce_worker, daemon=True, name="ImageDebounce")
        self.debounce_thread.start()

    def is_image_file(self, file_path: Path) -> bool:
        return file_path.suffix.lower() in self.extensions

    def queue_existing_files(self) -> int:
        """Queue images already sitting in the folder when watching starts"""
        count = 0
        for file_path in sorted(self.folder_path.iterdir()):
            if not file_path.is_file() or not self.is_image_file(file_path):
                continue
            file_path_str = str(file_path.resolve())
            with self.lock:
                if file_path_str in self.processed_files:
                    continue
                self.processed_files.add(file_path_str)
            self.image_queue.put(file_path_str)
            count += 1

        if count:
            logger.info(f"Found {count} existing image(s) in {self.folder_path}, queued for processing")
        return count

    def _track(self, file_path: Path):
        if file_path.parent != self.folder_path:
            logger.debug(f"File {file_path.name} not in watched folder, ignoring")
            return
        if not self.is_image_file(file_path):
            logger.debug(f"File {file_path.name} is not an image file, ignoring")
            return

        with self.lock:
            file_path_str = str(file_path)
            if file_path_str in self.processed_files:
                logger.debug(f"Image {file_path.name} already processed, skipping")
                return
            self.pending_files[file_path_str] = time.time()
        logger.info(f"New image detected: {file_path.name}")

    def on_created(self, event: FileSystemEvent):
        """Called when a new file is created"""
        if event.is_directory:
            return
        try:
            self._track(Path(event.src_path).resolve())
        except Exception as e:
            logger.error(f"Error handling on_created: {e}", exc_info=True)

    def on_moved(self, event: FileSystemEvent):
        """Called when a file is moved/renamed into the folder"""
        if event.is_directory:
            return
        try:
            self._track(Path(event.dest_path).resolve())
        except Exception as e:
            logger.error(f"Error handling on_moved: {e}", exc_info=True)

    def on_modified(self, event: FileSystemEvent):
        """Push back the debounce deadline while a file is still being written"""
        if event.is_directory:
            return
        file_path_str = str(Path(event.src_path).resolve())
        with self.lock:
            if file_path_str in self.pending_files:
                self.pending_files[file_path_str] = time.time()

    def collect_ready(self, now: Optional[float] = None) -> List[str]:
        """Move files whose debounce period has passed from pending to processed"""
        now = time.time() if now is None else now
        ready = []
        with self.lock:
            for file_path, timestamp in list(self.pending_files.items()):
                if now - timestamp >= self.debounce_seconds:
                    if file_path not in self.processed_files:
                        ready.append(file_path)
                        self.processed_files.add(file_path)
                    del self.pending_files[file_path]
        return ready

    def _debounce_worker(self):
        """Worker thread that queues files after the debounce period"""
        while self.running:
            time.sleep(0.5)
            for file_path in self.collect_ready():
                logger.info(f"Queueing image for processing: {Path(file_path).name}")
                self.image_queue.put(file_path)


class FolderWatcher:
    """Main folder watcher service"""

    def __init__(self, watch_folder: str, output_folder: str, processor, config: Dict):
        self.watch_folder = Path(watch_folder)
        self.output_folder = Path(output_folder)
        self.processor = processor
        self.config = config

        if not self.watch_folder.exists():
            logger.warning(f"Watch folder does not exist, creating: {watch_folder}")
            self.watch_folder.mkdir(parents=True, exist_ok=True)
        self.output_folder.mkdir(parents=True, exist_ok=True)

        self.image_queue: Queue = Queue()
        self.event_handler = ImageFileHandler(str(self.watch_folder), self.image_queue, config)

        self.observer = Observer()
        self.observer.schedule(self.event_handler, str(self.watch_folder), recursive=False)

        self.processing_threads: List[Thread] = []
        self.max_concurrent = config.get('processing', {}).get('max_concurrent_jobs', 1)
        self.running = False

        self.processed_count = 0
        self.failed_count = 0
        self.stats_lock = Lock()

    def start(self):
        """Start watching and processing"""
        logger.info(f"Starting folder watcher on: {self.watch_folder}")
        self.running = True
        self.observer.start()

        for i in range(self.max_concurrent):
            thread = Thread(target=self._image_processing_worker, daemon=True, name=f"ImageProcessor-{i}")
            thread.start()
            self.processing_threads.append(thread)

        self.event_handler.queue_existing_files()
        logger.info("Folder watcher started successfully")

    def stop(self):
        """Stop watching; workers finish their current image"""
        logger.info("Stopping folder watcher...")
        self.running = False
        self.event_handler.running = False

        if self.observer.is_alive():
            self.observer.stop()
            self.observer.join()

        for thread in self.processing_threads:
            thread.join(timeout=5)

        logger.info(f"Folder watcher stopped ({self.processed_count} processed, {self.failed_count} failed)")

    def _image_processing_worker(self):
        """Worker thread that processes queued images"""
        while self.running:
            try:
                image_path = self.image_queue.get(timeout=1)
            except Empty:
                continue

            try:
                self.process_image(image_path)
            except Exception as e:
                logger.error(f"Error in image processing worker: {e}", exc_info=True)
            finally:
                self.image_queue.task_done()

    def process_image(self, image_path: str) -> bool:
        """Process one image into the output folder"""
        image_file = Path(image_path)
        if not image_file.exists():
            logger.warning(f"Image file no longer exists: {image_path}")
            return False

        output_path = self.processor.output_path_for(image_file, self.output_folder)
        logger.info(f"Processing image: {image_file.name} -> {output_path}")
        success = self.processor.process_image(str(image_file), str(output_path))

        with self.stats_lock:
            if success:
                self.processed_count += 1
            else:
                self.failed_count += 1
        return success
