from __future__ import annotations
from pathlib import Path
from typing import Sequence
import logging
import time

from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler

from urlmap_agent.errors import ArchiveError
from urlmap_agent.run import run_urlmap

logger = logging.getLogger(__name__)

class Handler(FileSystemEventHandler):
    def __init__(self, archive: Path, out_dir: Path | None, source_roots: Sequence[Path]):
        self.archive = archive.resolve()
        self.out_dir = out_dir
        self.source_roots = list(source_roots)
        self._last = 0.0

    def on_any_event(self, event):
        if event.is_directory:
            return
        paths = {Path(event.src_path).resolve()}
        dest = getattr(event, "dest_path", None)
        if dest:
            paths.add(Path(dest).resolve())
        if self.archive not in paths:
            return

        # 빌드 도구가 여러 번 쓰는 경우 간단 debounce
        now = time.time()
        if now - self._last < 0.8:
            return
        self._last = now

        try:
            run_urlmap(str(self.archive), out_dir=self.out_dir, source_roots=self.source_roots)
        except ArchiveError as e:
            # 쓰는 도중의 zip은 읽을 수 없음; 다음 이벤트에서 다시 시도
            logger.warning("%s", e)

def watch_archive(archive: Path, out_dir: Path | None = None, source_roots: Sequence[Path] = ()) -> None:
    handler = Handler(archive, out_dir, source_roots)
    obs = Observer()
    obs.schedule(handler, str(handler.archive.parent), recursive=False)
    obs.start()
    try:
        while True:
            time.sleep(1)
    finally:
        obs.stop()
        obs.join()
