from __future__ import annotations

import fnmatch
import os
from collections.abc import Iterator
from pathlib import Path

from .config import LibrarySettings


class LibraryScanner:
    """Walks a library root and yields every audio file it contains."""

    def __init__(self, settings: LibrarySettings) -> None:
        self.settings = settings
        # Suffix matching is case-sensitive: "song.MP3" is not picked up.
        self._suffixes = tuple(self.settings.include_extensions)

    def iter_files(self, root: Path) -> Iterator[Path]:
        if not root.is_dir():
            return
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames.sort()
            directory = Path(dirpath)
            for name in sorted(filenames):
                file_path = directory / name
                if not file_path.is_file():
                    continue
                if not self._should_include(file_path):
                    continue
                yield file_path

    def _should_include(self, path: Path) -> bool:
        if not path.name.endswith(self._suffixes):
            return False
        rel = str(path)
        for pattern in self.settings.exclude_patterns:
            if fnmatch.fnmatch(rel, pattern):
                return False
        return True
