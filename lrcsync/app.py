from __future__ import annotations

from dataclasses import dataclass

from .config import Settings
from .providers.lrclib import LrcLibClient
from .runner import LyricsRunner
from .scanner import LibraryScanner


@dataclass
class LyricsSyncApp:
    settings: Settings
    scanner: LibraryScanner
    client: LrcLibClient

    @classmethod
    def create(cls, settings: Settings) -> "LyricsSyncApp":
        return cls(
            settings=settings,
            scanner=LibraryScanner(settings.library),
            client=LrcLibClient(settings.catalog),
        )

    def get_runner(self) -> LyricsRunner:
        return LyricsRunner(self.settings.runner, scanner=self.scanner, client=self.client)
