from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

from .models import TrackLocation

TRACK_PREFIX_PATTERN = re.compile(r"^(?P<prefix>\d*\s?[-._\s]+)(?P<title>.+)$")
LIBRARY_DEPTH = 3


def normalize_title(stem: str) -> str:
    """Strip a leading track number and separators: ``"01 - Asja"`` -> ``"Asja"``."""
    match = TRACK_PREFIX_PATTERN.match(stem)
    if not match:
        return stem
    return match.group("title")


def resolve_track_location(file_path: Path, library_root: Path) -> Optional[TrackLocation]:
    """Map ``root/artist/album/file`` onto a TrackLocation.

    Files nested at any other depth below the root (or outside it) yield None.
    """
    try:
        relative = file_path.relative_to(library_root)
    except ValueError:
        return None
    if len(relative.parts) != LIBRARY_DEPTH:
        return None
    artist, album, _ = relative.parts
    stem = file_path.stem
    if not (artist and album and stem):
        return None
    return TrackLocation(
        root=library_root,
        artist=artist,
        album=album,
        song_stem=stem,
        relative_audio_path=relative,
    )
