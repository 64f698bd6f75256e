from __future__ import annotations

import logging
from pathlib import Path

from mutagen import File as MutagenFile
from mutagen import MutagenError

from .models import AudioReadError

logger = logging.getLogger(__name__)


def read_duration_seconds(path: Path) -> int:
    """Return the track length in whole seconds (truncated, never rounded up)."""
    try:
        audio = MutagenFile(path)
    except (MutagenError, OSError) as exc:
        raise AudioReadError(f"failed to read {path}: {exc}") from exc
    if audio is None or not getattr(audio, "info", None):
        raise AudioReadError(f"unrecognised audio format: {path}")
    length = getattr(audio.info, "length", None)
    if length is None:
        raise AudioReadError(f"no duration available for {path}")
    logger.debug("Probed %s: %.3fs", path, length)
    return int(length)
