from __future__ import annotations

import errno
import logging
import os
from pathlib import Path
from typing import Optional

from .models import LyricsWriteError, ResolutionOutcome, TrackLocation, Via

logger = logging.getLogger(__name__)

ALREADY_EXISTS = "already_exists"


def path_exists(path: Path) -> Optional[bool]:
    """Like Path.exists(), but survives ENAMETOOLONG and reports a missing parent as None."""
    try:
        path.stat()
        return True
    except FileNotFoundError:
        return None if not path.parent.exists() else False
    except OSError as exc:
        if exc.errno != errno.ENAMETOOLONG:
            raise
        try:
            with os.scandir(path.parent) as it:
                return any(entry.name == path.name for entry in it)
        except FileNotFoundError:
            return None


def sidecar_exists(location: TrackLocation) -> bool:
    return bool(path_exists(location.sidecar_path))


def persist(location: TrackLocation, text: str, via: Via, overwrite: bool) -> ResolutionOutcome:
    """Write ``text`` verbatim to the track's ``.lrc`` sidecar.

    An existing sidecar is left untouched unless ``overwrite`` is set. Create or
    write failures raise LyricsWriteError.
    """
    target = location.sidecar_path
    if not overwrite and sidecar_exists(location):
        logger.debug("Sidecar already present, not overwriting %s", target)
        return ResolutionOutcome.skipped(location.audio_path, ALREADY_EXISTS)
    try:
        # newline="" keeps the catalog's line endings byte-for-byte.
        with target.open("w", encoding="utf-8", newline="") as fh:
            fh.write(text)
    except OSError as exc:
        raise LyricsWriteError(f"Failed to write {target}: {exc}") from exc
    return ResolutionOutcome.saved(location.audio_path, text, via)
