"Remote lyrics catalog clients."

from .lrclib import LrcLibClient

__all__ = ["LrcLibClient"]
