from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


@dataclass(slots=True, frozen=True)
class TrackLocation:
    root: Path
    artist: str
    album: str
    song_stem: str
    relative_audio_path: Path

    @property
    def audio_path(self) -> Path:
        return self.root / self.relative_audio_path

    @property
    def sidecar_path(self) -> Path:
        return self.audio_path.parent / f"{self.song_stem}.lrc"


@dataclass(slots=True, frozen=True)
class LyricsQuery:
    track_name: str
    artist_name: str
    album_name: str
    duration_seconds: int


class Candidate(BaseModel):
    """A single catalog record as returned by the lyrics service."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: Union[int, float]
    name: str
    track_name: str = Field(alias="trackName")
    artist_name: str = Field(alias="artistName")
    album_name: str = Field(alias="albumName")
    duration_seconds: float = Field(alias="duration")
    instrumental: bool
    plain_lyrics: Optional[str] = Field(default=None, alias="plainLyrics")
    synced_lyrics: Optional[str] = Field(default=None, alias="syncedLyrics")

    @field_validator("plain_lyrics", "synced_lyrics", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class Via(str, Enum):
    EXACT = "exact"
    FUZZY = "fuzzy"


class OutcomeKind(str, Enum):
    SAVED = "saved"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class ResolutionOutcome:
    kind: OutcomeKind
    path: Path
    text: Optional[str] = None
    via: Optional[Via] = None
    reason: Optional[str] = None

    @classmethod
    def saved(cls, path: Path, text: str, via: Via) -> "ResolutionOutcome":
        return cls(OutcomeKind.SAVED, path, text=text, via=via)

    @classmethod
    def skipped(cls, path: Path, reason: str) -> "ResolutionOutcome":
        return cls(OutcomeKind.SKIPPED, path, reason=reason)

    @classmethod
    def failed(cls, path: Path, reason: str) -> "ResolutionOutcome":
        return cls(OutcomeKind.FAILED, path, reason=reason)

    @property
    def succeeded(self) -> bool:
        # An already present sidecar is the desired end state.
        return self.kind in (OutcomeKind.SAVED, OutcomeKind.SKIPPED)


@dataclass(slots=True)
class RunSummary:
    succeeded: int = 0
    failed: int = 0
    total: int = 0
    skipped: int = 0
    elapsed_seconds: float = 0.0

    @classmethod
    def from_outcomes(cls, outcomes: Iterable[ResolutionOutcome], elapsed_seconds: float = 0.0) -> "RunSummary":
        summary = cls(elapsed_seconds=elapsed_seconds)
        for outcome in outcomes:
            summary.total += 1
            if outcome.succeeded:
                summary.succeeded += 1
            else:
                summary.failed += 1
            if outcome.kind is OutcomeKind.SKIPPED:
                summary.skipped += 1
        return summary

    def lines(self) -> list[str]:
        return [
            f"Successful tasks: {self.succeeded}",
            f"Failed tasks: {self.failed}",
            f"Total tasks: {self.total}",
            f"Time taken: {self.elapsed_seconds:.3f}s",
        ]


class LyricsSyncError(Exception):
    """Base class for errors raised while resolving lyrics for a file."""


class CatalogError(LyricsSyncError):
    def __init__(self, url: str, message: str, body: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url
        self.body = body


class CatalogTransportError(CatalogError):
    """The request did not complete (DNS, connection, timeout)."""


class CatalogParseError(CatalogError):
    """The response was not a 2xx JSON body of the expected shape."""


class AudioReadError(LyricsSyncError):
    """Raised when the audio file's properties cannot be read."""


class LyricsWriteError(LyricsSyncError):
    """Raised when a sidecar cannot be created or written; fatal to that file only."""
