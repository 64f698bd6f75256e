from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from .models import Candidate, Via

NO_LYRICS = "no_lyrics"
PLAIN_NOT_ALLOWED = "plain_not_allowed"
INSTRUMENTAL = "instrumental"
NOT_FOUND = "not_found"
EMPTY_RESULTS = "empty_results"


@dataclass(slots=True, frozen=True)
class Selection:
    """Result of applying the lyrics policy to catalog candidates.

    ``text`` is None when nothing was accepted; ``reason`` then says why.
    """

    via: Via
    text: Optional[str] = None
    synced: bool = False
    candidate: Optional[Candidate] = None
    reason: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.text is not None


def _rejection_reason(candidate: Candidate, allow_plain: bool) -> str:
    if candidate.plain_lyrics is not None and not allow_plain:
        return PLAIN_NOT_ALLOWED
    if candidate.instrumental:
        return INSTRUMENTAL
    return NO_LYRICS


def select_exact(candidate: Optional[Candidate], allow_plain: bool) -> Selection:
    """Apply the policy to an exact-match record.

    A rejected selection means the caller should fall back to a fuzzy search,
    including the case where plain lyrics exist but are not allowed.
    """
    if candidate is None:
        return Selection(via=Via.EXACT, reason=NOT_FOUND)
    if candidate.synced_lyrics is not None:
        return Selection(via=Via.EXACT, text=candidate.synced_lyrics, synced=True, candidate=candidate)
    if candidate.plain_lyrics is not None and allow_plain:
        return Selection(via=Via.EXACT, text=candidate.plain_lyrics, candidate=candidate)
    return Selection(via=Via.EXACT, candidate=candidate, reason=_rejection_reason(candidate, allow_plain))


def select_fuzzy(candidates: Sequence[Candidate], allow_plain: bool) -> Selection:
    """Pick the first synced record in catalog order, else the first plain one."""
    if not candidates:
        return Selection(via=Via.FUZZY, reason=EMPTY_RESULTS)
    for candidate in candidates:
        if candidate.synced_lyrics is not None:
            return Selection(via=Via.FUZZY, text=candidate.synced_lyrics, synced=True, candidate=candidate)
    for candidate in candidates:
        if candidate.plain_lyrics is not None:
            if not allow_plain:
                return Selection(via=Via.FUZZY, candidate=candidate, reason=PLAIN_NOT_ALLOWED)
            return Selection(via=Via.FUZZY, text=candidate.plain_lyrics, candidate=candidate)
    if all(candidate.instrumental for candidate in candidates):
        return Selection(via=Via.FUZZY, reason=INSTRUMENTAL)
    return Selection(via=Via.FUZZY, reason=NO_LYRICS)
