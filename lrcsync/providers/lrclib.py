from __future__ import annotations

import http.client
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import List, Optional, Tuple

from pydantic import TypeAdapter, ValidationError

from ..config import CatalogSettings
from ..models import Candidate, CatalogParseError, CatalogTransportError, LyricsQuery

logger = logging.getLogger(__name__)

EXACT_STEP = "exact_search"
FUZZY_STEP = "fuzzy_search"

_CANDIDATE_LIST = TypeAdapter(List[Candidate])


def encode_component(value: str) -> str:
    """Percent-encode everything but unreserved characters, with spaces as ``+``."""
    return urllib.parse.quote(value, safe="").replace("%20", "+")


class LrcLibClient:
    """Read-only client for the LRCLIB lyrics catalog.

    Both lookups log the request URL before sending it. Transport failures raise
    CatalogTransportError; a non-2xx status or a body that does not deserialize
    into the expected shape raises CatalogParseError.
    """

    def __init__(self, settings: CatalogSettings) -> None:
        self.base_url = settings.base_url.rstrip("/")
        self.useragent = settings.user_agent
        self.timeout = settings.timeout_seconds

    def exact_url(self, query: LyricsQuery) -> str:
        return (
            f"{self.base_url}/api/get"
            f"?track_name={encode_component(query.track_name)}"
            f"&artist_name={encode_component(query.artist_name)}"
            f"&album_name={encode_component(query.album_name)}"
            f"&duration={query.duration_seconds}"
        )

    def fuzzy_url(self, artist: str, album: str, title: str) -> str:
        terms = "+".join(encode_component(part) for part in (album, artist, title))
        return f"{self.base_url}/api/search?q={terms}"

    def exact_search(self, query: LyricsQuery) -> Optional[Candidate]:
        """Look up a single record; returns None when the catalog has no such track."""
        url = self.exact_url(query)
        logger.info("[%s] requesting: %s", EXACT_STEP, url)
        status, body = self._get(url)
        if status == 404:
            logger.debug("[%s] catalog returned 404 for %s", EXACT_STEP, url)
            return None
        data = self._decode(url, status, body)
        try:
            return Candidate.model_validate(data)
        except ValidationError as exc:
            raise CatalogParseError(url, f"unexpected record shape: {exc.error_count()} error(s)", body) from exc

    def fuzzy_search(self, artist: str, album: str, title: str) -> List[Candidate]:
        """Free-text search; candidate order is preserved as received."""
        url = self.fuzzy_url(artist, album, title)
        logger.info("[%s] requesting: %s", FUZZY_STEP, url)
        status, body = self._get(url)
        data = self._decode(url, status, body)
        try:
            return _CANDIDATE_LIST.validate_python(data)
        except ValidationError as exc:
            raise CatalogParseError(url, f"unexpected result list shape: {exc.error_count()} error(s)", body) from exc

    def _get(self, url: str) -> Tuple[int, str]:
        try:
            return self._fetch(url)
        except (urllib.error.URLError, http.client.HTTPException, OSError) as exc:
            raise CatalogTransportError(url, f"request failed: {exc}") from exc

    def _fetch(self, url: str) -> Tuple[int, str]:
        req = urllib.request.Request(
            url,
            headers={"User-Agent": self.useragent, "Accept": "application/json"},
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                return resp.status, resp.read().decode("utf-8", errors="replace")
        except urllib.error.HTTPError as exc:
            body = exc.read().decode("utf-8", errors="replace") if exc.fp else ""
            return exc.code, body

    @staticmethod
    def _decode(url: str, status: int, body: str) -> object:
        if not 200 <= status < 300:
            raise CatalogParseError(url, f"HTTP {status}", body)
        try:
            return json.loads(body)
        except ValueError as exc:
            raise CatalogParseError(url, f"invalid JSON: {exc}", body) from exc
