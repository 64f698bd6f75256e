from __future__ import annotations

import asyncio
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional

from .config import RunnerSettings
from .heuristics import normalize_title, resolve_track_location
from .models import (
    AudioReadError,
    CatalogParseError,
    CatalogTransportError,
    LyricsQuery,
    LyricsWriteError,
    OutcomeKind,
    ResolutionOutcome,
    RunSummary,
    TrackLocation,
    Via,
)
from .providers.lrclib import EXACT_STEP, FUZZY_STEP, LrcLibClient
from .scanner import LibraryScanner
from .selection import (
    INSTRUMENTAL,
    NOT_FOUND,
    PLAIN_NOT_ALLOWED,
    Selection,
    select_exact,
    select_fuzzy,
)
from .sidecar import ALREADY_EXISTS, persist, sidecar_exists
from .tagging import read_duration_seconds

logger = logging.getLogger(__name__)

TRANSPORT_ERROR = "transport_error"
PARSE_ERROR = "parse_error"
UNREADABLE_AUDIO = "unreadable_audio"
WRITE_ERROR = "write_error"


class LyricsRunner:
    """Resolves lyrics for every track under a library root using a bounded worker pool."""

    def __init__(
        self,
        settings: RunnerSettings,
        scanner: LibraryScanner,
        client: LrcLibClient,
    ) -> None:
        self.settings = settings
        self.scanner = scanner
        self.client = client
        self._cancelled = threading.Event()
        self._outcomes: list[ResolutionOutcome] = []
        self._executor: Optional[ThreadPoolExecutor] = None

    @property
    def allow_plain(self) -> bool:
        return self.settings.allow_plain

    @property
    def overwrite(self) -> bool:
        return self.settings.overwrite

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Stop handing out queued files; safe to call from any thread or a signal handler.

        In-flight files finish, bounded by the request timeout.
        """
        self._cancelled.set()

    async def run(self, root: Path) -> RunSummary:
        start = time.monotonic()
        self._outcomes = []
        queue: asyncio.Queue[TrackLocation] = asyncio.Queue()
        for file_path in self.scanner.iter_files(root):
            print(file_path, flush=True)
            location = resolve_track_location(file_path, root)
            if location is None:
                logger.debug("Ignoring %s: not laid out as artist/album/file", file_path)
                continue
            queue.put_nowait(location)
        concurrency = max(1, min(self.settings.worker_concurrency, queue.qsize()))
        logger.debug("Queued %d tracks for %d workers", queue.qsize(), concurrency)
        self._executor = ThreadPoolExecutor(max_workers=concurrency, thread_name_prefix="lrcsync")
        workers = [asyncio.create_task(self._worker(i, queue)) for i in range(concurrency)]
        try:
            await queue.join()
        finally:
            await self._stop_workers(workers)
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None
        if self._cancelled.is_set():
            logger.warning("Run cancelled; %d tracks were resolved before stopping", len(self._outcomes))
        summary = RunSummary.from_outcomes(self._outcomes, elapsed_seconds=time.monotonic() - start)
        if summary.skipped:
            logger.info("%d tracks already had lyrics and were left untouched", summary.skipped)
        return summary

    async def _stop_workers(self, workers: list[asyncio.Task[None]]) -> None:
        for worker in workers:
            worker.cancel()
        await asyncio.gather(*workers, return_exceptions=True)

    async def _worker(self, worker_id: int, queue: asyncio.Queue[TrackLocation]) -> None:
        loop = asyncio.get_running_loop()
        while True:
            location = await queue.get()
            try:
                if self._cancelled.is_set():
                    continue
                try:
                    outcome = await loop.run_in_executor(self._executor, self.resolve, location)
                except LyricsWriteError:
                    logger.exception("Worker %s could not save lyrics for %s", worker_id, location.audio_path)
                    outcome = ResolutionOutcome.failed(location.audio_path, WRITE_ERROR)
                except Exception:  # pragma: no cover - logged and counted as a failure
                    logger.exception("Worker %s failed to process %s", worker_id, location.audio_path)
                    outcome = ResolutionOutcome.failed(location.audio_path, "unexpected_error")
                self._outcomes.append(outcome)
            finally:
                queue.task_done()

    def build_query(self, location: TrackLocation) -> LyricsQuery:
        return LyricsQuery(
            track_name=normalize_title(location.song_stem),
            artist_name=location.artist,
            album_name=location.album,
            duration_seconds=read_duration_seconds(location.audio_path),
        )

    def resolve(self, location: TrackLocation) -> ResolutionOutcome:
        """Run the exact -> fuzzy -> persist pipeline for one track.

        Catalog and audio errors become a failed outcome; LyricsWriteError propagates.
        """
        if not self.overwrite and sidecar_exists(location):
            logger.info("Lyrics already present for %s, skipping", location.song_stem)
            return ResolutionOutcome.skipped(location.audio_path, ALREADY_EXISTS)
        try:
            query = self.build_query(location)
        except AudioReadError as exc:
            logger.warning("Could not read audio properties of %s: %s", location.audio_path, exc)
            return ResolutionOutcome.failed(location.audio_path, UNREADABLE_AUDIO)

        selection = self._exact(query)
        if not selection.accepted:
            logger.info("[%s] falling back to fuzzy search for song %s", EXACT_STEP, query.track_name)
            selection = self._fuzzy(query)
        if not selection.accepted:
            return ResolutionOutcome.failed(location.audio_path, selection.reason or "no_lyrics")

        outcome = persist(location, selection.text, selection.via, overwrite=self.overwrite)
        if outcome.kind is OutcomeKind.SAVED:
            print(f"Saved lyrics for {location.song_stem} to {location.sidecar_path}", flush=True)
        return outcome

    def _exact(self, query: LyricsQuery) -> Selection:
        try:
            candidate = self.client.exact_search(query)
        except CatalogTransportError as exc:
            logger.warning("[%s] request failed for song %s: %s", EXACT_STEP, query.track_name, exc)
            return Selection(via=Via.EXACT, reason=TRANSPORT_ERROR)
        except CatalogParseError as exc:
            logger.info(
                "[%s] could not parse track response %s for song %s (%s)",
                EXACT_STEP,
                exc.body,
                query.track_name,
                exc,
            )
            return Selection(via=Via.EXACT, reason=PARSE_ERROR)
        selection = select_exact(candidate, self.allow_plain)
        if selection.reason == NOT_FOUND:
            logger.info("[%s] no catalog entry for song %s", EXACT_STEP, query.track_name)
        elif selection.reason == PLAIN_NOT_ALLOWED:
            logger.info(
                "[%s] synced lyrics unavailable for song %s, plain lyrics available but not allowed",
                EXACT_STEP,
                query.track_name,
            )
        elif selection.reason is not None:
            self._log_no_lyrics(EXACT_STEP, query, selection)
        return selection

    def _fuzzy(self, query: LyricsQuery) -> Selection:
        try:
            candidates = self.client.fuzzy_search(query.artist_name, query.album_name, query.track_name)
        except CatalogTransportError as exc:
            logger.warning("[%s] request failed for song %s: %s", FUZZY_STEP, query.track_name, exc)
            return Selection(via=Via.FUZZY, reason=TRANSPORT_ERROR)
        except CatalogParseError as exc:
            logger.info(
                "[%s] could not parse track response %s for song %s (%s)",
                FUZZY_STEP,
                exc.body,
                query.track_name,
                exc,
            )
            return Selection(via=Via.FUZZY, reason=PARSE_ERROR)
        selection = select_fuzzy(candidates, self.allow_plain)
        if selection.reason == PLAIN_NOT_ALLOWED:
            logger.info(
                "[%s] synced lyrics unavailable for song %s, plain lyrics available but not allowed",
                FUZZY_STEP,
                query.track_name,
            )
        elif selection.reason is not None:
            self._log_no_lyrics(FUZZY_STEP, query, selection)
        return selection

    @staticmethod
    def _log_no_lyrics(step: str, query: LyricsQuery, selection: Selection) -> None:
        detail = " (instrumental)" if selection.reason == INSTRUMENTAL else ""
        logger.info("[%s] no lyrics available for song %s%s", step, query.track_name, detail)
