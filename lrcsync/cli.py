from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Optional, Sequence

import yaml
from pydantic import ValidationError

from . import __version__
from .app import LyricsSyncApp
from .config import Settings, load_settings
from .models import RunSummary
from .runner import LyricsRunner

LOG_FORMAT = "%(message)s"

C_RESET = "\033[0m"
LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",  # Cyan
    logging.WARNING: "\033[33m",  # Yellow
    logging.ERROR: "\033[31m",  # Red
    logging.CRITICAL: "\033[35m",  # Magenta
}


class ShortPathFormatter(logging.Formatter):
    def __init__(self, fmt: str, roots: list[Path]) -> None:
        super().__init__(fmt)
        self.roots = [str(root) for root in roots if root]

    def _shorten(self, message: str) -> str:
        for root in self.roots:
            if not message:
                break
            message = message.replace(f"{root}/", "")
        return message

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        return self._shorten(message)


class ColorFormatter(ShortPathFormatter):
    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = LEVEL_COLORS.get(record.levelno)
        if not color:
            return message
        return f"{color}{message}{C_RESET}"


class WarningBufferHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.WARNING)
        self.records: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
        except Exception:  # pragma: no cover
            msg = record.getMessage()
        self.records.append(msg)


def configure_logging(level_name: str, roots: list[Path]) -> WarningBufferHandler:
    log_level = getattr(logging, level_name.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(log_level)

    # Step diagnostics belong on stdout next to the saved/summary lines.
    console = logging.StreamHandler(sys.stdout)
    formatter_cls = ColorFormatter if sys.stdout.isatty() else ShortPathFormatter
    console.setFormatter(formatter_cls(LOG_FORMAT, roots))
    root_logger.addHandler(console)

    warn_buffer = WarningBufferHandler()
    warn_buffer.setFormatter(ShortPathFormatter("%(levelname).1s | %(name)s | %(message)s", roots))
    root_logger.addHandler(warn_buffer)
    return warn_buffer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lrcsync",
        description="Download synced lyrics (.lrc) for a music library laid out as artist/album/track",
    )
    parser.add_argument("music_dir", type=Path, help="Library root directory")
    parser.add_argument(
        "--allow-plain",
        action="store_true",
        help="Accept plain-text lyrics when no synced lyrics are available",
    )
    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Replace existing .lrc files",
    )
    parser.add_argument("--config", type=Path, help="Path to config.yaml")
    parser.add_argument("--log-level", default="INFO", help="Python logging level")
    parser.add_argument("--workers", type=int, default=None, help="Maximum number of tracks resolved concurrently")
    parser.add_argument("--timeout", type=float, default=None, help="Per-request timeout in seconds")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    runner_updates: dict[str, object] = {}
    if args.allow_plain:
        runner_updates["allow_plain"] = True
    if args.overwrite:
        runner_updates["overwrite"] = True
    if args.workers is not None:
        runner_updates["worker_concurrency"] = args.workers
    catalog_updates: dict[str, object] = {}
    if args.timeout is not None:
        catalog_updates["timeout_seconds"] = args.timeout
    runner = settings.runner.model_validate({**settings.runner.model_dump(), **runner_updates})
    catalog = settings.catalog.model_validate({**settings.catalog.model_dump(), **catalog_updates})
    return settings.model_copy(update={"runner": runner, "catalog": catalog})


def install_interrupt_handler(loop: asyncio.AbstractEventLoop, runner: LyricsRunner) -> None:
    """Route Ctrl-C to a graceful cancel so the summary is still printed."""
    try:
        loop.add_signal_handler(signal.SIGINT, runner.cancel)
    except (NotImplementedError, RuntimeError):
        # No loop signal support here; Ctrl-C raises KeyboardInterrupt instead.
        logging.getLogger(__name__).debug("SIGINT handler unavailable; Ctrl-C aborts without a summary")


async def run_library(runner: LyricsRunner, music_dir: Path) -> RunSummary:
    install_interrupt_handler(asyncio.get_running_loop(), runner)
    return await runner.run(music_dir)


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    music_dir: Path = args.music_dir
    if not music_dir.is_dir():
        parser.error(f"'{music_dir}' is not a valid directory.")
    try:
        settings = apply_overrides(load_settings(args.config), args)
    except (OSError, yaml.YAMLError, ValidationError) as exc:
        raise SystemExit(f"Invalid configuration: {exc}")

    warn_buffer = configure_logging(args.log_level, [music_dir, music_dir.resolve()])
    logging.getLogger(__name__).debug("Settings: %s", settings.model_dump())

    app = LyricsSyncApp.create(settings)
    runner = app.get_runner()
    try:
        summary = asyncio.run(run_library(runner, music_dir))
    except KeyboardInterrupt:
        print("Interrupted; no summary available.", file=sys.stderr)
        raise SystemExit(130)

    # The four summary lines must be the last lines on stdout.
    if warn_buffer.records:
        print("Warnings/Errors summary:")
        for line in warn_buffer.records:
            print(f" - {line}")
        print()
    for line in summary.lines():
        print(line)
    if runner.cancelled:
        raise SystemExit(130)


if __name__ == "__main__":
    main()
