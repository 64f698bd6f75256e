import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from lrcsync.heuristics import resolve_track_location
from lrcsync.models import LyricsWriteError, OutcomeKind, Via
from lrcsync.sidecar import ALREADY_EXISTS, path_exists, persist


class TestPersist(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        album = self.root / "Heilung" / "Drif"
        album.mkdir(parents=True)
        self.audio = album / "01 Asja.flac"
        self.audio.write_bytes(b"")
        location = resolve_track_location(self.audio, self.root)
        assert location is not None
        self.location = location

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_writes_exact_text_next_to_audio(self) -> None:
        text = "[00:01.00] line one\r\n[00:02.00] line two"
        outcome = persist(self.location, text, Via.EXACT, overwrite=False)
        self.assertEqual(outcome.kind, OutcomeKind.SAVED)
        self.assertEqual(outcome.via, Via.EXACT)
        target = self.root / "Heilung" / "Drif" / "01 Asja.lrc"
        self.assertEqual(target.read_bytes(), text.encode("utf-8"))

    def test_existing_sidecar_is_kept_without_overwrite(self) -> None:
        target = self.location.sidecar_path
        target.write_text("original", encoding="utf-8")
        outcome = persist(self.location, "replacement", Via.FUZZY, overwrite=False)
        self.assertEqual(outcome.kind, OutcomeKind.SKIPPED)
        self.assertEqual(outcome.reason, ALREADY_EXISTS)
        self.assertTrue(outcome.succeeded)
        self.assertEqual(target.read_text(encoding="utf-8"), "original")

    def test_overwrite_truncates_existing_sidecar(self) -> None:
        target = self.location.sidecar_path
        target.write_text("a much longer original text", encoding="utf-8")
        outcome = persist(self.location, "short", Via.FUZZY, overwrite=True)
        self.assertEqual(outcome.kind, OutcomeKind.SAVED)
        self.assertEqual(target.read_text(encoding="utf-8"), "short")

    def test_write_failure_raises(self) -> None:
        with patch("pathlib.Path.open", side_effect=PermissionError("read-only")):
            with self.assertRaises(LyricsWriteError):
                persist(self.location, "text", Via.EXACT, overwrite=True)


class TestPathExists(unittest.TestCase):
    def test_reports_presence(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            p = Path(tmpdir) / "song.lrc"
            self.assertEqual(path_exists(p), False)
            p.write_text("x", encoding="utf-8")
            self.assertEqual(path_exists(p), True)

    def test_missing_parent_is_none(self) -> None:
        self.assertIsNone(path_exists(Path("/this/path/does/not/exist/song.lrc")))

    def test_overlong_name_does_not_raise(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            p = Path(tmpdir) / ("a" * 400 + ".lrc")
            self.assertEqual(path_exists(p), False)


if __name__ == "__main__":
    unittest.main()
