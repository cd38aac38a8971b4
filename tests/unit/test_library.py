import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

import pymupdf
from watchdog.events import FileCreatedEvent, FileModifiedEvent

from course_tree.config import Settings
from course_tree.errors import InvalidRootError, RootNotSetError, ScanError
from course_tree.library import CourseLibrary


def make_pdf(path: Path, pages: int) -> None:
    doc = pymupdf.open()
    for _ in range(pages):
        doc.new_page()
    doc.save(str(path))
    doc.close()


class TestCourseLibrary(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve()

        observer_patcher = patch("course_tree.watcher.Observer")
        self.observer_cls = observer_patcher.start()
        self.addCleanup(observer_patcher.stop)

        self.library = CourseLibrary(Settings(probe_workers=2))

    def tearDown(self):
        self.library.close()
        self._tmp.cleanup()

    def touch(self, rel_path: str, content: str = "content"):
        path = self.root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path

    def build_example_course(self):
        (self.root / "Unit1").mkdir()
        (self.root / "Unit1" / "lecture.mp4").write_bytes(b"\x00\x00\x00\x18ftypmp42")
        make_pdf(self.root / "Unit1" / "slides.pdf", 12)
        self.touch("Unit2/notes.txt")

    @patch("course_tree.probes.subprocess.run")
    def test_end_to_end_example(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout='{"format": {"duration": "300.0"}}')
        self.build_example_course()

        self.library.set_root(self.root)
        modules = self.library.get_tree()

        self.assertEqual([m.name for m in modules], ["Unit1", "Unit2"])
        self.assertEqual(
            [(f.name, f.kind, f.meta) for f in modules[0].files],
            [("lecture.mp4", "video", "300s"), ("slides.pdf", "pdf", "12 pages")],
        )
        self.assertEqual([(f.name, f.kind, f.meta) for f in modules[1].files], [("notes.txt", "other", None)])

    def test_empty_root(self):
        self.library.set_root(self.root)
        self.assertEqual(self.library.get_tree(), [])
        self.assertEqual(self.library.get_flat_list(), [])
        self.assertIsNone(self.library.select_entry())

    def test_get_tree_without_root(self):
        with self.assertRaises(RootNotSetError):
            self.library.get_tree()

    def test_set_root_watches_root_and_children(self):
        self.touch("Unit1/a.txt")
        self.touch("Unit2/b.txt")

        self.library.set_root(self.root)

        self.assertEqual(
            self.library.watcher.watched_paths,
            [self.root, self.root / "Unit1", self.root / "Unit2"],
        )

    def test_get_tree_is_cached(self):
        self.touch("Unit1/a.txt")
        self.library.set_root(self.root)

        first = self.library.get_tree()
        second = self.library.get_tree()

        self.assertIs(first, second)
        self.assertEqual(self.library.cache.scan_count, 1)

    def test_filesystem_event_forces_rescan(self):
        self.touch("Unit1/a.txt")
        self.library.set_root(self.root)
        self.library.get_tree()

        # Content unchanged, but any event invalidates
        self.library.watcher.handler.dispatch(FileModifiedEvent(str(self.root / "Unit1" / "a.txt")))
        self.library.get_tree()

        self.assertEqual(self.library.cache.scan_count, 2)

    def test_new_file_appears_after_event(self):
        self.touch("Unit1/a.txt")
        self.library.set_root(self.root)
        self.assertEqual(len(self.library.get_flat_list()), 1)

        new_file = self.touch("Unit1/b.txt")
        # Still the cached snapshot until an event arrives
        self.assertEqual(len(self.library.get_flat_list()), 1)

        self.library.watcher.handler.dispatch(FileCreatedEvent(str(new_file)))
        self.assertEqual([e.name for e in self.library.get_flat_list()], ["a.txt", "b.txt"])

    def test_set_root_invalidates(self):
        self.touch("Unit1/a.txt")
        self.library.set_root(self.root)
        self.library.get_tree()

        self.library.set_root(self.root / "Unit1")
        modules = self.library.get_tree()

        self.assertEqual(self.library.cache.scan_count, 2)
        self.assertEqual(modules[0].full_path, "")

    def test_invalid_root_leaves_state_untouched(self):
        self.touch("Unit1/a.txt")
        self.library.set_root(self.root)
        tree = self.library.get_tree()
        schedule_calls = self.observer_cls.return_value.schedule.call_count

        with self.assertRaises(InvalidRootError) as ctx:
            self.library.set_root("/not/a/real/path")
        self.assertIn("/not/a/real/path", str(ctx.exception))

        self.assertEqual(self.library.root, self.root)
        self.assertIs(self.library.get_tree(), tree)
        self.assertEqual(self.library.cache.scan_count, 1)
        self.assertEqual(self.observer_cls.return_value.schedule.call_count, schedule_calls)

    def test_file_is_not_a_valid_root(self):
        path = self.touch("notes.txt")
        with self.assertRaises(InvalidRootError):
            self.library.set_root(path)
        self.assertIsNone(self.library.root)

    def test_scan_error_propagates_and_is_retried(self):
        self.touch("Unit1/a.txt")
        dangling = self.root / "Unit1" / "link.txt"
        dangling.symlink_to(self.root / "missing")
        self.library.set_root(self.root)

        with self.assertRaises(ScanError):
            self.library.get_tree()
        self.assertFalse(self.library.cache.is_valid)

        dangling.unlink()
        self.assertEqual(len(self.library.get_tree()), 1)

    def test_resolve_file_path(self):
        self.touch("Unit 1/Lesson 2/video.mp4")
        self.library.set_root(self.root)

        with patch("course_tree.probes.subprocess.run", return_value=MagicMock(returncode=1, stdout="")):
            path = self.library.resolve_file_path("Unit 1 / Lesson 2", "video.mp4")

        self.assertEqual(path, self.root / "Unit 1" / "Lesson 2" / "video.mp4")
        self.assertIsNone(self.library.resolve_file_path("Unit 1 / Lesson 2", "missing.mp4"))
        self.assertIsNone(self.library.resolve_file_path("Unit 1", "video.mp4"))

    def test_resolve_request_path(self):
        self.touch("Unit 1/video名.txt")
        self.touch("secret.txt")
        self.library.set_root(self.root / "Unit 1")

        entry = self.library.select_entry()
        self.assertEqual(entry.path, "/file/video%E5%90%8D.txt")
        self.assertEqual(self.library.resolve_request_path(entry.path), self.root / "Unit 1" / "video名.txt")

        self.assertIsNone(self.library.resolve_request_path("/file/..%2Fsecret.txt"))
        self.assertIsNone(self.library.resolve_request_path("/file/../secret.txt"))
        self.assertIsNone(self.library.resolve_request_path("/file/nope.txt"))
        self.assertIsNone(self.library.resolve_request_path("/other/video.txt"))

    def test_resolve_request_path_rejects_symlink_escape(self):
        self.touch("outside/secret.txt")
        (self.root / "course").mkdir()
        (self.root / "course" / "link.txt").symlink_to(self.root / "outside" / "secret.txt")
        self.library.set_root(self.root / "course")

        self.assertIsNone(self.library.resolve_request_path("/file/link.txt"))

    def test_selection_and_navigation(self):
        self.touch("Unit1/a.txt")
        self.touch("Unit1/b.txt")
        self.touch("Unit2/c.txt")
        self.library.set_root(self.root)

        first = self.library.select_entry()
        self.assertEqual((first.module, first.name), ("Unit1", "a.txt"))

        chosen = self.library.select_entry("Unit1", "b.txt")
        self.assertEqual(chosen.name, "b.txt")

        # Unknown selection falls back to the first entry
        fallback = self.library.select_entry("Unit9", "zzz.txt")
        self.assertEqual(fallback.name, "a.txt")

        previous, following = self.library.neighbours(chosen)
        self.assertEqual(previous.name, "a.txt")
        self.assertEqual((following.module, following.name), ("Unit2", "c.txt"))

        previous, following = self.library.neighbours(first)
        self.assertIsNone(previous)

        self.assertEqual(self.library.find_entry("Unit2", "c.txt").path, "/file/Unit2/c.txt")
        self.assertIsNone(self.library.find_entry("Unit2", "a.txt"))

    def test_close_stops_watcher(self):
        self.library.set_root(self.root)
        self.library.close()
        self.observer_cls.return_value.stop.assert_called_once()

if __name__ == '__main__':
    unittest.main()
