"""Tests for working directory setup."""

from perfsnap.storage.workdir import prepare_work_dir, write_note


class TestPrepareWorkDir:
    def test_creates_directory(self, tmp_path):
        work_dir = prepare_work_dir(tmp_path / "perf_measurement")
        assert work_dir.is_dir()
        assert list(work_dir.iterdir()) == []

    def test_stale_contents_removed(self, tmp_path):
        work_dir = tmp_path / "perf_measurement"
        (work_dir / "nested").mkdir(parents=True)
        (work_dir / "stale.txt").write_text("old run")
        (work_dir / "nested" / "old.data").write_text("old samples")

        prepare_work_dir(work_dir)

        assert work_dir.is_dir()
        assert list(work_dir.iterdir()) == []

    def test_file_in_the_way_replaced(self, tmp_path):
        work_dir = tmp_path / "perf_measurement"
        work_dir.write_text("not a directory")
        prepare_work_dir(work_dir)
        assert work_dir.is_dir()


class TestWriteNote:
    def test_appends_newline(self, tmp_path):
        note = write_note(tmp_path, "note.txt", "hello")
        assert note.read_text() == "hello\n"

    def test_creates_parents(self, tmp_path):
        note = write_note(tmp_path, "proc/error.txt", "denied\n")
        assert note.read_text() == "denied\n"
