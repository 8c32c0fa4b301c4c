"""Tests for archive packaging."""

import tarfile
from datetime import datetime
from unittest.mock import patch

import pytest

from perfsnap.host.identity import HostIdentity
from perfsnap.storage.archive import ArchiveError, ArtifactArchiver, archive_name


class TestArchiveName:
    def test_format(self):
        name = archive_name(
            HostIdentity(cid="abc123", aid="def456"), datetime(2026, 3, 9, 14, 5)
        )
        assert name == "perf-abc123-def456-2026-03-09-14-05.tar.xz"

    def test_unset_identity(self):
        name = archive_name(HostIdentity(), datetime(2026, 1, 1, 0, 0))
        assert name.startswith("perf-unset-unset-")


class TestArtifactArchiver:
    def test_archives_work_dir(self, tmp_path):
        work_dir = tmp_path / "perf_measurement"
        (work_dir / "proc").mkdir(parents=True)
        (work_dir / "perf_stats.txt").write_text("stats")
        (work_dir / "proc" / "kallsyms").write_text("syms")

        path = ArtifactArchiver(tmp_path / "out").archive(work_dir, HostIdentity())

        assert path.parent == tmp_path / "out"
        assert path.name.endswith(".tar.xz")
        with tarfile.open(path, "r:xz") as tar:
            names = tar.getnames()
        assert "perf_measurement/perf_stats.txt" in names
        assert "perf_measurement/proc/kallsyms" in names
        # Working directory is left in place
        assert work_dir.is_dir()

    def test_timestamp_taken_at_archive_time(self, tmp_path):
        work_dir = tmp_path / "w"
        work_dir.mkdir()
        fixed = datetime(2030, 5, 6, 7, 8)
        with patch("perfsnap.storage.archive.datetime") as mock_dt:
            mock_dt.now.return_value = fixed
            path = ArtifactArchiver(tmp_path).archive(work_dir, HostIdentity("c", "a"))
        assert path.name == "perf-c-a-2030-05-06-07-08.tar.xz"

    def test_missing_work_dir_raises(self, tmp_path):
        archiver = ArtifactArchiver(tmp_path)
        with pytest.raises(ArchiveError):
            archiver.archive(tmp_path / "missing", HostIdentity())
        assert list(tmp_path.glob("*.tar.xz")) == []

    def test_output_dir_inside_work_dir(self, tmp_path):
        work_dir = tmp_path / "perf_measurement"
        work_dir.mkdir()
        (work_dir / "perf_stats.txt").write_text("stats")

        path = ArtifactArchiver(work_dir / "out").archive(work_dir, HostIdentity())

        with tarfile.open(path, "r:xz") as tar:
            names = tar.getnames()
        assert "perf_measurement/perf_stats.txt" in names
        assert f"perf_measurement/out/{path.name}" not in names
        assert "perf_measurement/out" in names
