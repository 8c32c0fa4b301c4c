"""Working directory management and final archive packaging."""

from .archive import ArchiveError, ArtifactArchiver, archive_name
from .workdir import prepare_work_dir, write_note

__all__ = [
    "ArchiveError",
    "ArtifactArchiver",
    "archive_name",
    "prepare_work_dir",
    "write_note",
]
