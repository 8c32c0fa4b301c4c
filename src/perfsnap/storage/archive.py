"""Compressed archive of the working directory."""

import logging
import tarfile
from datetime import datetime
from pathlib import Path
from typing import Optional

from perfsnap.host.identity import HostIdentity

logger = logging.getLogger(__name__)

ARCHIVE_EXTENSION = "tar.xz"


class ArchiveError(Exception):
    """Raised when the final archive cannot be formed."""


def archive_name(identity: HostIdentity, when: Optional[datetime] = None) -> str:
    """``perf-<cid>-<aid>-<YYYY-MM-DD-HH-MM>.tar.xz``."""
    when = when or datetime.now()
    return (
        f"perf-{identity.cid}-{identity.aid}-"
        f"{when.strftime('%Y-%m-%d-%H-%M')}.{ARCHIVE_EXTENSION}"
    )


def _member_name(path: Path, work_dir: Path) -> Optional[str]:
    """Name ``path`` would get inside an archive of ``work_dir``, if any."""
    try:
        relative = path.resolve().relative_to(work_dir.resolve())
    except ValueError:
        return None
    return f"{work_dir.name}/{relative.as_posix()}"


class ArtifactArchiver:
    """Package the working directory into one xz-compressed tarball."""

    def __init__(self, output_dir: Path = Path(".")) -> None:
        self.output_dir = output_dir

    def archive(self, work_dir: Path, identity: HostIdentity) -> Path:
        """Create the archive and return its path.

        The name is stamped with the current time, not the run start.
        The working directory is left in place.

        Raises:
            ArchiveError: On any filesystem or tar failure.
        """
        path = self.output_dir / archive_name(identity)
        logger.info(f"Creating {path} from {work_dir}")
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            skip = _member_name(path, work_dir)
            with tarfile.open(path, "w:xz") as tar:
                tar.add(
                    work_dir,
                    arcname=work_dir.name,
                    filter=lambda info: None if info.name == skip else info,
                )
        except (OSError, tarfile.TarError) as e:
            if path.exists():
                path.unlink()
            raise ArchiveError(f"Failed to create archive {path}: {e}") from e
        return path
