"""Per-run context shared by every collection step."""

from dataclasses import dataclass
from pathlib import Path

from .identity import HostIdentity


@dataclass(frozen=True)
class RunContext:
    """Read-only facts about the current run, created once at start."""

    identity: HostIdentity
    duration_s: int
    work_dir: Path

    def __post_init__(self) -> None:
        if self.duration_s < 1:
            raise ValueError(f"duration_s must be positive, got {self.duration_s}")

    def artifact(self, name: str) -> Path:
        """Path of a named artifact inside the working directory."""
        return self.work_dir / name
