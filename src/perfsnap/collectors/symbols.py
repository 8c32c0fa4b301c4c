"""Copy binaries and symbol tables needed to resolve samples elsewhere."""

import logging
import shutil
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)

KALLSYMS = Path("/proc/kallsyms")


def parse_buildid_list(text: str) -> list[Path]:
    """Absolute file paths from ``perf buildid-list`` output.

    Each line is ``<build-id> <path>``; pseudo entries such as
    ``[kernel.kallsyms]`` or ``[vdso]`` are not files and are dropped.
    """
    paths: list[Path] = []
    seen: set[str] = set()
    for line in text.splitlines():
        parts = line.strip().split(None, 1)
        if len(parts) != 2:
            continue
        candidate = parts[1].strip()
        if not candidate.startswith("/") or candidate in seen:
            continue
        seen.add(candidate)
        paths.append(Path(candidate))
    return paths


class SymbolMirror:
    """Mirror files referenced by a sample file under the working directory.

    ``/usr/lib64/libc.so.6`` is copied to ``<work_dir>/usr/lib64/libc.so.6``.
    """

    def __init__(self, perf_binary: str = "perf", timeout_s: int = 300) -> None:
        self.perf_binary = perf_binary
        self.timeout_s = timeout_s

    def referenced_files(self, data_file: Path) -> list[Path]:
        cmd = [self.perf_binary, "buildid-list", "-f", f"--input={data_file}"]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout_s,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning(f"`{' '.join(cmd)}` failed: {e}")
            return []
        if result.returncode != 0:
            logger.warning(
                f"`{' '.join(cmd)}` exited with code {result.returncode}: "
                f"{result.stderr.strip()[:200]}"
            )
        return parse_buildid_list(result.stdout)

    def mirror(self, data_file: Path, work_dir: Path) -> list[Path]:
        """Copy every referenced file that still exists; return the copies."""
        copied: list[Path] = []
        for source in self.referenced_files(data_file):
            if not source.is_file():
                continue
            dest = work_dir / source.relative_to(source.anchor)
            try:
                dest.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source, dest)
            except OSError as e:
                logger.warning(f"Could not copy {source}: {e}")
                continue
            copied.append(dest)
        logger.info(f"Mirrored {len(copied)} referenced files into {work_dir}")
        return copied


def snapshot_kallsyms(work_dir: Path, source: Path = KALLSYMS) -> Path:
    """Copy the kernel symbol table to ``<work_dir>/proc/kallsyms``.

    Read as bytes since procfs reports a zero size.
    """
    dest = work_dir / "proc" / source.name
    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_bytes(source.read_bytes())
    return dest
