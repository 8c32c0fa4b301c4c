"""Probe which perf event families and options this host supports."""

import logging
import re
import subprocess
from dataclasses import dataclass

import psutil

logger = logging.getLogger(__name__)

# "  sched:sched_switch   [Tracepoint event]" -> "sched"
_TRACEPOINT_RE = re.compile(r"^\s*([A-Za-z0-9_]+):[A-Za-z0-9_]+")
# "  context-switches OR cs   [Software event]" -> "context-switches"
_SYMBOLIC_RE = re.compile(r"^\s*([a-z][a-z0-9-]*)\b.*\[[A-Za-z ]*event\]")


@dataclass(frozen=True)
class CapabilitySet:
    """Event families and tool options available on this host.

    ``listing`` is the raw ``perf list`` output and ``tool_help`` the raw
    ``perf --help`` output. Both are empty when the probe failed.
    """

    listing: str = ""
    tool_help: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.listing.strip()

    @property
    def categories(self) -> frozenset[str]:
        """Tracepoint subsystems and symbolic event names in the listing."""
        found: set[str] = set()
        for line in self.listing.splitlines():
            match = _TRACEPOINT_RE.match(line) or _SYMBOLIC_RE.match(line)
            if match:
                found.add(match.group(1))
        return frozenset(found)

    def supports(self, tag: str) -> bool:
        """Substring match of ``tag`` against the raw listing."""
        return bool(tag) and tag in self.listing

    def supports_option(self, option: str) -> bool:
        return bool(option) and option in self.tool_help


class CapabilityProber:
    """Run the read-only perf queries once per run."""

    def __init__(self, perf_binary: str = "perf", timeout_s: int = 120) -> None:
        self.perf_binary = perf_binary
        self.timeout_s = timeout_s

    def _capture(self, args: list[str]) -> str:
        cmd = [self.perf_binary, *args]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout_s,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning(f"Capability query `{' '.join(cmd)}` failed: {e}")
            return ""
        if result.returncode != 0:
            logger.warning(
                f"Capability query `{' '.join(cmd)}` exited with code "
                f"{result.returncode}"
            )
        # perf --help exits non-zero on some versions but still prints usage
        return result.stdout

    def probe(self) -> CapabilitySet:
        """Query the host; never raises, degrades to an empty set."""
        capabilities = CapabilitySet(
            listing=self._capture(["list"]),
            tool_help=self._capture(["--help"]),
        )
        if capabilities.is_empty:
            logger.warning("No perf events reported; optional collection disabled")
        else:
            logger.info(
                f"Probed {len(capabilities.categories)} perf event categories"
            )
        return capabilities


def find_target_pids(name: str) -> tuple[int, ...]:
    """Pids of running processes whose name contains ``name``, sorted."""
    pids = []
    for proc in psutil.process_iter(["pid", "name"]):
        proc_name = proc.info.get("name") or ""
        if name and name in proc_name:
            pids.append(proc.info["pid"])
    return tuple(sorted(pids))
