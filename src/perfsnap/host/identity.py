"""Sensor identity lookup used to name the archive."""

import logging
import re
import subprocess
from dataclasses import dataclass

logger = logging.getLogger(__name__)

UNSET = "unset"

_TOKEN_RE = re.compile(r"[a-zA-Z0-9]+")


@dataclass(frozen=True)
class HostIdentity:
    """Customer and agent identifiers reported by the sensor control tool."""

    cid: str = UNSET
    aid: str = UNSET


def _query(tool: str, flag: str) -> str:
    """Return the last alphanumeric token printed by ``tool -g <flag>``."""
    try:
        result = subprocess.run(
            [tool, "-g", flag],
            capture_output=True,
            text=True,
            errors="replace",
            timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug(f"Identity query {flag} failed: {e}")
        return ""

    if result.returncode != 0:
        logger.debug(
            f"Identity query {flag} exited with code {result.returncode}"
        )
        return ""

    tokens = _TOKEN_RE.findall(result.stdout)
    return tokens[-1] if tokens else ""


def resolve_identity(tool: str) -> HostIdentity:
    """Resolve the host identifiers, falling back to ``unset``.

    The control tool prints e.g. ``cid="0123abcd"`` or ``aid is not set``;
    the latter yields the token ``set`` which is treated as missing.
    """
    cid = _query(tool, "--cid") or UNSET
    aid = _query(tool, "--aid")
    if not aid or aid == "set":
        aid = UNSET

    if UNSET in (cid, aid):
        logger.info(f"Host identity incomplete (cid={cid}, aid={aid})")
    return HostIdentity(cid=cid, aid=aid)
