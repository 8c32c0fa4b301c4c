"""Root privilege check."""

import os


class PrivilegeError(Exception):
    """Raised when the process lacks the privileges perf collection needs."""


def check_privileges() -> None:
    """Require effective uid and gid 0.

    Raises:
        PrivilegeError: If either id is non-zero.
    """
    uid = os.geteuid()
    gid = os.getegid()
    if uid != 0 or gid != 0:
        raise PrivilegeError(
            f"Must be root to run diagnostics (euid={uid}, egid={gid})"
        )
