"""Host environment collaborators: privileges, identity and packages."""

from .context import RunContext
from .identity import UNSET, HostIdentity, resolve_identity
from .packages import (
    PackageInstallError,
    PackageManager,
    UnsupportedDistributionError,
    detect_package_manager,
    ensure_package,
)
from .privileges import PrivilegeError, check_privileges

__all__ = [
    "HostIdentity",
    "PackageInstallError",
    "PackageManager",
    "PrivilegeError",
    "RunContext",
    "UNSET",
    "UnsupportedDistributionError",
    "check_privileges",
    "detect_package_manager",
    "ensure_package",
    "resolve_identity",
]
