"""Fixed-fallback installation of the profiling tool.

One package manager is selected from the distribution release files and
asked to install a single named package if it is not already present.
"""

import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger(__name__)


class UnsupportedDistributionError(Exception):
    """Raised when no package manager matches the host distribution."""


class PackageInstallError(Exception):
    """Raised when an install command fails."""


class PackageManager(ABC):
    """Query and install packages through one distribution tool."""

    name: str = ""

    def package_name(self, package: str) -> str:
        """Map a generic package name to this distribution's name."""
        return package

    @abstractmethod
    def query_command(self, package: str) -> list[str]:
        """Command exiting 0 when ``package`` is installed."""

    @abstractmethod
    def install_command(self, package: str) -> list[str]:
        """Non-interactive install command for ``package``."""

    def is_installed(self, package: str) -> bool:
        try:
            result = subprocess.run(
                self.query_command(self.package_name(package)),
                capture_output=True,
                text=True,
                errors="replace",
                timeout=60,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug(f"{self.name} query for {package} failed: {e}")
            return False
        return result.returncode == 0

    def install(self, package: str) -> None:
        """Install ``package``.

        Raises:
            PackageInstallError: If the install command is missing or fails.
        """
        cmd = self.install_command(self.package_name(package))
        logger.info(f"Installing {package}: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, errors="replace", timeout=900
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise PackageInstallError(f"Could not run {cmd[0]}: {e}") from e
        if result.returncode != 0:
            raise PackageInstallError(
                f"{' '.join(cmd)} exited with code {result.returncode}: "
                f"{result.stderr.strip()[:200]}"
            )


class YumPackageManager(PackageManager):
    """RHEL, CentOS, Fedora and Amazon Linux (prefers dnf when present)."""

    name = "yum"

    def query_command(self, package: str) -> list[str]:
        return ["rpm", "-q", package]

    def install_command(self, package: str) -> list[str]:
        tool = "dnf" if shutil.which("dnf") else "yum"
        return [tool, "-y", "install", package]


class ZypperPackageManager(PackageManager):
    """SuSE and openSUSE."""

    name = "zypper"

    def query_command(self, package: str) -> list[str]:
        return ["rpm", "-q", package]

    def install_command(self, package: str) -> list[str]:
        return ["zypper", "--non-interactive", "install", package]


class AptPackageManager(PackageManager):
    """Debian and Ubuntu."""

    name = "apt"

    def package_name(self, package: str) -> str:
        return package.replace("-devel", "-dev")

    def query_command(self, package: str) -> list[str]:
        return ["dpkg", "-s", package]

    def install_command(self, package: str) -> list[str]:
        return ["apt-get", "-y", "install", "--no-install-recommends", package]


# Checked in order; the first existing release file wins.
_RELEASE_FILES: list[tuple[str, type[PackageManager]]] = [
    ("/etc/redhat-release", YumPackageManager),
    ("/etc/debian_version", AptPackageManager),
    ("/etc/SuSE-release", ZypperPackageManager),
    ("/etc/system-release", YumPackageManager),
]


def detect_package_manager() -> PackageManager:
    """Select the package manager for this host.

    Raises:
        UnsupportedDistributionError: If no known release file exists.
    """
    for release_file, manager_cls in _RELEASE_FILES:
        if Path(release_file).exists():
            logger.debug(f"Found {release_file}, using {manager_cls.name}")
            return manager_cls()
    raise UnsupportedDistributionError(
        "Unknown distribution, cannot install collection tools"
    )


def ensure_package(package: str, manager: PackageManager | None = None) -> bool:
    """Install ``package`` unless it is already present.

    Returns:
        True if an install was performed, False if it was already installed.
    """
    manager = manager or detect_package_manager()
    if manager.is_installed(package):
        logger.info(f"Already installed: {package}")
        return False
    manager.install(package)
    return True
