"""Tests for perf package installation."""

from unittest.mock import MagicMock, patch

import pytest

from perfsnap.host.packages import (
    AptPackageManager,
    PackageInstallError,
    UnsupportedDistributionError,
    YumPackageManager,
    ZypperPackageManager,
    detect_package_manager,
    ensure_package,
)


def _release_files(*present):
    def exists(self):
        return str(self) in present

    return exists


class TestDetectPackageManager:
    @pytest.mark.parametrize(
        "release_file,expected",
        [
            ("/etc/redhat-release", YumPackageManager),
            ("/etc/debian_version", AptPackageManager),
            ("/etc/SuSE-release", ZypperPackageManager),
            ("/etc/system-release", YumPackageManager),
        ],
    )
    def test_release_file_selects_manager(self, release_file, expected):
        with patch("pathlib.Path.exists", _release_files(release_file)):
            assert isinstance(detect_package_manager(), expected)

    def test_redhat_wins_over_system_release(self):
        with patch(
            "pathlib.Path.exists",
            _release_files("/etc/system-release", "/etc/redhat-release"),
        ):
            assert isinstance(detect_package_manager(), YumPackageManager)

    def test_unknown_distribution(self):
        with patch("pathlib.Path.exists", _release_files()):
            with pytest.raises(UnsupportedDistributionError):
                detect_package_manager()


class TestManagers:
    def test_apt_maps_devel_suffix(self):
        apt = AptPackageManager()
        assert apt.package_name("elfutils-devel") == "elfutils-dev"
        assert apt.install_command("perf") == [
            "apt-get", "-y", "install", "--no-install-recommends", "perf"
        ]

    @patch("perfsnap.host.packages.shutil.which", return_value="/usr/bin/dnf")
    def test_yum_prefers_dnf(self, mock_which):
        assert YumPackageManager().install_command("perf")[0] == "dnf"

    @patch("perfsnap.host.packages.shutil.which", return_value=None)
    def test_yum_fallback(self, mock_which):
        assert YumPackageManager().install_command("perf") == ["yum", "-y", "install", "perf"]

    @patch("perfsnap.host.packages.subprocess.run")
    def test_install_failure_raises(self, mock_run):
        mock_run.return_value = MagicMock(returncode=100, stderr="E: Unable to locate package")
        with pytest.raises(PackageInstallError, match="exited with code 100"):
            AptPackageManager().install("perf")

    @patch("perfsnap.host.packages.subprocess.run", side_effect=FileNotFoundError("zypper"))
    def test_install_missing_tool_raises(self, mock_run):
        with pytest.raises(PackageInstallError):
            ZypperPackageManager().install("perf")


class TestEnsurePackage:
    def test_already_installed(self):
        manager = MagicMock()
        manager.is_installed.return_value = True
        assert ensure_package("perf", manager) is False
        manager.install.assert_not_called()

    def test_installs_when_missing(self):
        manager = MagicMock()
        manager.is_installed.return_value = False
        assert ensure_package("perf", manager) is True
        manager.install.assert_called_once_with("perf")
