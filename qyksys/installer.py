"""Install Ansible and helper tools with the host's native package manager."""
import platform
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

import sh
from sh import ErrorReturnCode

from qyksys.errors import MissingToolError, UnsupportedPlatformError
from qyksys.privilege import run_privileged
from qyksys.utils import command_exists, ensure_path, log_action, log_debug, log_info, log_warning

RUNTIME_TOOLS = ("ansible-playbook", "ansible-vault", "ansible-galaxy")

USER_BIN = Path.home() / ".local" / "bin"


class OsFamily(Enum):
    LINUX = "linux"
    MACOS = "macos"
    WINDOWS = "windows"


def detect_os_family(system: Optional[str] = None) -> OsFamily:
    """Map ``platform.system()`` onto a supported OS family."""
    if system is None:
        system = platform.system()

    if system.startswith('Linux'):
        return OsFamily.LINUX
    if system.startswith('Darwin'):
        return OsFamily.MACOS
    if system == 'Windows' or system.upper().startswith(('CYGWIN', 'MINGW', 'MSYS')):
        return OsFamily.WINDOWS
    raise UnsupportedPlatformError(f"Unsupported OS: {system}. Install Ansible manually and rerun.")


class PackageManager:
    """A native package manager able to provide some of our tools."""

    name = ""
    command = ""
    packages: Dict[str, str] = {
        "ansible-playbook": "ansible",
        "ansible-vault": "ansible",
        "ansible-galaxy": "ansible",
        "git": "git",
        "curl": "curl",
        "tar": "tar",
    }

    def is_available(self) -> bool:
        return command_exists(self.command)

    def packages_for(self, tools: Iterable[str]) -> List[str]:
        """Packages providing ``tools``, deduplicated, in first-seen order."""
        packages: List[str] = []
        for tool in tools:
            package = self.packages.get(tool)
            if package is None:
                raise MissingToolError(
                    f"{self.name} cannot install {tool}. Install it manually and rerun."
                )
            if package not in packages:
                packages.append(package)
        return packages

    def install(self, packages: Sequence[str]) -> None:
        raise NotImplementedError


class Apt(PackageManager):
    name = "apt"
    command = "apt-get"

    def install(self, packages: Sequence[str]) -> None:
        run_privileged("apt-get", "update", "-y")
        run_privileged("apt-get", "install", "-y", *packages)


class Dnf(PackageManager):
    name = "dnf"
    command = "dnf"

    def install(self, packages: Sequence[str]) -> None:
        run_privileged("dnf", "install", "-y", *packages)


class Pacman(PackageManager):
    name = "pacman"
    command = "pacman"

    def install(self, packages: Sequence[str]) -> None:
        run_privileged("pacman", "-Sy", "--noconfirm", *packages)


class Zypper(PackageManager):
    name = "zypper"
    command = "zypper"

    def install(self, packages: Sequence[str]) -> None:
        run_privileged("zypper", "-n", "install", *packages)


class Homebrew(PackageManager):
    name = "Homebrew"
    command = "brew"

    def install(self, packages: Sequence[str]) -> None:
        sh.brew("install", *packages, _fg=True)


class Pipx(PackageManager):
    name = "pipx"
    command = "pipx"
    packages = {
        "ansible-playbook": "ansible-core",
        "ansible-vault": "ansible-core",
        "ansible-galaxy": "ansible-core",
    }

    def install(self, packages: Sequence[str]) -> None:
        for package in packages:
            try:
                sh.pipx("install", "--include-deps", package)
            except ErrorReturnCode:
                log_debug(f"pipx install {package} failed, trying reinstall")
                try:
                    sh.pipx("reinstall", package)
                except ErrorReturnCode as e:
                    # The post-install check reports what is still missing.
                    log_warning(f"pipx could not install {package}: exit code {e.exit_code}")


# Probed in this order; the first one present wins.
LINUX_PACKAGE_MANAGERS = (Apt, Dnf, Pacman, Zypper)


def select_package_manager(family: OsFamily) -> PackageManager:
    """Pick the package manager strategy for an OS family."""
    if family is OsFamily.LINUX:
        for manager_class in LINUX_PACKAGE_MANAGERS:
            manager = manager_class()
            if manager.is_available():
                return manager
        raise MissingToolError(
            "Unsupported package manager. Install Ansible manually or ensure "
            "ansible-playbook is on PATH."
        )

    if family is OsFamily.MACOS:
        manager = Homebrew()
        if manager.is_available():
            return manager
        raise MissingToolError(
            "Homebrew not found. Install Homebrew or Ansible manually before rerunning bootstrap."
        )

    manager = Pipx()
    if manager.is_available():
        return manager
    raise MissingToolError(
        "pipx not found. Install pipx (https://pipx.pypa.io) or Ansible manually "
        "before rerunning bootstrap."
    )


def ensure_tools(tools: Sequence[str] = RUNTIME_TOOLS) -> None:
    """Make sure every tool resolves on PATH, installing packages if needed."""
    ensure_path(USER_BIN)
    missing = [tool for tool in tools if not command_exists(tool)]
    if not missing:
        log_debug(f"Already installed: {', '.join(tools)}")
        return

    manager = select_package_manager(detect_os_family())
    packages = manager.packages_for(missing)
    log_info(f"Installing {', '.join(packages)} via {manager.name}")
    try:
        manager.install(packages)
    except ErrorReturnCode as e:
        raise MissingToolError(
            f"{manager.name} failed to install {', '.join(packages)} (exit code {e.exit_code})."
        ) from e

    ensure_path(USER_BIN)
    for tool in missing:
        if not command_exists(tool):
            raise MissingToolError(
                f"{tool} not found after installation attempt. Please install it and rerun."
            )
        log_action(f"{tool} is available")
