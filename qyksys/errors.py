"""Errors raised by the bootstrap steps."""
from pathlib import Path
from typing import Optional


class BootstrapError(RuntimeError):
    """A fatal bootstrap condition; the CLI reports it and exits non-zero."""

    exit_code = 1

    def __init__(self, message: str, log_path: Optional[Path] = None):
        super().__init__(message)
        self.log_path = log_path


class MissingToolError(BootstrapError):
    """A package manager or required command is not available."""


class UnsupportedPlatformError(BootstrapError):
    """The host OS is not one we know how to install packages on."""


class AcquisitionError(BootstrapError):
    """The provisioning repository could not be located or fetched."""


class PrivilegeError(BootstrapError):
    """No usable way to run a command as root."""


class SecretError(BootstrapError):
    """The vault password file could not be restored."""


class InvalidProfileError(BootstrapError):
    pass


class CollectionInstallError(BootstrapError):
    pass


class PlaybookError(BootstrapError):
    """ansible-playbook exited non-zero."""

    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        self.exit_code = exit_code
