"""Utility functions for the bootstrap tool."""
import logging
import os
import shutil
import sys
from pathlib import Path
from typing import Set, Union

LOGGER_NAME = "qyksys"

logger = logging.getLogger(LOGGER_NAME)


class BootstrapFormatter(logging.Formatter):
    """Prefix every line the way the shell bootstrap always did."""

    PREFIXES = {
        logging.WARNING: "[bootstrap][warning]",
        logging.ERROR: "[bootstrap][error]",
        logging.CRITICAL: "[bootstrap][error]",
    }

    def __init__(self) -> None:
        super().__init__("%(message)s")

    def format(self, record: logging.LogRecord) -> str:
        prefix = self.PREFIXES.get(record.levelno, "[bootstrap]")
        return f"{prefix} {super().format(record)}"


def command_exists(command: str) -> bool:
    """Check if a command exists in the system PATH."""
    return shutil.which(command) is not None


def is_root() -> bool:
    """Check if the script is running as root."""
    return os.geteuid() == 0


def get_user_groups() -> Set[str]:
    """Names of the groups the current process belongs to."""
    import grp

    names = set()
    for gid in os.getgroups():
        try:
            names.add(grp.getgrgid(gid).gr_name)
        except KeyError:
            continue
    return names


def has_controlling_terminal() -> bool:
    """Check whether an interactive terminal is attached."""
    if sys.stdin is not None and sys.stdin.isatty():
        return True
    try:
        with open("/dev/tty"):
            return True
    except OSError:
        return False


def ensure_path(directory: Union[str, Path]) -> None:
    """Prepend a directory to PATH unless it is already there."""
    directory = str(directory)
    entries = os.environ.get('PATH', '').split(os.pathsep)
    if directory not in entries:
        os.environ['PATH'] = os.pathsep.join([directory] + [e for e in entries if e])


def log_info(message: str) -> None:
    """Log an informational message."""
    logger.info(message)


def log_action(message: str) -> None:
    """Log an action being performed."""
    logger.info(f"  -> {message}")


def log_debug(message: str) -> None:
    logger.debug(message)


def log_warning(message: str) -> None:
    logger.warning(message)


def log_error(message: str) -> None:
    """Log a fatal diagnostic."""
    logger.error(message)


def setup_logging(verbose: bool = False) -> None:
    """Send bootstrap logs to stderr, debug output only when verbose."""
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(BootstrapFormatter())
        logger.addHandler(handler)
