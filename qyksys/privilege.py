"""Run commands as root via whatever mechanism the host offers."""
import os
import shlex
import sys

import sh

from qyksys.errors import PrivilegeError
from qyksys.utils import (
    command_exists, get_user_groups, has_controlling_terminal, is_root, log_debug, log_info,
)

SUDO_GROUPS = ("sudo", "wheel", "admin")


def can_use_sudo() -> bool:
    """Check for sudo plus membership in a group allowed to use it."""
    if not command_exists('sudo'):
        return False
    return bool(get_user_groups() & set(SUDO_GROUPS))


def su_command_line(command: str, *args: str) -> str:
    """Build the ``su -c`` script: stay in the current directory, quote everything."""
    cwd = shlex.quote(os.getcwd())
    return f"cd {cwd} && {shlex.join([command, *args])}"


def run_privileged(command: str, *args: str) -> None:
    """Run a command with root privileges.

    Tries, in order: already root, sudo (for members of an admin group),
    then su, which needs a terminal to ask for the root password. The
    choice is made on every call.
    """
    if is_root():
        log_debug(f"Running as root: {command}")
        sh.Command(command)(*args, _fg=True)
        return

    if can_use_sudo():
        log_debug(f"Elevating with sudo: {command}")
        sh.sudo(command, *args, _fg=True)
        return

    if command_exists('su'):
        log_info("Elevating with su because current user lacks sudo group membership")
        if not has_controlling_terminal():
            raise PrivilegeError(
                "Elevating with su requires an interactive terminal. "
                "Rerun from a terminal or as root."
            )
        script = su_command_line(command, *args)
        if sys.stdin is not None and sys.stdin.isatty():
            sh.su("root", "-c", script, _fg=True)
        else:
            with open("/dev/tty") as tty:
                sh.su("root", "-c", script, _in=tty, _out=sys.stdout, _err=sys.stderr)
        return

    raise PrivilegeError(
        "This step requires elevated privileges and neither usable sudo nor su was found."
    )
