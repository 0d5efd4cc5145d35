"""Restore the decrypted Ansible vault password for the current user."""
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import sh
import typer
from sh import ErrorReturnCode

from qyksys.config import PASSWORD_ENV, VAULT_LOG
from qyksys.errors import SecretError
from qyksys.utils import has_controlling_terminal, log_debug, log_info


def is_restored(target: Path) -> bool:
    """A vault password file counts as restored once it exists and is non-empty."""
    return target.is_file() and target.stat().st_size > 0


def prompt_passphrase() -> str:
    """Ask for the bootstrap decryption password with echo disabled."""
    if not has_controlling_terminal():
        raise SecretError(
            f"No interactive terminal to ask for the bootstrap password. Set {PASSWORD_ENV} "
            "to run non-interactively."
        )
    return typer.prompt(
        "Vault password not found locally. Enter bootstrap decryption password",
        hide_input=True,
        err=True,
    )


@contextmanager
def passphrase_file(passphrase: str) -> Iterator[Path]:
    """Hold the passphrase in a private temporary file for the duration of the block."""
    fd, name = tempfile.mkstemp(prefix="qyksys-vault-")
    path = Path(name)
    try:
        with os.fdopen(fd, "w") as f:
            f.write(passphrase)
        yield path
    finally:
        path.unlink(missing_ok=True)


def decrypt_seed(seed: Path, target: Path, password_file: Path, log_path: Path) -> None:
    """Run ``ansible-vault view`` on the seed, writing plaintext to ``target``."""
    fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "wb") as out:
        sh.Command("ansible-vault")(
            "view", str(seed), "--vault-password-file", str(password_file),
            _out=out, _err=str(log_path),
        )


def resolve_vault_password(
    seed: Path,
    target: Path,
    password: Optional[str] = None,
    log_path: Path = VAULT_LOG,
) -> Path:
    """Make sure the decrypted vault password exists at ``target``.

    An existing non-empty file is reused as-is, so the passphrase is asked
    for at most once per machine. Otherwise the seed is decrypted with
    ``password`` or, failing that, a passphrase typed at the terminal.
    """
    target.parent.mkdir(parents=True, exist_ok=True)

    if is_restored(target):
        log_debug(f"Using existing vault password at {target}")
        return target

    if not seed.is_file():
        raise SecretError(f"Encrypted vault password seed not found at {seed}")

    passphrase = password if password is not None else prompt_passphrase()

    with passphrase_file(passphrase) as password_file:
        try:
            decrypt_seed(seed, target, password_file, log_path)
        except ErrorReturnCode as e:
            target.unlink(missing_ok=True)
            raise SecretError(
                f"Unable to decrypt vault password file. See {log_path} for details.",
                log_path=log_path,
            ) from e

    target.chmod(0o600)
    log_info(f"Vault password restored at {target}")
    return target
