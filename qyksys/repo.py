"""Find or fetch a usable checkout of the provisioning repository."""
import tempfile
from contextlib import ExitStack, contextmanager
from pathlib import Path
from typing import Iterator

import sh
from sh import ErrorReturnCode

from qyksys import installer
from qyksys.config import (
    CLONE_LOG, DOWNLOAD_LOG, EXTRACT_LOG, INVENTORY, PLAYBOOK, ROLES_DIR, VAULT_SEED, BootstrapConfig,
)
from qyksys.errors import AcquisitionError, MissingToolError
from qyksys.utils import command_exists, log_action, log_debug, log_info


def is_repo_ready(path: Path) -> bool:
    """Check that a directory holds the playbook, roles, vault seed and inventory."""
    path = Path(path)
    return (
        (path / PLAYBOOK).is_file()
        and (path / ROLES_DIR).is_dir()
        and (path / VAULT_SEED).is_file()
        and (path / INVENTORY).is_file()
    )


def clone_repository(url: str, ref: str, dest: Path) -> None:
    """Shallow-clone ``ref`` of ``url`` into ``dest``."""
    log_action(f"Cloning {url} ({ref})")
    try:
        sh.git("clone", "--depth", "1", "--branch", ref, url, str(dest), _err=str(CLONE_LOG))
    except ErrorReturnCode as e:
        raise AcquisitionError(
            f"git clone of {url} failed. See {CLONE_LOG} for details.", log_path=CLONE_LOG
        ) from e


def download_repository(archive_url: str, dest: Path) -> None:
    """Fetch and unpack a tarball snapshot into ``dest``."""
    log_action(f"Downloading {archive_url}")
    dest.mkdir(parents=True, exist_ok=True)
    archive = dest.parent / "repo.tar.gz"
    try:
        sh.curl("-fsSL", archive_url, "-o", str(archive), _err=str(DOWNLOAD_LOG))
    except ErrorReturnCode as e:
        raise AcquisitionError(
            f"Download of {archive_url} failed. See {DOWNLOAD_LOG} for details.",
            log_path=DOWNLOAD_LOG,
        ) from e

    try:
        sh.tar("-xzf", str(archive), "-C", str(dest), "--strip-components=1", _err=str(EXTRACT_LOG))
    except ErrorReturnCode as e:
        raise AcquisitionError(
            f"Unable to extract {archive}. See {EXTRACT_LOG} for details.", log_path=EXTRACT_LOG
        ) from e
    finally:
        archive.unlink(missing_ok=True)


def acquire_repository(config: BootstrapConfig, dest: Path) -> None:
    """Fetch the repository, preferring git over an archive download."""
    if command_exists('git'):
        clone_repository(config.repo_url, config.repo_ref, dest)
    elif command_exists('curl') and command_exists('tar'):
        log_debug("git not found, falling back to archive download")
        download_repository(config.archive_url, dest)
    else:
        log_info("Neither git nor curl and tar are available; installing git")
        try:
            installer.ensure_tools(("git",))
        except MissingToolError as e:
            raise MissingToolError(
                f"Cannot fetch {config.repo_url}: install git, or curl and tar. ({e})"
            ) from e
        clone_repository(config.repo_url, config.repo_ref, dest)


@contextmanager
def located_repository(config: BootstrapConfig) -> Iterator[Path]:
    """Yield a ready repository path, cleaning up any temporary clone on exit."""
    if is_repo_ready(config.candidate_dir):
        log_debug(f"Using repository at {config.candidate_dir}")
        yield config.candidate_dir
        return

    if config.repo_dir is not None:
        # Absolute, since the workflow changes into the repository afterwards
        repo_dir = config.repo_dir.resolve()
        if not is_repo_ready(repo_dir):
            raise AcquisitionError(
                f"QYKSYS_REPO_DIR={config.repo_dir} is not a usable provisioning repository."
            )
        log_debug(f"Using repository from QYKSYS_REPO_DIR at {repo_dir}")
        yield repo_dir
        return

    with tempfile.TemporaryDirectory(prefix="qyksys-") as tmp:
        dest = Path(tmp) / "repo"
        log_info(f"Repository not found locally; fetching into {tmp}")
        acquire_repository(config, dest)
        if not is_repo_ready(dest):
            raise AcquisitionError(
                f"Fetched repository from {config.repo_url} ({config.repo_ref}) is missing "
                "required playbooks, roles, inventory or vault seed."
            )
        yield dest


def locate_repository(config: BootstrapConfig, stack: ExitStack) -> Path:
    """Locate the repository, tying temporary-clone cleanup to ``stack``."""
    return stack.enter_context(located_repository(config))
