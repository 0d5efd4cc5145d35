"""Bootstrap workflow steps."""
import os
from contextlib import ExitStack
from pathlib import Path
from typing import Sequence

import sh
from sh import ErrorReturnCode

from qyksys.config import COLLECTIONS_REQUIREMENTS, GALAXY_LOG, INVENTORY, PLAYBOOK, VAULT_SEED, BootstrapConfig
from qyksys.errors import CollectionInstallError, PlaybookError
from qyksys.installer import RUNTIME_TOOLS, ensure_tools
from qyksys.profiles import resolve_profile
from qyksys.repo import locate_repository
from qyksys.utils import log_debug, log_info
from qyksys.vault import resolve_vault_password


def install_collections(repo_dir: Path) -> None:
    """Install the Ansible collections the repository asks for, if any."""
    requirements = repo_dir / COLLECTIONS_REQUIREMENTS
    if not requirements.is_file():
        log_debug(f"No {COLLECTIONS_REQUIREMENTS}; skipping collection install")
        return

    log_info("Installing required Ansible collections")
    try:
        sh.Command("ansible-galaxy")(
            "collection", "install", "-r", str(requirements),
            _out=str(GALAXY_LOG), _err_to_out=True,
        )
    except ErrorReturnCode as e:
        raise CollectionInstallError(
            f"Collection install failed. See {GALAXY_LOG}", log_path=GALAXY_LOG
        ) from e


def run_playbook(repo_dir: Path, vault_file: Path, profile: str, extra_args: Sequence[str] = ()) -> None:
    """Apply the site playbook to the local inventory with the chosen profile."""
    log_info(f"Running Ansible profile: {profile}")
    try:
        sh.Command("ansible-playbook")(
            "-i", str(repo_dir / INVENTORY),
            str(repo_dir / PLAYBOOK),
            "--vault-password-file", str(vault_file),
            "-e", f"profile={profile}",
            *extra_args,
            _fg=True,
        )
    except ErrorReturnCode as e:
        raise PlaybookError(
            f"ansible-playbook exited with code {e.exit_code}", exit_code=e.exit_code
        ) from e


def bootstrap(config: BootstrapConfig) -> None:
    """Main bootstrap workflow, from dependencies to the playbook run."""
    # Phase 1: Ansible itself
    ensure_tools(RUNTIME_TOOLS)

    with ExitStack() as stack:
        # Phase 2: provisioning repository; a temporary clone lives until the run ends
        repo_dir = locate_repository(config, stack)
        stack.callback(os.chdir, os.getcwd())
        os.chdir(repo_dir)

        # Phase 3: collections
        install_collections(repo_dir)

        # Phase 4: vault password
        vault_file = resolve_vault_password(
            repo_dir / VAULT_SEED, config.vault_file, password=config.bootstrap_password
        )

        # Phase 5: profile and playbook run
        profile = resolve_profile(config.profile, config.default_profile)
        run_playbook(repo_dir, vault_file, profile, config.extra_args)
