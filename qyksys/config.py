"""Run configuration built once from the environment and command line."""
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Sequence, Tuple

DEFAULT_REPO_URL = "https://github.com/qyksys/gip_ans"
DEFAULT_REPO_REF = "main"
PASSWORD_ENV = "QYKSYS_BOOTSTRAP_PASSWORD"

# Layout of a provisioning checkout
PLAYBOOK = Path("playbooks") / "site.yml"
ROLES_DIR = Path("roles")
VAULT_SEED = Path("vault") / "vault_pass.txt.vault"
INVENTORY = Path("inventory") / "local.yml"
COLLECTIONS_REQUIREMENTS = Path("collections") / "requirements.yml"

LOG_DIR = Path(tempfile.gettempdir())
GALAXY_LOG = LOG_DIR / "ansible-galaxy.log"
CLONE_LOG = LOG_DIR / "git_clone.log"
DOWNLOAD_LOG = LOG_DIR / "archive_download.log"
EXTRACT_LOG = LOG_DIR / "archive_extract.log"
VAULT_LOG = LOG_DIR / "vault_view.log"


def _env(environ: Mapping[str, str], name: str) -> Optional[str]:
    """Return an environment value, treating empty strings as unset."""
    value = environ.get(name, "")
    return value or None


@dataclass(frozen=True)
class BootstrapConfig:
    """Everything a bootstrap run needs, resolved up front."""

    candidate_dir: Path
    config_root: Path
    repo_url: str = DEFAULT_REPO_URL
    repo_ref: str = DEFAULT_REPO_REF
    repo_dir: Optional[Path] = None
    bootstrap_password: Optional[str] = field(default=None, repr=False)
    default_profile: Optional[str] = None
    profile: Optional[str] = None
    extra_args: Tuple[str, ...] = ()

    @property
    def vault_file(self) -> Path:
        """Per-user location of the decrypted vault password."""
        return self.config_root / "qyksys" / "vault_pass.txt"

    @property
    def archive_url(self) -> str:
        """Tarball snapshot of ``repo_ref``, used when git is unavailable."""
        base = self.repo_url.rstrip("/")
        if base.endswith(".git"):
            base = base[:-len(".git")]
        return f"{base}/archive/{self.repo_ref}.tar.gz"

    @classmethod
    def from_environ(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        profile: Optional[str] = None,
        extra_args: Sequence[str] = (),
        candidate_dir: Optional[Path] = None,
    ) -> "BootstrapConfig":
        """Build the configuration from environment overrides."""
        if environ is None:
            environ = os.environ

        config_home = _env(environ, "XDG_CONFIG_HOME")
        config_root = Path(config_home) if config_home else Path.home() / ".config"
        repo_dir = _env(environ, "QYKSYS_REPO_DIR")

        return cls(
            candidate_dir=candidate_dir if candidate_dir is not None else Path.cwd(),
            config_root=config_root,
            repo_url=_env(environ, "QYKSYS_REPO_URL") or DEFAULT_REPO_URL,
            repo_ref=_env(environ, "QYKSYS_REPO_REF") or DEFAULT_REPO_REF,
            repo_dir=Path(repo_dir).expanduser().resolve() if repo_dir else None,
            bootstrap_password=_env(environ, PASSWORD_ENV),
            default_profile=_env(environ, "PROFILE"),
            profile=profile or None,
            extra_args=tuple(extra_args),
        )
