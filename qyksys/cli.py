"""CLI interface for the bootstrap tool."""
from typing import Optional

import typer

from . import utils
from . import steps
from .config import BootstrapConfig
from .errors import BootstrapError


def bootstrap(
    ctx: typer.Context,
    profile: Optional[str] = typer.Argument(
        None, help="Profile to apply (personal or server); prompts when omitted"
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable verbose output"),
):
    """Install Ansible, restore the vault password and apply a provisioning profile.

    Arguments after PROFILE are passed through to ansible-playbook.
    """
    utils.setup_logging(verbose)

    config = BootstrapConfig.from_environ(profile=profile, extra_args=ctx.args)
    try:
        steps.bootstrap(config)
    except BootstrapError as e:
        utils.log_error(str(e))
        raise typer.Exit(e.exit_code)


app = typer.Typer(
    name="qyksys-bootstrap",
    help="Bootstrap a machine with the qyksys Ansible provisioning repository.",
    add_completion=False,
)
app.command(
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)(bootstrap)


if __name__ == "__main__":
    app()
