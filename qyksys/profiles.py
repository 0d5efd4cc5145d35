"""Choose which provisioning profile to apply."""
from typing import Optional

import typer

from qyksys.errors import InvalidProfileError

PROFILES = ("personal", "server")
DEFAULT_PROFILE = "personal"


def validate_profile(name: str, source: str) -> str:
    """Reject profile names that were not typed interactively and are unknown."""
    if name not in PROFILES:
        raise InvalidProfileError(
            f"Unknown profile {name!r} from {source}. Choose one of: {', '.join(PROFILES)}"
        )
    return name


def choose_profile() -> str:
    """Prompt until a valid profile is entered; empty input picks the default."""
    while True:
        choice = typer.prompt(
            f"Select profile [{'/'.join(PROFILES)}] (default: {DEFAULT_PROFILE})",
            default="",
            show_default=False,
        ).strip()
        if not choice:
            return DEFAULT_PROFILE
        if choice in PROFILES:
            return choice
        typer.echo("Invalid selection. Try again.", err=True)


def resolve_profile(argument: Optional[str] = None, env_default: Optional[str] = None) -> str:
    """Command-line argument, then the PROFILE environment value, then a prompt."""
    if argument:
        return validate_profile(argument, "command line")
    if env_default:
        return validate_profile(env_default, "PROFILE")
    return choose_profile()
