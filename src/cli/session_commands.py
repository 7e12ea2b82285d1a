"""Session sharing maintenance commands."""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from src.session_sharing.core.errors import ConfigurationError, SessionSharingError
from src.session_sharing.core.services import (
    AccountService,
    DbSessionService,
    InMemoryStorage,
    SessionSharingService,
)
from src.session_sharing.runtime.config.config_data import ConfigData
from src.session_sharing.runtime.config.config_template import load_config
from src.session_sharing.runtime.config.settings import EnvironmentVariables

console = Console()

ConfigOption = typer.Option(
    None, "--config", "-c", help="Path to config.yaml (defaults to APP_CONFIG_FILE)"
)


def _load(config_path: Optional[Path]) -> ConfigData:
    path = config_path or EnvironmentVariables().config_file
    try:
        return load_config(path)
    except ValueError as e:
        console.print(f"[red]❌ Failed to load configuration from {path}: {e}[/red]")
        raise typer.Exit(code=1) from e


@contextmanager
def _pipeline(config: ConfigData) -> Iterator[SessionSharingService]:
    """Session sharing service loaded with ``config``.

    Storage is in memory; commands using it never write mappings.
    """
    db_service = DbSessionService(config.database)
    try:
        service = SessionSharingService(InMemoryStorage(), AccountService(db_service))
        service.reload_settings(config)
        yield service
    finally:
        db_service.dispose()


def init_db(config_path: Optional[Path] = ConfigOption) -> None:
    """Create the account tables."""
    config = _load(config_path)
    db_service = DbSessionService(config.database)
    try:
        db_service.create_all()
    finally:
        db_service.dispose()
    console.print(f"[green]✅ Tables created on {config.database.url}[/green]")


def check_config(config_path: Optional[Path] = ConfigOption) -> None:
    """Load the configuration and report whether session sharing can run."""
    config = _load(config_path)
    try:
        with _pipeline(config) as service:
            settings = service.settings
    except ConfigurationError as e:
        console.print(f"[red]❌ Session sharing not ready: {e.message}[/red]")
        raise typer.Exit(code=1) from e

    table = Table(title="Session sharing settings")
    table.add_column("Option", style="cyan")
    table.add_column("Value", style="green")
    for key, value in settings.redacted().items():
        table.add_row(key, str(value))
    table.add_row("mapping key", settings.mapping_key)
    console.print(table)
    console.print("[green]✅ Session sharing ready[/green]")


def verify_token(
    token: str = typer.Argument(..., help="Shared token to verify"),
    config_path: Optional[Path] = ConfigOption,
) -> None:
    """Verify a token and show the identity it asserts. Nothing is written."""
    config = _load(config_path)
    try:
        with _pipeline(config) as service:
            identity = service.identify(token)
    except SessionSharingError as e:
        console.print(f"[red]❌ {e.code}: {e.message}[/red]")
        raise typer.Exit(code=1) from e

    table = Table(title="Resolved identity")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("external id", identity.external_id)
    table.add_row("username", identity.username)
    table.add_row("email", identity.email or "-")
    table.add_row("picture", identity.picture or "-")
    console.print(table)
