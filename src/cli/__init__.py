"""Main CLI application module."""

import typer

from .session_commands import check_config, init_db, verify_token

# Create the main CLI application
app = typer.Typer(
    help="Session sharing maintenance tool",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("init-db")(init_db)
app.command("check-config")(check_config)
app.command("verify-token")(verify_token)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
