"""The command-line interface for KGB."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter
from rich.console import Console

from kgb.config import safe_load_config
from kgb.utils import create_logger

from ._commands import register_commands
from ._context import CLIContext

APP_HELP = "Records the xcodebuild commands behind your Xcode builds and tests."


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    """Create the KGB CLI app.

    Args:
        console: Console for help and cyclopts output.
        error_console: Console for cyclopts error output.
        exit_on_error: Whether parse errors exit the process.

    Returns:
        The app; invoke ``app.meta()`` to run it with global options.
    """
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="kgb",
        help=APP_HELP,
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )

    @app.meta.default
    def _default(  # pyright: ignore[reportUnusedFunction]
        *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
        config: Annotated[
            Path | None, Parameter(name="--config", help="Path to config file")
        ] = None,
    ) -> None:
        """Launch KGB CLI with global options.

        Args:
            tokens: Command tokens to pass to subcommands.
            config: Explicit path to config file.
        """
        loaded_config, config_error = safe_load_config(config_path=config)

        command = tokens[0] if tokens and not tokens[0].startswith("-") else ""
        cli_logger = create_logger(
            level=loaded_config.logging.level.value,
            log_format=loaded_config.logging.format.value,  # type: ignore[arg-type]
            log_file=loaded_config.logging.file,
            command=command,
            max_bytes=loaded_config.logging.max_bytes,
            backup_count=loaded_config.logging.backup_count,
        )

        CLIContext.set_current(
            CLIContext(
                config=loaded_config,
                config_error=config_error,
                logger=cli_logger,
            )
        )
        try:
            app(tokens)
        finally:
            CLIContext.reset()

    register_commands(app)
    return app


def main() -> None:
    """Default entrypoint for the `kgb` CLI."""
    app = create_app()
    app.meta()
