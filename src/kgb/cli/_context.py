# ruff: noqa: TC003  # Path needed at runtime for dataclass field
"""CLI context for global state management.

The CLIContext is set once at CLI startup by the meta app and made
available to all commands via contextvars.
"""

import contextvars
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Self

from kgb.config import Config

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger


_current_cli_context: contextvars.ContextVar["CLIContext | None"] = (
    contextvars.ContextVar("cli_context", default=None)
)


@dataclass(frozen=True, slots=True)
class CLIContext:
    """Global CLI context with configuration and options.

    Attributes:
        config: Loaded configuration object.
        config_error: Error message if config loading failed.
        logger: Structured logger for CLI commands (writes to file only).
    """

    config: Config = field(repr=False)
    config_error: str | None = None
    logger: "FilteringBoundLogger | None" = field(default=None, repr=False)  # noqa: UP037

    @classmethod
    def get_current(cls) -> Self:
        """Get the active CLIContext, or a default one if none is set."""
        ctx = _current_cli_context.get()
        if ctx is not None:
            return ctx  # pyright: ignore[reportReturnType]
        return cls(config=Config())

    @classmethod
    def set_current(cls, ctx: "CLIContext") -> None:  # noqa: UP037
        """Set the active CLIContext."""
        _ = _current_cli_context.set(ctx)

    @classmethod
    def reset(cls) -> None:
        """Reset to the default context."""
        _ = _current_cli_context.set(None)
