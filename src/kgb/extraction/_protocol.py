"""Protocol definitions for the extraction pipeline.

This module defines the interface the pending extraction manager depends
on, so the orchestrator can be replaced in tests or by alternative
implementations:
- Extractor: Turns a result bundle into a CanonicalCommand
"""

from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from kgb.store import CanonicalCommand


@runtime_checkable
class Extractor(Protocol):
    """Protocol for extraction orchestrators.

    Implementations are stateless and make a single attempt; failures are
    raised as ExtractionError subclasses whose ``retryable`` attribute tells
    the caller whether trying again can help.
    """

    async def extract(
        self,
        bundle_path: Path,
        project_source_dir: Path | None,
    ) -> "CanonicalCommand":  # noqa: UP037
        """Extract the command a result bundle was produced by.

        Args:
            bundle_path: Path to the .xcresult bundle.
            project_source_dir: Directory holding the project or workspace,
                or None if it could not be resolved.

        Returns:
            The resolved command.

        Raises:
            ExtractionError: If the attempt fails.
        """
        ...
