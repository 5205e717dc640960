"""Extraction of canonical commands from result bundles.

Key Components:
    - CommandExtractor: Single-attempt bundle to command orchestration
    - Extractor: Protocol the pending manager drives
    - RetryPolicy: Fixed-delay attempt schedule
    - PendingExtractionManager: Pending entry state machine and retry loops
"""

from ._extractor import DEFAULT_RESULT_TOOL, CommandExtractor
from ._pending import PendingExtractionManager, ProjectMetadataNotReadyError
from ._policy import DEFAULT_DELAY, DEFAULT_MAX_ATTEMPTS, RetryPolicy
from ._protocol import Extractor

__all__ = [
    "DEFAULT_DELAY",
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_RESULT_TOOL",
    "CommandExtractor",
    "Extractor",
    "PendingExtractionManager",
    "ProjectMetadataNotReadyError",
    "RetryPolicy",
]
