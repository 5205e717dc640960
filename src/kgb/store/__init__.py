"""Command store: resolved commands, pending extractions and bug pairing.

Key Components:
    - CanonicalCommand: A resolved, replayable xcodebuild invocation
    - PendingExtraction: A sighted run awaiting resolution
    - CommandStore: De-duplicating in-memory store with change observers
    - StoreCoordinator: Single task that applies all store mutations
    - load_commands / save_commands: Whole-list JSON persistence
"""

from ._coordinator import StoreCoordinator
from ._io import load_commands, save_commands
from ._models import (
    BugReport,
    CanonicalCommand,
    CommandKey,
    PendingExtraction,
    ProjectGroup,
)
from ._store import CommandStore, StoreObserver

__all__ = [
    "BugReport",
    "CanonicalCommand",
    "CommandKey",
    "CommandStore",
    "PendingExtraction",
    "ProjectGroup",
    "StoreCoordinator",
    "StoreObserver",
    "load_commands",
    "save_commands",
]
