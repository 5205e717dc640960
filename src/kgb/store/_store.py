"""In-memory command store.

The store holds resolved commands and in-flight pending extractions. It is
not safe for concurrent writers; mutations are expected to go through a
StoreCoordinator, which applies them one at a time.
"""

from collections.abc import Callable, Iterable
from dataclasses import replace
from pathlib import Path
from typing import final
from uuid import UUID

from kgb.enums import PendingState, StoreChange
from kgb.exceptions import CommandNotFoundError, PendingNotFoundError

from ._models import BugReport, CanonicalCommand, PendingExtraction, ProjectGroup

type StoreObserver = Callable[[StoreChange], None]


@final
class CommandStore:
    """Canonical collection of resolved commands and pending extractions.

    Commands are de-duplicated by (scheme, action, project name): adding a
    command replaces the unflagged command with the same key, in place.
    Flagged commands are never replaced; they stay until unflagged or
    removed, and are paired with later working runs as bug reports.

    Observers registered with subscribe() are called synchronously with a
    StoreChange after every mutation.
    """

    __slots__ = ("_bug_report", "_commands", "_observers", "_pending")

    def __init__(self, commands: Iterable[CanonicalCommand] = ()) -> None:
        """Initialize the store.

        Args:
            commands: Initial commands, e.g. loaded from disk.
        """
        self._commands: list[CanonicalCommand] = list(commands)
        self._pending: dict[UUID, PendingExtraction] = {}
        self._observers: list[StoreObserver] = []
        self._bug_report: BugReport | None = self._find_bug_report()

    # -------------------------------------------------------------------------
    # Observation
    # -------------------------------------------------------------------------

    def subscribe(self, observer: StoreObserver) -> Callable[[], None]:
        """Register an observer for change notifications.

        Args:
            observer: Called with the kind of change after each mutation.

        Returns:
            A callable that removes the observer.
        """
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _notify(self, change: StoreChange) -> None:
        for observer in tuple(self._observers):
            observer(change)

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    @property
    def commands(self) -> tuple[CanonicalCommand, ...]:
        """Return a snapshot of all commands in store order."""
        return tuple(self._commands)

    @property
    def pending_bug_report(self) -> BugReport | None:
        """Return the current broken/working pairing, if any."""
        return self._bug_report

    def get(self, command_id: UUID) -> CanonicalCommand:
        """Get a command by id.

        Raises:
            CommandNotFoundError: If no command has that id.
        """
        return self._commands[self._index_of(command_id)]

    def add(self, command: CanonicalCommand) -> None:
        """Add a command, replacing the unflagged command with the same key."""
        for index, existing in enumerate(self._commands):
            if not existing.is_flagged_as_bug and existing.key == command.key:
                self._commands[index] = command
                break
        else:
            self._commands.append(command)
        self._commands_changed()

    def flag(self, command_id: UUID) -> None:
        """Mark a command as a broken run.

        Raises:
            CommandNotFoundError: If no command has that id.
        """
        self._set_flag(command_id, flagged=True)

    def unflag(self, command_id: UUID) -> None:
        """Clear the broken-run mark on a command.

        Raises:
            CommandNotFoundError: If no command has that id.
        """
        self._set_flag(command_id, flagged=False)

    def remove(self, command_id: UUID) -> None:
        """Remove a command. Unknown ids are ignored."""
        remaining = [command for command in self._commands if command.id != command_id]
        if len(remaining) == len(self._commands):
            return
        self._commands = remaining
        self._commands_changed()

    def replace_all(self, commands: Iterable[CanonicalCommand]) -> None:
        """Replace every command, e.g. with a list loaded from disk."""
        self._commands = list(commands)
        self._commands_changed()

    def grouped_by_project(self) -> list[ProjectGroup]:
        """Cluster commands by project name, most recently active project first."""
        grouped: dict[str, list[CanonicalCommand]] = {}
        for command in self._commands:
            grouped.setdefault(command.project_name, []).append(command)

        groups = [
            ProjectGroup(project_name=name, commands=tuple(commands))
            for name, commands in grouped.items()
        ]
        groups.sort(key=lambda group: group.latest, reverse=True)
        return groups

    def _index_of(self, command_id: UUID) -> int:
        for index, command in enumerate(self._commands):
            if command.id == command_id:
                return index
        msg = f"Command '{command_id}' not found"
        raise CommandNotFoundError(msg, command_id=command_id)

    def _set_flag(self, command_id: UUID, *, flagged: bool) -> None:
        index = self._index_of(command_id)
        self._commands[index] = self._commands[index].with_flag(flagged)
        self._commands_changed()

    def _find_bug_report(self) -> BugReport | None:
        for broken in self._commands:
            if not broken.is_flagged_as_bug:
                continue
            for working in self._commands:
                if (
                    not working.is_flagged_as_bug
                    and working.key == broken.key
                    and working.timestamp > broken.timestamp
                ):
                    return BugReport(broken_command=broken, working_command=working)
            # Only the first flagged command is considered
            return None
        return None

    def _commands_changed(self) -> None:
        self._notify(StoreChange.COMMANDS)
        report = self._find_bug_report()
        if report != self._bug_report:
            self._bug_report = report
            self._notify(StoreChange.BUG_REPORT)

    # -------------------------------------------------------------------------
    # Pending extractions
    # -------------------------------------------------------------------------

    @property
    def pending(self) -> tuple[PendingExtraction, ...]:
        """Return a snapshot of pending extractions in creation order."""
        return tuple(self._pending.values())

    def get_pending(self, pending_id: UUID) -> PendingExtraction:
        """Get a pending extraction by id.

        Raises:
            PendingNotFoundError: If no pending extraction has that id.
        """
        try:
            return self._pending[pending_id]
        except KeyError:
            msg = f"Pending extraction '{pending_id}' not found"
            raise PendingNotFoundError(msg, pending_id=pending_id) from None

    def add_pending(
        self,
        scheme: str,
        *,
        destination: str | None = None,
        bundle_path: Path | None = None,
        state: PendingState = PendingState.BUILD_ONLY,
    ) -> UUID:
        """Create a pending extraction.

        Returns:
            The new entry's id.
        """
        entry = PendingExtraction(
            scheme=scheme,
            state=state,
            destination=destination,
            bundle_path=bundle_path,
        )
        self._pending[entry.id] = entry
        self._notify(StoreChange.PENDING)
        return entry.id

    def pending_for_scheme(self, scheme: str) -> PendingExtraction | None:
        """Return the first build-only entry for a scheme, if any."""
        for entry in self._pending.values():
            if entry.state == PendingState.BUILD_ONLY and entry.scheme == scheme:
                return entry
        return None

    def has_pending_for_scheme(self, scheme: str) -> bool:
        """Return True if any pending entry, in any state, has this scheme."""
        return any(entry.scheme == scheme for entry in self._pending.values())

    def pending_for_bundle(self, bundle_path: Path) -> PendingExtraction | None:
        """Return the entry tracking a result bundle, if any."""
        for entry in self._pending.values():
            if entry.bundle_path == bundle_path:
                return entry
        return None

    def update_pending_state(self, pending_id: UUID, state: PendingState) -> None:
        """Move a pending extraction to a new state.

        Raises:
            PendingNotFoundError: If no pending extraction has that id.
        """
        entry = self.get_pending(pending_id)
        self._pending[pending_id] = replace(entry, state=state)
        self._notify(StoreChange.PENDING)

    def attach_bundle(
        self,
        pending_id: UUID,
        bundle_path: Path,
        *,
        state: PendingState = PendingState.WAITING,
    ) -> None:
        """Attach a result bundle to a pending extraction and move its state.

        Raises:
            PendingNotFoundError: If no pending extraction has that id.
        """
        entry = self.get_pending(pending_id)
        self._pending[pending_id] = replace(entry, bundle_path=bundle_path, state=state)
        self._notify(StoreChange.PENDING)

    def resolve_pending(self, pending_id: UUID, command: CanonicalCommand) -> None:
        """Replace a pending extraction with its resolved command."""
        if self._pending.pop(pending_id, None) is not None:
            self._notify(StoreChange.PENDING)
        self.add(command)

    def remove_pending(self, pending_id: UUID) -> None:
        """Remove a pending extraction. Unknown ids are ignored."""
        if self._pending.pop(pending_id, None) is not None:
            self._notify(StoreChange.PENDING)
