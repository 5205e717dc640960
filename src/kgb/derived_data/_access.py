"""Watched root selection and access checks."""

from pathlib import Path

from kgb.exceptions import WatchRootError
from kgb.utils._paths import get_default_derived_data_dir


def resolve_watch_root(configured: str | Path | None = None) -> Path:
    """Return the directory to watch.

    Args:
        configured: A configured root; empty or None selects the default.

    Returns:
        The configured root with ``~`` expanded, or the default DerivedData
        directory.
    """
    if configured is None or not str(configured):
        return get_default_derived_data_dir()
    return Path(configured).expanduser()


def has_access(root: Path) -> bool:
    """Check whether the watched root exists and is a directory."""
    try:
        return root.is_dir()
    except OSError:
        return False


def ensure_access(root: Path) -> Path:
    """Return the root if it can be watched.

    Raises:
        WatchRootError: If the root is missing or not a directory.
    """
    if not has_access(root):
        msg = f"Watched root is not an accessible directory: {root}"
        raise WatchRootError(msg, root=root)
    return root
