"""Long-running DerivedData monitor.

Key Components:
    - Monitor: Wires config, coordinator, pending manager, watcher and
      persistence into one supervised run
"""

from ._monitor import Monitor

__all__ = ["Monitor"]
