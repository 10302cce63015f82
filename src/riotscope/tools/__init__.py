"""Tools for interacting with GDB."""

from riotscope.tools.gdb_bridge import (
    GDBBridge,
    EvalResult,
)

__all__ = [
    "GDBBridge",
    "EvalResult",
]
