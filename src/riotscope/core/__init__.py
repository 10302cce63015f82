"""Core components: shared types, errors and target memory access."""

from riotscope.core.errors import (
    InvalidThreadId,
    MemoryReadFailed,
    MissingRequiredSymbol,
    NoSymbols,
    RiotscopeError,
    UnboundProfile,
    UnsupportedArchitecture,
)
from riotscope.core.memory import MemoryReader, TargetMemory
from riotscope.core.types import (
    ArchitectureVariant,
    DebugConfig,
    SchedulerSnapshot,
    SymbolRequirement,
    ThreadDescriptor,
)

__all__ = [
    "ArchitectureVariant",
    "DebugConfig",
    "SchedulerSnapshot",
    "SymbolRequirement",
    "ThreadDescriptor",
    "MemoryReader",
    "TargetMemory",
    "RiotscopeError",
    "NoSymbols",
    "MissingRequiredSymbol",
    "UnsupportedArchitecture",
    "MemoryReadFailed",
    "InvalidThreadId",
    "UnboundProfile",
]
