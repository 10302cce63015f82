"""Shared data types for riotscope."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

DEFAULT_CPU = "cortex-m4"


@dataclass
class DebugConfig:
    """Configuration for a debug session."""
    elf_path: Path
    cpu: str = DEFAULT_CPU
    gdb_path: str = "arm-none-eabi-gdb"
    host: str = "localhost"
    port: int = 3333


class ArchitectureVariant(Enum):
    """Core sub-families with a distinct saved-context layout."""
    CORTEX_M0 = "cortex-m0"
    CORTEX_M34 = "cortex-m34"


@dataclass
class SymbolRequirement:
    """A target symbol the engine needs.

    Attributes:
        name: Symbol name in the firmware image
        required: False if the engine can run without it
        resolved_address: Address filled in by the symbol resolver
    """
    name: str
    required: bool = True
    resolved_address: Optional[int] = None

    @property
    def resolved(self) -> bool:
        return bool(self.resolved_address)


@dataclass(frozen=True)
class ThreadDescriptor:
    """One live thread as shown to the debugger UI."""
    thread_id: int
    state_label: str
    name: str
    exists: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "thread_id": self.thread_id,
            "state": self.state_label,
            "name": self.name,
            "exists": self.exists,
        }


@dataclass(frozen=True)
class SchedulerSnapshot:
    """Result of one scheduler refresh.

    ``active_thread_id`` and ``reported_thread_count`` are read from
    scheduler globals and are not reconciled against ``threads``.
    """
    active_thread_id: int
    reported_thread_count: int
    threads: Tuple[ThreadDescriptor, ...] = field(default_factory=tuple)

    @property
    def live_thread_count(self) -> int:
        return len(self.threads)

    @property
    def count_mismatch(self) -> bool:
        """True if the scheduler's count differs from the slots found."""
        return self.reported_thread_count != self.live_thread_count

    def thread(self, thread_id: int) -> Optional[ThreadDescriptor]:
        for descriptor in self.threads:
            if descriptor.thread_id == thread_id:
                return descriptor
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "active_thread_id": self.active_thread_id,
            "reported_thread_count": self.reported_thread_count,
            "threads": [t.to_dict() for t in self.threads],
        }
