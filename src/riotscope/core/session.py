"""Debug session combining GDB and RIOT thread awareness."""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from riotscope.arch.base import RegisterSet
from riotscope.core.memory import TargetMemory
from riotscope.core.types import DebugConfig, SchedulerSnapshot, SymbolRequirement
from riotscope.rtos.riot import RiotThreadReader
from riotscope.rtos.symbols import detect_rtos, resolve_symbols, symbol_requirements
from riotscope.tools.gdb_bridge import GDBBridge

logger = logging.getLogger(__name__)


@dataclass
class DebugSession:
    """Thread-aware debug session for one RIOT target.

    Connects GDB to a running GDB server, resolves the scheduler symbols
    from the firmware ELF and owns a RiotThreadReader bound to the
    target's core. Each session is independent, so several targets can
    be inspected side by side.

    Example:
        config = DebugConfig(elf_path=Path("firmware.elf"), cpu="cortex-m4")
        with DebugSession(config) as session:
            session.attach()
            snapshot = session.refresh_threads()
            regs = session.thread_registers(snapshot.active_thread_id)
            print(f"PC: 0x{regs['pc']:08x}")
    """

    config: DebugConfig

    # Internal state (not init params)
    gdb: Optional[GDBBridge] = field(default=None, init=False)
    reader: Optional[RiotThreadReader] = field(default=None, init=False)
    symbols: List[SymbolRequirement] = field(default_factory=list, init=False)
    _started: bool = field(default=False, init=False)

    # === Lifecycle ===

    def start(self) -> bool:
        """Start GDB, load symbols and connect to the GDB server.

        Returns:
            True if session started successfully

        Raises:
            RuntimeError: If GDB cannot be launched, load the ELF or connect
        """
        self.gdb = GDBBridge(self.config.gdb_path)
        try:
            self.gdb.start()
        except (ValueError, OSError) as e:
            raise RuntimeError(f"Failed to start GDB `{self.config.gdb_path}`: {e}") from e
        if not self.gdb.load_symbols(str(self.config.elf_path)):
            raise RuntimeError(f"Failed to load symbols from {self.config.elf_path}")
        if not self.gdb.connect(host=self.config.host, port=self.config.port):
            raise RuntimeError(
                f"Failed to connect to GDB server at {self.config.host}:{self.config.port}"
            )
        self._started = True
        return True

    def stop(self) -> None:
        """Detach thread awareness and close GDB."""
        if self.reader:
            self.reader.detach()
            self.reader = None
        if self.gdb:
            self.gdb.close()
            self.gdb = None
        self._started = False

    @property
    def started(self) -> bool:
        """Check if session is started."""
        return self._started

    @property
    def attached(self) -> bool:
        return self.reader is not None

    # === Thread awareness ===

    def attach(self) -> RiotThreadReader:
        """Enable thread awareness for the connected target.

        Binds the profile for the configured core, then resolves the
        scheduler symbols through GDB.

        Raises:
            UnsupportedArchitecture: If the core is not supported
        """
        self._ensure_started()
        assert self.gdb is not None

        logger.info(f"Decoding threads with the {self.config.cpu} stacking layout")
        reader = RiotThreadReader(TargetMemory(self.gdb))
        reader.bind_profile(self.config.cpu)

        self.symbols = resolve_symbols(symbol_requirements(), self.gdb.lookup_symbol)
        if not detect_rtos(self.symbols):
            logger.warning("Firmware does not look like RIOT (no `sched_threads`)")
        reader.symbols = self.symbols

        self.reader = reader
        return reader

    def refresh_threads(self) -> SchedulerSnapshot:
        """Read the current thread list from the target."""
        return self._ensure_attached().refresh()

    def thread_registers(self, thread_id: int) -> RegisterSet:
        """Decode the saved registers of one thread."""
        return self._ensure_attached().get_registers(thread_id)

    # === Internal ===

    def _ensure_started(self) -> None:
        """Ensure session is started."""
        if not self._started:
            raise RuntimeError("Debug session not started")

    def _ensure_attached(self) -> RiotThreadReader:
        self._ensure_started()
        if self.reader is None:
            raise RuntimeError("Thread awareness not attached")
        return self.reader

    # === Context Manager ===

    def __enter__(self) -> "DebugSession":
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.stop()
