"""RIOT scheduler state reader.

Reconstructs the thread list of a halted RIOT target from its scheduler
globals and decodes the saved registers of individual threads.

RIOT keeps a fixed-size table ``sched_threads`` of thread control block
pointers indexed by PID; an empty slot holds NULL. PID 0 is never used
(KERNEL_PID_UNDEF).

Example:
    reader = RiotThreadReader(TargetMemory(bridge), symbols)
    reader.bind_profile(ArchitectureVariant.CORTEX_M34)

    snapshot = reader.refresh()
    for thread in snapshot.threads:
        print(thread.thread_id, thread.state_label, thread.name)

    regs = reader.get_registers(snapshot.active_thread_id)
    print(f"PC: 0x{regs['pc']:08x}")
"""

import logging
from typing import Callable, List, Optional, Sequence, Tuple, Union

from riotscope.arch import resolve_profile
from riotscope.arch.base import RegisterSet, TargetProfile, read_stacked_registers
from riotscope.core.errors import InvalidThreadId, MemoryReadFailed, UnboundProfile
from riotscope.core.memory import TargetMemory
from riotscope.core.types import (
    ArchitectureVariant,
    SchedulerSnapshot,
    SymbolRequirement,
    ThreadDescriptor,
)
from riotscope.rtos.symbols import RiotSymbol, symbol_address

logger = logging.getLogger(__name__)

# refer core/include/sched.h
THREAD_STATES = {
    0: "Stopped",
    1: "Sleeping",
    2: "Mutex blocked",
    3: "Receive blocked",
    4: "Send blocked",
    5: "Reply blocked",
    6: "Running",
    7: "Pending",
}

UNKNOWN_STATE = "unknown state"
NAMES_UNAVAILABLE = "Enable DEVELHELP to see thread names"
NO_NAME = "No Name"
NAME_BUFFER_SIZE = 32

UNDEFINED_PID = 0


def thread_state_label(status: int) -> str:
    """Human-readable label for a thread status code."""
    return THREAD_STATES.get(status, UNKNOWN_STATE)


class RiotThreadReader:
    """Thread awareness for one attached RIOT target.

    The reader owns its bound TargetProfile and the thread list of the
    last refresh. Nothing is cached between refreshes: every call reads
    target memory again, so the target must be halted.

    Attributes:
        memory: Memory of the attached target
        symbols: Resolved scheduler symbols (see riotscope.rtos.symbols)
    """

    def __init__(
        self,
        memory: TargetMemory,
        symbols: Optional[Sequence[SymbolRequirement]] = None,
        profile: Optional[TargetProfile] = None,
    ) -> None:
        self.memory = memory
        self.symbols = symbols
        self._profile = profile
        self._snapshot: Optional[SchedulerSnapshot] = None

    # === Profile ===

    def bind_profile(self, variant: Union[ArchitectureVariant, str]) -> TargetProfile:
        """Bind the profile for the attached core.

        Touches no target memory.

        Raises:
            UnsupportedArchitecture: If the core is not supported
        """
        self._profile = resolve_profile(variant)
        logger.info(
            f"Bound {self._profile.variant.value} profile "
            f"({self._profile.stacking.name})"
        )
        return self._profile

    def detach(self) -> None:
        """Drop the bound profile and the last thread list."""
        self._profile = None
        self._snapshot = None

    @property
    def profile(self) -> Optional[TargetProfile]:
        return self._profile

    # === Thread list ===

    @property
    def snapshot(self) -> Optional[SchedulerSnapshot]:
        """Result of the last successful refresh, or None."""
        return self._snapshot

    @property
    def threads(self) -> Tuple[ThreadDescriptor, ...]:
        if self._snapshot is None:
            return ()
        return self._snapshot.threads

    @property
    def active_thread_id(self) -> int:
        if self._snapshot is None:
            return UNDEFINED_PID
        return self._snapshot.active_thread_id

    def refresh(self) -> SchedulerSnapshot:
        """Rebuild the thread list from target memory.

        The previous thread list is discarded first; if any read fails
        the reader is left with no thread list rather than a partial one.

        Returns:
            SchedulerSnapshot with the active PID and one descriptor per
            non-empty slot, in slot order

        Raises:
            UnboundProfile: If no profile is bound
            NoSymbols: If symbols were never resolved
            MissingRequiredSymbol: If a required symbol is absent
            MemoryReadFailed: If any read of target memory fails
        """
        profile = self._require_profile()
        self._snapshot = None

        # Check every symbol before touching the target. sched_threads is the
        # slot array itself, so its address is the table base.
        threads_base = symbol_address(self.symbols, RiotSymbol.THREADS_BASE)
        num_threads_address = symbol_address(self.symbols, RiotSymbol.NUM_THREADS)
        active_pid_address = symbol_address(self.symbols, RiotSymbol.ACTIVE_PID)
        max_threads_address = symbol_address(self.symbols, RiotSymbol.MAX_THREADS)
        name_offset_address = symbol_address(self.symbols, RiotSymbol.NAME_OFFSET)

        active_pid = self._read_field(
            "sched_active_pid", self.memory.read_s16, active_pid_address
        )
        thread_count = self._read_field(
            "sched_num_threads", self.memory.read_s32, num_threads_address
        )
        max_threads = self._read_field(
            "max_threads", self.memory.read_u8, max_threads_address
        )

        name_offset = 0
        if name_offset_address is not None:
            name_offset = self._read_field(
                "_tcb_name_offset", self.memory.read_u8, name_offset_address
            )

        threads: List[ThreadDescriptor] = []
        for pid in range(max_threads):
            tcb_pointer = self._read_field(
                f"sched_threads[{pid}]",
                self.memory.read_pointer,
                threads_base + pid * self.memory.pointer_size,
            )
            if tcb_pointer == 0:
                continue
            threads.append(self._read_thread(profile, pid, tcb_pointer, name_offset))

        snapshot = SchedulerSnapshot(
            active_thread_id=active_pid,
            reported_thread_count=thread_count,
            threads=tuple(threads),
        )
        if snapshot.count_mismatch:
            logger.debug(
                f"sched_num_threads is {thread_count} but "
                f"{snapshot.live_thread_count} slots are in use"
            )
        self._snapshot = snapshot
        return snapshot

    def _read_thread(
        self, profile: TargetProfile, pid: int, tcb_pointer: int, name_offset: int
    ) -> ThreadDescriptor:
        status = self._read_field(
            f"sched_threads[{pid}]->status",
            self.memory.read_u16,
            tcb_pointer + profile.thread_status_offset,
        )
        state = thread_state_label(status)
        if state == UNKNOWN_STATE:
            logger.debug(f"Thread {pid} has unknown status {status}")

        if name_offset:
            name = self._read_name(pid, tcb_pointer + name_offset)
        else:
            name = NAMES_UNAVAILABLE

        return ThreadDescriptor(thread_id=pid, state_label=state, name=name)

    def _read_name(self, pid: int, name_field: int) -> str:
        name_pointer = self._read_field(
            f"sched_threads[{pid}]->name", self.memory.read_pointer, name_field
        )
        if name_pointer == 0:
            return NO_NAME
        return self._read_field(
            f"sched_threads[{pid}]->name[]",
            lambda address: self.memory.read_c_string(address, NAME_BUFFER_SIZE),
            name_pointer,
        )

    # === Registers ===

    def get_registers(self, thread_id: int) -> RegisterSet:
        """Decode the saved registers of one thread.

        The slot table is read again rather than reusing the last
        refresh, so the result reflects the target as it is now.

        Args:
            thread_id: PID of the thread

        Returns:
            RegisterSet in the profile's canonical register order

        Raises:
            InvalidThreadId: For PID 0, an out-of-range PID or an empty slot
            UnboundProfile: If no profile is bound
            MemoryReadFailed: If any read of target memory fails
        """
        if thread_id == UNDEFINED_PID:
            raise InvalidThreadId(thread_id)
        if thread_id < 0:
            raise InvalidThreadId(thread_id, "negative thread id")
        profile = self._require_profile()

        # sched_threads is the array, not a pointer to it
        threads_base = symbol_address(self.symbols, RiotSymbol.THREADS_BASE)
        max_threads = self._read_field(
            "max_threads",
            self.memory.read_u8,
            symbol_address(self.symbols, RiotSymbol.MAX_THREADS),
        )
        if thread_id >= max_threads:
            raise InvalidThreadId(thread_id, f"only {max_threads} thread slots")

        tcb_pointer = self._read_field(
            f"sched_threads[{thread_id}]",
            self.memory.read_pointer,
            threads_base + thread_id * self.memory.pointer_size,
        )
        if tcb_pointer == 0:
            raise InvalidThreadId(thread_id, "thread slot is empty")

        stack_pointer = self._read_field(
            f"sched_threads[{thread_id}]->sp",
            self.memory.read_u32,
            tcb_pointer + profile.thread_sp_offset,
        )
        logger.debug(f"Thread {thread_id} saved sp=0x{stack_pointer:08x}")
        return read_stacked_registers(self.memory, profile.stacking, stack_pointer)

    # === Internal ===

    def _require_profile(self) -> TargetProfile:
        if self._profile is None:
            raise UnboundProfile()
        return self._profile

    def _read_field(
        self, label: str, read: Callable[[int], Union[int, str]], address: int
    ):
        try:
            return read(address)
        except MemoryReadFailed:
            logger.error(f"Couldn't read `{label}`")
            raise
