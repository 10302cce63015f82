"""Pytest fixtures for riotscope tests."""

from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

import pytest

from riotscope.core.memory import TargetMemory
from riotscope.core.types import SymbolRequirement
from riotscope.rtos.symbols import symbol_requirements

# Layout of the fake RIOT image used across tests
SCHED_THREADS = 0x2000
SCHED_NUM_THREADS = 0x1000
SCHED_ACTIVE_PID = 0x1004
MAX_THREADS = 0x1008
TCB_NAME_OFFSET = 0x100C

NAME_OFFSET = 0x30
TCB_MAIN = 0x3000
TCB_IDLE = 0x3040


class FakeMemory:
    """Sparse little-endian memory image of a halted target."""

    def __init__(self) -> None:
        self.image: Dict[int, int] = {}
        self.faulty: Set[int] = set()
        self.reads: List[Tuple[int, int]] = []

    def write(self, address: int, data: bytes) -> None:
        for i, byte in enumerate(data):
            self.image[address + i] = byte

    def write_u8(self, address: int, value: int) -> None:
        self.write(address, value.to_bytes(1, "little"))

    def write_u16(self, address: int, value: int, signed: bool = False) -> None:
        self.write(address, value.to_bytes(2, "little", signed=signed))

    def write_u32(self, address: int, value: int, signed: bool = False) -> None:
        self.write(address, value.to_bytes(4, "little", signed=signed))

    def fail(self, address: int) -> None:
        """Make any read touching ``address`` raise a bus error."""
        self.faulty.add(address)

    def read_memory(self, address: int, length: int) -> bytes:
        self.reads.append((address, length))
        for a in range(address, address + length):
            if a in self.faulty:
                raise OSError(f"bus error at 0x{a:08x}")
        return bytes(self.image.get(a, 0) for a in range(address, address + length))


def make_symbols(with_names: bool = True) -> List[SymbolRequirement]:
    """Resolved symbols for the fake image."""
    addresses = {
        "sched_threads": SCHED_THREADS,
        "sched_num_threads": SCHED_NUM_THREADS,
        "sched_active_pid": SCHED_ACTIVE_PID,
        "max_threads": MAX_THREADS,
        "_tcb_name_offset": TCB_NAME_OFFSET if with_names else None,
    }
    symbols = symbol_requirements()
    for symbol in symbols:
        symbol.resolved_address = addresses[symbol.name]
    return symbols


def build_riot_image(
    memory: FakeMemory,
    slots: Tuple[int, ...] = (TCB_MAIN, 0, TCB_IDLE, 0),
    statuses: Optional[Dict[int, int]] = None,
    active_pid: int = 2,
    num_threads: int = 2,
    name_offset: int = NAME_OFFSET,
) -> None:
    """Lay out scheduler globals and thread control blocks."""
    if statuses is None:
        statuses = {TCB_MAIN: 6, TCB_IDLE: 1}

    memory.write_u16(SCHED_ACTIVE_PID, active_pid, signed=True)
    memory.write_u32(SCHED_NUM_THREADS, num_threads, signed=True)
    memory.write_u8(MAX_THREADS, len(slots))
    memory.write_u8(TCB_NAME_OFFSET, name_offset)

    for pid, tcb in enumerate(slots):
        memory.write_u32(SCHED_THREADS + pid * 4, tcb)

    names = {TCB_MAIN: b"main\x00", TCB_IDLE: b"idle\x00"}
    name_address = 0x4000
    for tcb, status in statuses.items():
        memory.write_u16(tcb + 0x04, status)
        memory.write_u32(tcb + NAME_OFFSET, name_address)
        memory.write(name_address, names.get(tcb, b"thread\x00"))
        name_address += 0x20


@pytest.fixture
def fake_memory() -> FakeMemory:
    """Return an empty fake memory image."""
    return FakeMemory()


@pytest.fixture
def riot_memory(fake_memory: FakeMemory) -> FakeMemory:
    """Return a fake image with two threads in PIDs 0 and 2."""
    build_riot_image(fake_memory)
    return fake_memory


@pytest.fixture
def target_memory(riot_memory: FakeMemory) -> TargetMemory:
    """Return TargetMemory over the two-thread image."""
    return TargetMemory(riot_memory)


@pytest.fixture
def elf_file(tmp_path: Path) -> Path:
    """Return a placeholder firmware ELF path that exists."""
    path = tmp_path / "firmware.elf"
    path.write_bytes(b"\x7fELF")
    return path
