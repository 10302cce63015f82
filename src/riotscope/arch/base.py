"""Saved-context descriptions and the generic stack-to-registers conversion.

A StackingDescriptor says where each architectural register of a
suspended thread lives in the frame its context switch pushed, so
decoding a thread only needs the descriptor and the saved stack pointer.
"""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from riotscope.core.memory import TargetMemory
from riotscope.core.types import ArchitectureVariant

logger = logging.getLogger(__name__)

# Register is not saved in the frame; report zero.
NOT_STACKED_OFFSET = -1
# Register is the stack pointer itself; report the corrected pointer.
STACK_POINTER_OFFSET = -2

AlignmentFn = Callable[[bytes, int], int]


class StackGrowth(IntEnum):
    """Direction the stack grows in, as a signed step."""
    DOWN = -1
    UP = 1


@dataclass(frozen=True)
class RegisterOffset:
    """Location of one register within a saved frame."""
    offset: int
    bit_width: int = 32


@dataclass(frozen=True)
class StackingDescriptor:
    """Layout of a thread's saved context on its stack.

    Attributes:
        name: Descriptor name for display
        frame_size: Bytes pushed by the context switch
        growth: Stack growth direction
        register_names: Canonical register order
        register_offsets: One RegisterOffset per entry of register_names
        alignment: Maps (frame bytes, saved SP) to the thread's SP before
            the frame was pushed; None means no padding is ever inserted
    """
    name: str
    frame_size: int
    growth: StackGrowth
    register_names: Tuple[str, ...]
    register_offsets: Tuple[RegisterOffset, ...]
    alignment: Optional[AlignmentFn] = None

    def __post_init__(self) -> None:
        if len(self.register_names) != len(self.register_offsets):
            raise ValueError(
                f"{self.name}: {len(self.register_names)} register names but "
                f"{len(self.register_offsets)} offsets"
            )
        for name, location in zip(self.register_names, self.register_offsets):
            if location.offset < 0:
                continue
            if location.offset + location.bit_width // 8 > self.frame_size:
                raise ValueError(
                    f"{self.name}: {name} at 0x{location.offset:x} lies "
                    f"outside the 0x{self.frame_size:x} byte frame"
                )

    def frame_address(self, stack_pointer: int) -> int:
        """Lowest address of the frame saved at ``stack_pointer``."""
        if self.growth == StackGrowth.DOWN:
            return stack_pointer
        return stack_pointer - self.frame_size

    def unwound_stack_pointer(self, frame: bytes, stack_pointer: int) -> int:
        """Stack pointer of the thread with its saved frame popped."""
        if self.alignment is not None:
            return self.alignment(frame, stack_pointer)
        return stack_pointer - self.growth * self.frame_size


@dataclass(frozen=True)
class TargetProfile:
    """Per-core binding of TCB field offsets to a stacking layout."""
    variant: ArchitectureVariant
    thread_sp_offset: int
    thread_status_offset: int
    stacking: StackingDescriptor


@dataclass(frozen=True)
class RegisterValue:
    """A decoded register value tagged with its width."""
    name: str
    value: int
    bit_width: int = 32

    def to_bytes(self) -> bytes:
        return self.value.to_bytes(self.bit_width // 8, "little")


@dataclass
class RegisterSet:
    """Full canonical register set of one thread."""
    registers: List[RegisterValue] = field(default_factory=list)

    def __iter__(self) -> Iterator[RegisterValue]:
        return iter(self.registers)

    def __len__(self) -> int:
        return len(self.registers)

    def __getitem__(self, name: str) -> int:
        for reg in self.registers:
            if reg.name == name:
                return reg.value
        raise KeyError(name)

    def to_hex(self) -> str:
        """Encode as a GDB remote protocol register list."""
        return "".join(reg.to_bytes().hex() for reg in self.registers)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            reg.name: f"0x{reg.value:0{reg.bit_width // 4}x}"
            for reg in self.registers
        }


def cortex_m_stack_align(
    frame: bytes,
    stack_pointer: int,
    *,
    frame_size: int,
    growth: StackGrowth,
    xpsr_offset: int,
) -> int:
    """Undo the frame push, including any hardware alignment word.

    On exception entry Cortex-M cores may insert a padding word to keep
    the stack 8-byte aligned; xPSR bit 9 records that it did.
    """
    new_stack_pointer = stack_pointer - growth * frame_size
    xpsr = int.from_bytes(frame[xpsr_offset:xpsr_offset + 4], "little")
    if xpsr & (1 << 9):
        logger.debug(
            f"xPSR (0x{xpsr:08x}) indicated stack alignment was necessary"
        )
        new_stack_pointer -= growth * 4
    return new_stack_pointer


def read_stacked_registers(
    memory: TargetMemory, stacking: StackingDescriptor, stack_pointer: int
) -> RegisterSet:
    """Decode a thread's registers from the frame at ``stack_pointer``.

    Args:
        memory: Target memory of the halted target
        stacking: Layout of the saved frame
        stack_pointer: Saved stack pointer from the thread control block

    Returns:
        RegisterSet in the descriptor's canonical order

    Raises:
        MemoryReadFailed: If the frame cannot be read
    """
    frame = memory.read(stacking.frame_address(stack_pointer), stacking.frame_size)
    unwound_sp = stacking.unwound_stack_pointer(frame, stack_pointer)

    registers = []
    for name, location in zip(stacking.register_names, stacking.register_offsets):
        if location.offset == STACK_POINTER_OFFSET:
            value = unwound_sp
        elif location.offset == NOT_STACKED_OFFSET:
            value = 0
        else:
            size = location.bit_width // 8
            value = int.from_bytes(
                frame[location.offset:location.offset + size], "little"
            )
        mask = (1 << location.bit_width) - 1
        registers.append(RegisterValue(name, value & mask, location.bit_width))
    return RegisterSet(registers)
