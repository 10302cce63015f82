"""ARM Cortex-M thread stacking layouts.

RIOT's context switch (cpu/cortex_m_common/thread_arch.c) saves the
callee-saved registers below the hardware exception frame. ARMv6-M can
only push the low registers directly, so the M0 layout stores r8-r11
ahead of r4-r7; the M3/M4 layout stores r4-r11 in order. Both share the
17-entry ARMv7-M core register order used by GDB.
"""

from functools import partial

from riotscope.arch.base import (
    RegisterOffset,
    StackGrowth,
    StackingDescriptor,
    TargetProfile,
    STACK_POINTER_OFFSET,
    cortex_m_stack_align,
)
from riotscope.core.types import ArchitectureVariant

REGISTER_NAMES = (
    "r0", "r1", "r2", "r3", "r4", "r5", "r6", "r7",
    "r8", "r9", "r10", "r11", "r12", "sp", "lr", "pc", "xpsr",
)

FRAME_SIZE = 0x44
XPSR_OFFSET = 0x40

# xPSR sits at the same place in both layouts
_stack_align = partial(
    cortex_m_stack_align,
    frame_size=FRAME_SIZE,
    growth=StackGrowth.DOWN,
    xpsr_offset=XPSR_OFFSET,
)


def _offsets(*offsets: int) -> tuple:
    return tuple(RegisterOffset(offset, 32) for offset in offsets)


CORTEX_M0_STACKING = StackingDescriptor(
    name="riot-cortex-m0",
    frame_size=FRAME_SIZE,
    growth=StackGrowth.DOWN,
    register_names=REGISTER_NAMES,
    register_offsets=_offsets(
        0x24, 0x28, 0x2C, 0x30,     # r0-r3
        0x14, 0x18, 0x1C, 0x20,     # r4-r7
        0x04, 0x08, 0x0C, 0x10,     # r8-r11
        0x34,                       # r12
        STACK_POINTER_OFFSET,       # sp
        0x38, 0x3C, XPSR_OFFSET,    # lr, pc, xpsr
    ),
    alignment=_stack_align,
)

CORTEX_M34_STACKING = StackingDescriptor(
    name="riot-cortex-m34",
    frame_size=FRAME_SIZE,
    growth=StackGrowth.DOWN,
    register_names=REGISTER_NAMES,
    register_offsets=_offsets(
        0x24, 0x28, 0x2C, 0x30,     # r0-r3
        0x04, 0x08, 0x0C, 0x10,     # r4-r7
        0x14, 0x18, 0x1C, 0x20,     # r8-r11
        0x34,                       # r12
        STACK_POINTER_OFFSET,       # sp
        0x38, 0x3C, XPSR_OFFSET,    # lr, pc, xpsr
    ),
    alignment=_stack_align,
)

# thread_t: sp at 0x00, status at 0x04
CORTEX_M0_PROFILE = TargetProfile(
    variant=ArchitectureVariant.CORTEX_M0,
    thread_sp_offset=0x00,
    thread_status_offset=0x04,
    stacking=CORTEX_M0_STACKING,
)

CORTEX_M34_PROFILE = TargetProfile(
    variant=ArchitectureVariant.CORTEX_M34,
    thread_sp_offset=0x00,
    thread_status_offset=0x04,
    stacking=CORTEX_M34_STACKING,
)
