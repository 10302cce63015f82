"""Architecture profiles for thread stack decoding.

Each supported core sub-family maps to one TargetProfile: the offsets of
the saved stack pointer and status inside a RIOT thread control block,
plus the StackingDescriptor that decodes its saved context.

Example:
    from riotscope.arch import detect_architecture, resolve_profile

    variant = detect_architecture("cortex-m4")
    profile = resolve_profile(variant)
    print(profile.stacking.name)

Adding a new core:
    1. Describe its saved frame with a StackingDescriptor
    2. Add a TargetProfile for it
    3. Register it in PROFILES and ARCHITECTURES below
"""

from typing import Dict, Union

from riotscope.arch.base import (
    NOT_STACKED_OFFSET,
    STACK_POINTER_OFFSET,
    RegisterOffset,
    RegisterSet,
    RegisterValue,
    StackGrowth,
    StackingDescriptor,
    TargetProfile,
    cortex_m_stack_align,
    read_stacked_registers,
)
from riotscope.arch.cortex_m import (
    CORTEX_M0_PROFILE,
    CORTEX_M0_STACKING,
    CORTEX_M34_PROFILE,
    CORTEX_M34_STACKING,
)
from riotscope.core.errors import UnsupportedArchitecture
from riotscope.core.types import ArchitectureVariant

PROFILES: Dict[ArchitectureVariant, TargetProfile] = {
    ArchitectureVariant.CORTEX_M0: CORTEX_M0_PROFILE,
    ArchitectureVariant.CORTEX_M34: CORTEX_M34_PROFILE,
}

# Maps core names reported by the host to their context layout
ARCHITECTURES: Dict[str, ArchitectureVariant] = {
    # ARMv6-M and ARMv8-M baseline
    "cortex-m0": ArchitectureVariant.CORTEX_M0,
    "cortex-m0+": ArchitectureVariant.CORTEX_M0,
    "cortex-m1": ArchitectureVariant.CORTEX_M0,
    "cortex-m23": ArchitectureVariant.CORTEX_M0,
    # ARMv7-M and ARMv8-M mainline
    "cortex-m3": ArchitectureVariant.CORTEX_M34,
    "cortex-m4": ArchitectureVariant.CORTEX_M34,
    "cortex-m7": ArchitectureVariant.CORTEX_M34,
    "cortex-m33": ArchitectureVariant.CORTEX_M34,
}


def detect_architecture(cpu: str) -> ArchitectureVariant:
    """Map a core name to its architecture variant.

    Accepts the spellings GDB servers and QEMU use ("cortex-m4",
    "Cortex-M0+", "cortex_m3").

    Args:
        cpu: Core name of the attached target

    Returns:
        ArchitectureVariant for the core

    Raises:
        UnsupportedArchitecture: If the core has no known layout
    """
    key = cpu.strip().lower().replace("_", "-")
    variant = ARCHITECTURES.get(key)
    if variant is None:
        raise UnsupportedArchitecture(cpu)
    return variant


def resolve_profile(variant: Union[ArchitectureVariant, str]) -> TargetProfile:
    """Select the target profile for an architecture variant.

    Args:
        variant: ArchitectureVariant, or a core name to detect first

    Raises:
        UnsupportedArchitecture: If no profile matches
    """
    if isinstance(variant, str):
        variant = detect_architecture(variant)
    profile = PROFILES.get(variant)
    if profile is None:
        raise UnsupportedArchitecture(getattr(variant, "value", str(variant)))
    return profile


def list_architectures() -> list[str]:
    """List all supported core names.

    Returns:
        Sorted list of core names
    """
    return sorted(ARCHITECTURES.keys())


__all__ = [
    # Data model
    "ArchitectureVariant",
    "RegisterOffset",
    "RegisterSet",
    "RegisterValue",
    "StackGrowth",
    "StackingDescriptor",
    "TargetProfile",
    "NOT_STACKED_OFFSET",
    "STACK_POINTER_OFFSET",
    # Cortex-M layouts
    "CORTEX_M0_PROFILE",
    "CORTEX_M0_STACKING",
    "CORTEX_M34_PROFILE",
    "CORTEX_M34_STACKING",
    "cortex_m_stack_align",
    "read_stacked_registers",
    # Registry functions
    "PROFILES",
    "ARCHITECTURES",
    "detect_architecture",
    "resolve_profile",
    "list_architectures",
]
