"""Scheduler symbols the RIOT thread reader depends on."""

import logging
from enum import IntEnum
from typing import Callable, List, Optional, Sequence

from riotscope.core.errors import MissingRequiredSymbol, NoSymbols
from riotscope.core.types import SymbolRequirement

logger = logging.getLogger(__name__)

SymbolLookup = Callable[[str], Optional[int]]


class RiotSymbol(IntEnum):
    """Index of each symbol in the requirement list (see sched.c)."""
    THREADS_BASE = 0
    NUM_THREADS = 1
    ACTIVE_PID = 2
    MAX_THREADS = 3
    NAME_OFFSET = 4


# (name, required); order matches RiotSymbol
_SYMBOLS = (
    ("sched_threads", True),
    ("sched_num_threads", True),
    ("sched_active_pid", True),
    ("max_threads", True),
    # Only exported when RIOT is built with DEVELHELP
    ("_tcb_name_offset", False),
)


def symbol_requirements() -> List[SymbolRequirement]:
    """Declare the symbols needed for thread awareness.

    Returns a fresh, unresolved list on every call so each session can
    populate its own copy.
    """
    return [SymbolRequirement(name=name, required=required) for name, required in _SYMBOLS]


def resolve_symbols(
    requirements: Sequence[SymbolRequirement], lookup: SymbolLookup
) -> List[SymbolRequirement]:
    """Fill in symbol addresses using ``lookup``.

    Absent symbols are left unresolved; whether that is fatal is decided
    when the reader runs.

    Args:
        requirements: Declared symbols
        lookup: Returns a symbol's address, or None if it does not exist

    Returns:
        The same requirements, with resolved_address set
    """
    for requirement in requirements:
        address = lookup(requirement.name)
        requirement.resolved_address = address or None
        if requirement.resolved:
            logger.debug(f"Resolved `{requirement.name}` at 0x{address:08x}")
        elif requirement.required:
            logger.warning(f"Required symbol `{requirement.name}` not found")
        else:
            logger.info(f"Optional symbol `{requirement.name}` not found")
    return list(requirements)


def detect_rtos(symbols: Optional[Sequence[SymbolRequirement]]) -> bool:
    """Check whether the firmware looks like RIOT."""
    if not symbols:
        return False
    return symbols[RiotSymbol.THREADS_BASE].resolved


def symbol_address(
    symbols: Optional[Sequence[SymbolRequirement]], symbol: RiotSymbol
) -> Optional[int]:
    """Address of ``symbol``, or None if it is optional and unresolved.

    Raises:
        NoSymbols: If no symbols were resolved at all
        MissingRequiredSymbol: If a required symbol is unresolved
    """
    if not symbols or len(symbols) <= symbol:
        raise NoSymbols()
    if not any(s.resolved for s in symbols):
        raise NoSymbols()
    requirement = symbols[symbol]
    if requirement.resolved:
        return requirement.resolved_address
    if requirement.required:
        raise MissingRequiredSymbol(requirement.name)
    return None
