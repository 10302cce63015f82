"""RIOT OS thread awareness."""

from riotscope.rtos.riot import (
    NAME_BUFFER_SIZE,
    NAMES_UNAVAILABLE,
    NO_NAME,
    THREAD_STATES,
    UNKNOWN_STATE,
    RiotThreadReader,
    thread_state_label,
)
from riotscope.rtos.symbols import (
    RiotSymbol,
    detect_rtos,
    resolve_symbols,
    symbol_address,
    symbol_requirements,
)

__all__ = [
    "RiotThreadReader",
    "RiotSymbol",
    "THREAD_STATES",
    "UNKNOWN_STATE",
    "NAMES_UNAVAILABLE",
    "NO_NAME",
    "NAME_BUFFER_SIZE",
    "thread_state_label",
    "symbol_requirements",
    "resolve_symbols",
    "detect_rtos",
    "symbol_address",
]
