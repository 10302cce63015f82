"""Exceptions raised by the thread introspection engine."""

from typing import Optional


class RiotscopeError(Exception):
    """Base class for all riotscope errors."""


class NoSymbols(RiotscopeError):
    """Symbol resolution never ran or produced nothing."""

    def __init__(self) -> None:
        super().__init__("No symbols for RIOT thread awareness")


class MissingRequiredSymbol(RiotscopeError):
    """A required scheduler symbol did not resolve.

    Thread awareness is unavailable for this firmware image; this is
    distinct from a transient memory read error.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Required symbol `{name}` is not available")


class UnsupportedArchitecture(RiotscopeError):
    """The attached core has no stacking profile."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Could not find target `{name}` in RIOT compatibility list")


class MemoryReadFailed(RiotscopeError):
    """A read of target memory failed.

    Attributes:
        address: Start address of the attempted read
        length: Number of bytes requested
        cause: Underlying transport error, if any
    """

    def __init__(
        self, address: int, length: int, cause: Optional[BaseException] = None
    ) -> None:
        self.address = address
        self.length = length
        self.cause = cause
        message = f"Failed to read {length} bytes at 0x{address:08x}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class InvalidThreadId(RiotscopeError):
    """The thread id does not name a live thread."""

    def __init__(self, thread_id: int, reason: str = "undefined thread id") -> None:
        self.thread_id = thread_id
        self.reason = reason
        super().__init__(f"Invalid thread id {thread_id}: {reason}")


class UnboundProfile(RiotscopeError):
    """The engine was used before a target profile was bound."""

    def __init__(self) -> None:
        super().__init__("No target profile bound; attach to a target first")
