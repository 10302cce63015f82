"""Typed access to halted target memory.

All scalars on the supported cores are little-endian. Any failure of the
underlying read, including a short read, is reported as MemoryReadFailed
carrying the address and length that were attempted.
"""

from typing import Protocol

from riotscope.core.errors import MemoryReadFailed


class MemoryReader(Protocol):
    """Raw memory read primitive supplied by the debugger backend."""

    def read_memory(self, address: int, length: int) -> bytes:
        ...


class TargetMemory:
    """Little-endian scalar and string reads over a MemoryReader."""

    def __init__(self, reader: MemoryReader, pointer_size: int = 4) -> None:
        self.reader = reader
        self.pointer_size = pointer_size

    def read(self, address: int, length: int) -> bytes:
        """Read exactly ``length`` bytes at ``address``."""
        try:
            data = self.reader.read_memory(address, length)
        except MemoryReadFailed:
            raise
        except Exception as e:
            raise MemoryReadFailed(address, length, e) from e
        if data is None or len(data) < length:
            raise MemoryReadFailed(address, length)
        return bytes(data[:length])

    def read_int(self, address: int, size: int, signed: bool = False) -> int:
        return int.from_bytes(self.read(address, size), "little", signed=signed)

    def read_u8(self, address: int) -> int:
        return self.read_int(address, 1)

    def read_u16(self, address: int) -> int:
        return self.read_int(address, 2)

    def read_s16(self, address: int) -> int:
        return self.read_int(address, 2, signed=True)

    def read_u32(self, address: int) -> int:
        return self.read_int(address, 4)

    def read_s32(self, address: int) -> int:
        return self.read_int(address, 4, signed=True)

    def read_pointer(self, address: int) -> int:
        return self.read_int(address, self.pointer_size)

    def read_c_string(self, address: int, size: int) -> str:
        """Read a NUL-terminated string from a buffer of ``size`` bytes.

        The string is cut at the first NUL and never exceeds
        ``size - 1`` characters, whatever the target holds.
        """
        raw = self.read(address, size)
        text = raw.split(b"\x00", 1)[0][: size - 1]
        return text.decode("utf-8", errors="replace")
