"""Tests for typed target memory access."""

import pytest
from unittest.mock import Mock

from riotscope.core.errors import MemoryReadFailed
from riotscope.core.memory import TargetMemory

from conftest import FakeMemory


class TestScalarReads:
    """Test little-endian scalar reads."""

    def test_unsigned(self, fake_memory: FakeMemory) -> None:
        """Test unsigned reads of each width."""
        fake_memory.write(0x100, bytes([0x78, 0x56, 0x34, 0x12]))
        memory = TargetMemory(fake_memory)
        assert memory.read_u8(0x100) == 0x78
        assert memory.read_u16(0x100) == 0x5678
        assert memory.read_u32(0x100) == 0x12345678
        assert memory.read_pointer(0x100) == 0x12345678

    def test_signed(self, fake_memory: FakeMemory) -> None:
        """Test signed reads."""
        fake_memory.write_u16(0x100, -1, signed=True)
        fake_memory.write_u32(0x104, -2, signed=True)
        memory = TargetMemory(fake_memory)
        assert memory.read_s16(0x100) == -1
        assert memory.read_u16(0x100) == 0xFFFF
        assert memory.read_s32(0x104) == -2

    def test_pointer_size(self, fake_memory: FakeMemory) -> None:
        """Test pointer reads follow the configured pointer size."""
        fake_memory.write(0x100, bytes(range(1, 9)))
        memory = TargetMemory(fake_memory, pointer_size=8)
        assert memory.read_pointer(0x100) == 0x0807060504030201


class TestReadErrors:
    """Test read failure reporting."""

    def test_reader_exception_wrapped(self, fake_memory: FakeMemory) -> None:
        """Test transport errors become MemoryReadFailed."""
        fake_memory.fail(0x102)
        memory = TargetMemory(fake_memory)

        with pytest.raises(MemoryReadFailed) as exc:
            memory.read_u32(0x100)

        assert exc.value.address == 0x100
        assert exc.value.length == 4
        assert isinstance(exc.value.cause, OSError)
        assert "0x00000100" in str(exc.value)

    def test_short_read(self) -> None:
        """Test a short read is a failure."""
        reader = Mock()
        reader.read_memory.return_value = b"\x01\x02"
        memory = TargetMemory(reader)

        with pytest.raises(MemoryReadFailed) as exc:
            memory.read_u32(0x200)
        assert exc.value.cause is None

    def test_memory_read_failed_passes_through(self) -> None:
        """Test readers may raise MemoryReadFailed themselves."""
        original = MemoryReadFailed(0x300, 4)
        reader = Mock()
        reader.read_memory.side_effect = original
        memory = TargetMemory(reader)

        with pytest.raises(MemoryReadFailed) as exc:
            memory.read_u32(0x300)
        assert exc.value is original


class TestCString:
    """Test bounded string reads."""

    def test_terminated(self, fake_memory: FakeMemory) -> None:
        """Test a string ends at the first NUL."""
        fake_memory.write(0x100, b"main\x00garbage")
        memory = TargetMemory(fake_memory)
        assert memory.read_c_string(0x100, 32) == "main"

    def test_unterminated(self, fake_memory: FakeMemory) -> None:
        """Test an unterminated buffer is truncated to size - 1."""
        fake_memory.write(0x100, b"x" * 40)
        memory = TargetMemory(fake_memory)
        assert memory.read_c_string(0x100, 32) == "x" * 31

    def test_reads_only_buffer(self, fake_memory: FakeMemory) -> None:
        """Test the read never exceeds the buffer size."""
        fake_memory.write(0x100, b"y" * 40)
        memory = TargetMemory(fake_memory)
        memory.read_c_string(0x100, 16)
        assert fake_memory.reads == [(0x100, 16)]

    def test_invalid_bytes(self, fake_memory: FakeMemory) -> None:
        """Test undecodable bytes are replaced, not fatal."""
        fake_memory.write(0x100, b"ab\xff\x00")
        memory = TargetMemory(fake_memory)
        assert memory.read_c_string(0x100, 8) == "ab\ufffd"
