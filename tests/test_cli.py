"""Tests for the command-line interface."""

import logging
from pathlib import Path

from typer.testing import CliRunner
from unittest.mock import patch

from riotscope import __version__
from riotscope.arch.base import RegisterSet, RegisterValue
from riotscope.cli import app, configure_logging
from riotscope.core.errors import InvalidThreadId, MemoryReadFailed
from riotscope.core.types import SchedulerSnapshot, ThreadDescriptor

runner = CliRunner()

SNAPSHOT = SchedulerSnapshot(
    active_thread_id=2,
    reported_thread_count=3,
    threads=(
        ThreadDescriptor(1, "Running", "main"),
        ThreadDescriptor(2, "Sleeping", "idle"),
    ),
)


class TestStaticCommands:
    """Test commands that need no target."""

    def test_symbols(self) -> None:
        """Test listing scheduler symbols."""
        result = runner.invoke(app, ["symbols"])
        assert result.exit_code == 0
        assert "sched_threads" in result.output
        assert "_tcb_name_offset" in result.output

    def test_profiles(self) -> None:
        """Test listing supported cores."""
        result = runner.invoke(app, ["profiles"])
        assert result.exit_code == 0
        assert "cortex-m0+" in result.output
        assert "riot-cortex-m34" in result.output

    def test_version(self) -> None:
        """Test version output."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestThreadsCommand:
    """Test the threads command with a mocked session."""

    def test_threads(self, elf_file: Path) -> None:
        """Test the thread table."""
        with patch("riotscope.cli.DebugSession") as mock_cls:
            session = mock_cls.return_value
            session.refresh_threads.return_value = SNAPSHOT

            result = runner.invoke(app, ["threads", str(elf_file), "--cpu", "cortex-m0"])

        assert result.exit_code == 0
        assert "Running" in result.output
        assert "idle" in result.output
        assert "Active PID: 2" in result.output
        assert "slots in use" in result.output
        config = mock_cls.call_args.args[0]
        assert config.cpu == "cortex-m0"
        assert config.elf_path == elf_file
        session.start.assert_called_once()
        session.attach.assert_called_once()
        session.stop.assert_called_once()

    def test_threads_read_error(self, elf_file: Path) -> None:
        """Test a failed refresh exits with an error."""
        with patch("riotscope.cli.DebugSession") as mock_cls:
            session = mock_cls.return_value
            session.refresh_threads.side_effect = MemoryReadFailed(0x20000000, 4)

            result = runner.invoke(app, ["threads", str(elf_file)])

        assert result.exit_code == 1
        assert "Error" in result.output
        session.stop.assert_called_once()

    def test_threads_port_from_env(self, elf_file: Path) -> None:
        """Test the GDB server port can come from the environment."""
        with patch("riotscope.cli.DebugSession") as mock_cls:
            mock_cls.return_value.refresh_threads.return_value = SNAPSHOT
            result = runner.invoke(
                app, ["threads", str(elf_file)], env={"RIOTSCOPE_PORT": "2331"}
            )

        assert result.exit_code == 0
        assert mock_cls.call_args.args[0].port == 2331

    def test_missing_elf(self, tmp_path: Path) -> None:
        """Test a missing ELF is rejected before connecting."""
        with patch("riotscope.cli.DebugSession") as mock_cls:
            result = runner.invoke(app, ["threads", str(tmp_path / "missing.elf")])
        assert result.exit_code != 0
        mock_cls.assert_not_called()


class TestRegistersCommand:
    """Test the registers command with a mocked session."""

    def test_registers(self, elf_file: Path) -> None:
        """Test the register panel."""
        regs = RegisterSet([RegisterValue("pc", 0x08000123), RegisterValue("sp", 0x20001000)])
        with patch("riotscope.cli.DebugSession") as mock_cls:
            mock_cls.return_value.thread_registers.return_value = regs
            result = runner.invoke(app, ["registers", str(elf_file), "2"])

        assert result.exit_code == 0
        assert "0x08000123" in result.output
        mock_cls.return_value.thread_registers.assert_called_once_with(2)

    def test_registers_hex(self, elf_file: Path) -> None:
        """Test the remote protocol register list."""
        regs = RegisterSet([RegisterValue("r0", 1)])
        with patch("riotscope.cli.DebugSession") as mock_cls:
            mock_cls.return_value.thread_registers.return_value = regs
            result = runner.invoke(app, ["registers", str(elf_file), "1", "--hex"])

        assert result.exit_code == 0
        assert "01000000" in result.output

    def test_registers_invalid_thread(self, elf_file: Path) -> None:
        """Test PID 0 is reported as an error."""
        with patch("riotscope.cli.DebugSession") as mock_cls:
            mock_cls.return_value.thread_registers.side_effect = InvalidThreadId(0)
            result = runner.invoke(app, ["registers", str(elf_file), "0"])

        assert result.exit_code == 1
        assert "Invalid thread id" in result.output


class TestSessionErrors:
    """Test failures before thread awareness is attached."""

    def test_gdb_not_found(self, elf_file: Path) -> None:
        """Test a GDB path that does not resolve gives an error line."""
        result = runner.invoke(
            app, ["threads", str(elf_file), "--gdb-path", "/nonexistent/gdb"]
        )

        assert result.exit_code == 1
        assert "Error" in result.output
        assert "/nonexistent/gdb" in result.output

    def test_default_cpu_is_announced(self, elf_file: Path) -> None:
        """Test the assumed core is shown when --cpu is omitted."""
        with patch("riotscope.cli.DebugSession") as mock_cls:
            mock_cls.return_value.refresh_threads.return_value = SNAPSHOT
            result = runner.invoke(app, ["threads", str(elf_file)])

        assert result.exit_code == 0
        assert "assuming cortex-m4" in result.output
        assert mock_cls.call_args.args[0].cpu == "cortex-m4"


class TestConfigureLogging:
    """Test log handler setup."""

    def test_repeated_calls_keep_one_handler(self) -> None:
        """Test configuring twice does not duplicate the handler."""
        root = logging.getLogger()
        before = list(root.handlers)
        level = root.level
        try:
            configure_logging()
            configure_logging(verbose=True)

            added = [h for h in root.handlers if h not in before]
            assert len(added) == 1
            assert root.level == logging.DEBUG
        finally:
            for handler in root.handlers[:]:
                if handler not in before:
                    root.removeHandler(handler)
            root.setLevel(level)
