"""GDB Machine Interface bridge for reading a halted target."""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pygdbmi.gdbcontroller import GdbController

from riotscope.core.errors import MemoryReadFailed

logger = logging.getLogger(__name__)

_HEX_RE = re.compile(r"0[xX][0-9a-fA-F]+")


@dataclass
class EvalResult:
    """Result of expression evaluation."""
    value: str
    error: Optional[str] = None


class GDBBridge:
    """GDB Machine Interface bridge.

    Supplies raw memory reads and symbol lookups for a target behind a
    GDB server (OpenOCD, pyOCD, J-Link). Calls block until GDB answers;
    the target is expected to be halted by the host debugger.
    """

    def __init__(self, gdb_path: str = "arm-none-eabi-gdb") -> None:
        """Initialize GDB bridge.

        Args:
            gdb_path: Path to GDB executable (default: arm-none-eabi-gdb)
        """
        self.gdb_path = gdb_path
        self.gdb: Optional[GdbController] = None
        self.connected = False

    # === Lifecycle Methods ===

    def start(self) -> None:
        """Start GDB process."""
        self.gdb = GdbController([self.gdb_path, "--interpreter=mi3"])

    def connect(self, host: str = "localhost", port: int = 3333) -> bool:
        """Connect to a remote GDB server.

        Args:
            host: Target host
            port: GDB server port (OpenOCD default: 3333)

        Returns:
            True if connected successfully
        """
        if not self.gdb:
            self.start()
        response = self._write(f"-target-select extended-remote {host}:{port}")
        self.connected = self._check_success(response)
        return self.connected

    def load_symbols(self, elf_path: str) -> bool:
        """Load symbols from ELF file.

        Args:
            elf_path: Path to ELF binary

        Returns:
            True if symbols loaded successfully
        """
        response = self._write(f"-file-exec-and-symbols {elf_path}")
        return self._check_success(response)

    def close(self) -> None:
        """Close GDB connection and exit."""
        if self.gdb:
            try:
                self.gdb.exit()
            except OSError as e:
                logger.warning(f"Error while exiting GDB: {e}")
            self.gdb = None
        self.connected = False

    # === Memory Operations ===

    def read_memory(self, address: int, length: int) -> bytes:
        """Read raw memory bytes.

        Args:
            address: Start address
            length: Number of bytes to read

        Returns:
            Memory contents as bytes

        Raises:
            MemoryReadFailed: If GDB reports an error or returns no data
        """
        response = self._write(f"-data-read-memory-bytes 0x{address:x} {length}")
        error = self._error_message(response)
        if error is not None:
            raise MemoryReadFailed(address, length, RuntimeError(error))
        data = self._parse_memory_bytes(response)
        if len(data) < length:
            raise MemoryReadFailed(address, length)
        return data

    # === Symbols ===

    def lookup_symbol(self, name: str) -> Optional[int]:
        """Look up the address of a symbol.

        Args:
            name: Symbol name

        Returns:
            Symbol address, or None if the symbol does not exist
        """
        result = self.evaluate(f"&{name}")
        if result.error is not None:
            logger.debug(f"Symbol `{name}` not found: {result.error}")
            return None
        return self._parse_int(result.value)

    def evaluate(self, expression: str) -> EvalResult:
        """Evaluate an expression.

        Args:
            expression: C expression to evaluate

        Returns:
            EvalResult with the value, or the error GDB reported
        """
        response = self._write(f'-data-evaluate-expression "{expression}"')
        error = self._error_message(response)
        if error is not None:
            return EvalResult(value="", error=error)
        result = self._parse_eval_result(response)
        return result or EvalResult(value="", error="no result")

    # === Registers ===

    def read_core_register(self, name: str) -> int:
        """Read a live core register of the halted target.

        Args:
            name: Register name as GDB knows it (e.g. "pc", "msp")

        Returns:
            Register value

        Raises:
            RuntimeError: If GDB has no such register or cannot read it
        """
        response = self._write("-data-list-register-names")
        error = self._error_message(response)
        if error is not None:
            raise RuntimeError(f"Failed to list registers: {error}")
        names = self._parse_register_names(response)
        if name not in names:
            raise RuntimeError(f"Unknown register `{name}`")
        number = names.index(name)

        response = self._write(f"-data-list-register-values x {number}")
        error = self._error_message(response)
        if error is not None:
            raise RuntimeError(f"Failed to read register `{name}`: {error}")
        values = self._parse_register_values(response)
        if number not in values:
            raise RuntimeError(f"GDB returned no value for register `{name}`")
        return values[number]

    # === Internal Methods ===

    def _write(self, command: str, timeout_sec: int = 10) -> List[Dict[str, Any]]:
        """Send command to GDB and return response."""
        if not self.gdb:
            raise RuntimeError("GDB not started")
        logger.debug(f"GDB <- {command}")
        return self.gdb.write(command, timeout_sec=timeout_sec)

    def _check_success(self, response: List[Dict[str, Any]]) -> bool:
        """Check if GDB response indicates success."""
        for r in response:
            if r.get("message") in ("done", "connected"):
                return True
            if r.get("message") == "error":
                return False
        return False

    def _error_message(self, response: List[Dict[str, Any]]) -> Optional[str]:
        """Return the message of an MI error record, if any."""
        for r in response:
            if r.get("type") == "result" and r.get("message") == "error":
                payload = r.get("payload") or {}
                return payload.get("msg", "unknown error")
        return None

    def _parse_int(self, value: str) -> int:
        """Parse integer from GDB response (handles 0x prefix and annotations)."""
        if not value:
            return 0
        value = value.strip()
        # Handle values like "(thread_t *(*)[33]) 0x20000100 <sched_threads>"
        match = _HEX_RE.search(value)
        if match:
            return int(match.group(0), 16)
        return int(value.split()[-1])

    def _parse_memory_bytes(self, response: List[Dict[str, Any]]) -> bytes:
        """Parse memory read response."""
        for r in response:
            if r.get("message") == "done":
                payload = r.get("payload") or {}
                memory = payload.get("memory", [])
                if memory:
                    contents = memory[0].get("contents", "")
                    return bytes.fromhex(contents)
        return b""

    def _parse_eval_result(self, response: List[Dict[str, Any]]) -> Optional[EvalResult]:
        """Parse expression evaluation response."""
        for r in response:
            if r.get("message") == "done":
                payload = r.get("payload") or {}
                value = payload.get("value", "")
                return EvalResult(value=value)
        return None

    def _parse_register_names(self, response: List[Dict[str, Any]]) -> List[str]:
        """Parse register names response (index is the register number)."""
        for r in response:
            if r.get("message") == "done":
                payload = r.get("payload") or {}
                return list(payload.get("register-names", []))
        return []

    def _parse_register_values(self, response: List[Dict[str, Any]]) -> Dict[int, int]:
        """Parse register values response."""
        result = {}
        for r in response:
            if r.get("message") == "done":
                payload = r.get("payload") or {}
                for reg in payload.get("register-values", []):
                    num = int(reg.get("number", "0"))
                    result[num] = self._parse_int(reg.get("value", "0"))
        return result

    # === Context Manager ===

    def __enter__(self) -> "GDBBridge":
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
