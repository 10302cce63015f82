"""Command-line interface for riotscope."""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from riotscope.arch import ARCHITECTURES, PROFILES
from riotscope.core.errors import RiotscopeError
from riotscope.core.session import DebugSession
from riotscope.core.types import DEFAULT_CPU, DebugConfig
from riotscope.rtos.symbols import symbol_requirements

app = typer.Typer(
    name="riotscope",
    help="RIOT OS thread awareness for halted Cortex-M targets",
)
console = Console()
err_console = Console(stderr=True)
_log_handler: Optional[logging.Handler] = None


def configure_logging(verbose: bool = False) -> None:
    """Send log records to stderr, or to RIOTSCOPE_LOG_FILE if set."""
    global _log_handler
    log_level = logging.DEBUG if verbose else logging.WARNING
    log_level_str = os.environ.get("RIOTSCOPE_LOG_LEVEL", "").upper()
    if log_level_str in ("DEBUG", "INFO", "WARNING", "ERROR"):
        log_level = getattr(logging, log_level_str)

    log_file = os.environ.get("RIOTSCOPE_LOG_FILE")
    if log_file:
        handler = logging.FileHandler(log_file)
    else:
        handler = logging.StreamHandler(sys.stderr)

    handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    root = logging.getLogger()
    if _log_handler is not None:
        root.removeHandler(_log_handler)
        _log_handler.close()
    root.addHandler(handler)
    root.setLevel(log_level)
    _log_handler = handler


def _make_session(
    elf_path: Path, cpu: Optional[str], gdb_path: str, host: str, port: int
) -> DebugSession:
    if cpu is None:
        err_console.print(f"[dim]No --cpu given, assuming {DEFAULT_CPU}[/dim]")
        cpu = DEFAULT_CPU
    config = DebugConfig(
        elf_path=elf_path, cpu=cpu, gdb_path=gdb_path, host=host, port=port
    )
    return DebugSession(config)


# Shared options
ElfArg = typer.Argument(..., exists=True, dir_okay=False, help="Firmware ELF with symbols")
CpuOpt = typer.Option(
    None, "--cpu", help=f"Target core (default: {DEFAULT_CPU})", envvar="RIOTSCOPE_CPU"
)
GdbOpt = typer.Option(
    "arm-none-eabi-gdb", "--gdb-path", help="Path to GDB executable",
    envvar="RIOTSCOPE_GDB_PATH",
)
HostOpt = typer.Option("localhost", "--host", help="GDB server host", envvar="RIOTSCOPE_HOST")
PortOpt = typer.Option(3333, "--port", help="GDB server port", envvar="RIOTSCOPE_PORT")
VerboseOpt = typer.Option(False, "--verbose", "-v", help="Enable verbose logging")


@app.command()
def threads(
    elf_path: Path = ElfArg,
    cpu: Optional[str] = CpuOpt,
    gdb_path: str = GdbOpt,
    host: str = HostOpt,
    port: int = PortOpt,
    verbose: bool = VerboseOpt,
) -> None:
    """Show the threads of a halted target."""
    configure_logging(verbose)
    session = _make_session(elf_path, cpu, gdb_path, host, port)
    try:
        session.start()
        session.attach()
        snapshot = session.refresh_threads()
    except (RiotscopeError, RuntimeError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    finally:
        session.stop()

    table = Table(title="RIOT threads")
    table.add_column("PID", justify="right")
    table.add_column("State")
    table.add_column("Name")
    for thread in snapshot.threads:
        style = "bold green" if thread.thread_id == snapshot.active_thread_id else None
        table.add_row(str(thread.thread_id), thread.state_label, thread.name, style=style)
    console.print(table)

    console.print(f"Active PID: {snapshot.active_thread_id}")
    if snapshot.count_mismatch:
        console.print(
            f"[yellow]sched_num_threads reports {snapshot.reported_thread_count} "
            f"threads, {snapshot.live_thread_count} slots in use[/yellow]"
        )


@app.command()
def registers(
    elf_path: Path = ElfArg,
    thread_id: int = typer.Argument(..., help="PID of the thread"),
    cpu: Optional[str] = CpuOpt,
    gdb_path: str = GdbOpt,
    host: str = HostOpt,
    port: int = PortOpt,
    hex_list: bool = typer.Option(
        False, "--hex", help="Print as a GDB remote protocol register list"
    ),
    verbose: bool = VerboseOpt,
) -> None:
    """Show the saved registers of one thread."""
    configure_logging(verbose)
    session = _make_session(elf_path, cpu, gdb_path, host, port)
    try:
        session.start()
        session.attach()
        regs = session.thread_registers(thread_id)
    except (RiotscopeError, RuntimeError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    finally:
        session.stop()

    if hex_list:
        console.print(regs.to_hex())
        return

    lines = [f"[bold]{name:>4}[/bold]  {value}" for name, value in regs.to_dict().items()]
    console.print(Panel("\n".join(lines), title=f"[bold blue]Thread {thread_id}[/bold blue]"))


@app.command()
def symbols() -> None:
    """List the firmware symbols thread awareness needs."""
    table = Table(title="Scheduler symbols")
    table.add_column("Symbol")
    table.add_column("Required")
    for requirement in symbol_requirements():
        table.add_row(requirement.name, "yes" if requirement.required else "no (DEVELHELP)")
    console.print(table)


@app.command()
def profiles() -> None:
    """List supported cores and their stacking layouts."""
    table = Table(title="Supported cores")
    table.add_column("Core")
    table.add_column("Layout")
    table.add_column("Frame size", justify="right")
    for cpu, variant in sorted(ARCHITECTURES.items()):
        stacking = PROFILES[variant].stacking
        table.add_row(cpu, stacking.name, f"0x{stacking.frame_size:x}")
    console.print(table)


@app.command()
def version() -> None:
    """Show version information."""
    from riotscope import __version__
    console.print(f"[bold blue]riotscope[/bold blue] v{__version__}")


if __name__ == "__main__":
    app()
