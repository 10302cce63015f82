"""riotscope: RIOT OS thread awareness for halted Cortex-M targets."""

__version__ = "0.1.0"
