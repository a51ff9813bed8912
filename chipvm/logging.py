"""Console logging for chipvm.

Messages go to stdout as ``[elapsed][LEVEL][name] message``. Levels are coloured
when stdout is a terminal. ``logger`` is the instance shared by the interpreter,
the driver and the command line.
"""

import sys
import time
from typing import Any, Dict

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

ANSI_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
ANSI_RESET = "\033[0m"


class ConsoleLogger:
    """Leveled console logger writing to stdout."""

    def __init__(self, name: str = "chipvm", log_level: str = "INFO",
                 use_colors: bool = True, show_timestamps: bool = True):
        self.name = name
        self.set_level(log_level)
        self.use_colors = use_colors and getattr(sys.stdout, "isatty", lambda: False)()
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

    def set_level(self, log_level: str):
        """Change the minimum level that gets printed."""
        log_level = log_level.upper()
        if log_level not in LEVELS:
            raise ValueError(f"Unknown log level '{log_level}'. Available: {list(LEVELS)}")
        self.log_level = log_level
        self.threshold = LEVELS.index(log_level)

    def enabled(self, level: str) -> bool:
        return LEVELS.index(level) >= self.threshold

    def _format(self, level: str, message: str) -> str:
        tag = f"[{level:>8s}]"
        if self.use_colors:
            tag = ANSI_COLORS[level] + tag + ANSI_RESET
        prefix = f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        return f"{prefix}{tag}[{self.name}] {message}"

    def log(self, level: str, message: str):
        level = level.upper()
        if self.enabled(level):
            print(self._format(level, message), flush=True)

    def debug(self, message: str):
        self.log("DEBUG", message)

    def info(self, message: str):
        self.log("INFO", message)

    def warning(self, message: str):
        self.log("WARNING", message)

    def error(self, message: str):
        self.log("ERROR", message)

    def critical(self, message: str):
        self.log("CRITICAL", message)


class MachineLogger(ConsoleLogger):
    """Logger with helpers for interpreter and driver events."""

    rule = "-" * 60

    def log_unknown_opcode(self, opcode: int, pc: int):
        self.warning(f"Unknown opcode 0x{opcode:04X} at pc=0x{pc:03X}, treated as no-op")

    def log_fault(self, message: str):
        self.error(f"Machine fault: {message}")

    def log_run_start(self, config: Dict[str, Any]):
        """Dump the driver configuration before the run loop starts."""
        self.info(self.rule)
        self.info("Starting machine:")
        for key, value in config.items():
            shown = f"{value:.2f}" if isinstance(value, float) else value
            self.info(f"  {key}: {shown}")
        self.info(self.rule)

    def log_run_end(self, instructions: int, timer_ticks: int, elapsed: float):
        """Summarize a finished run."""
        rate = instructions / elapsed if elapsed > 0 else 0.0
        self.info(self.rule)
        self.info(f"Run finished after {elapsed:.1f}s")
        self.info(f"  instructions: {instructions} ({rate:.0f} Hz)")
        self.info(f"  timer ticks: {timer_ticks}")
        self.info(self.rule)


logger = MachineLogger()
