"""Run loop pacing for a single machine.

Two independent fixed-rate clocks drive the machine: the instruction clock
(``step``) and the 60 Hz timer clock (``tick_timers``). Each clock counts ticks
from an absolute origin, so rounding never accumulates into drift.
"""

import time
from typing import Callable, Optional

import jax

from chipvm.state import EmulatorState, create_state, load_program, tick_timers, set_key_state, sound_active
from chipvm.emulator import run
from chipvm.logging import logger


class FixedRateClock:
    """Counts whole ticks of a fixed-frequency clock against a time source."""

    def __init__(self, frequency: float, start: float):
        if frequency <= 0:
            raise ValueError(f"Clock frequency must be positive, got {frequency}")
        self.frequency = frequency
        self.origin = start
        self.ticks = 0

    def due(self, now: float) -> int:
        """Number of ticks that elapsed since the previous call."""
        total = int((now - self.origin) * self.frequency)
        due = max(total - self.ticks, 0)
        self.ticks += due
        return due

    def rebase(self, now: float):
        """Drop any backlog and restart counting from ``now``."""
        self.origin = now
        self.ticks = 0


class Driver:
    """Owns one machine and advances it in real time.

    Args:
        program: Raw program bytes, reloaded on ``restart``
        instruction_frequency: Instruction clock in Hz (typically 500-700)
        timer_frequency: Delay/sound timer clock in Hz
        max_catch_up: Longest backlog, in seconds, replayed after a stall; older
            ticks are dropped instead of executed in a burst
        rng: JAX random key for the machine's random source
        consume_key_on_skip: EX9E releases the key it matched
        time_fn: Monotonic time source, in seconds
    """

    def __init__(
        self,
        program: bytes,
        instruction_frequency: int = 700,
        timer_frequency: int = 60,
        max_catch_up: float = 0.25,
        rng: Optional[jax.random.PRNGKey] = None,
        consume_key_on_skip: bool = True,
        time_fn: Callable[[], float] = time.perf_counter,
    ):
        self.program = bytes(program)
        self.instruction_frequency = instruction_frequency
        self.timer_frequency = timer_frequency
        self.max_catch_up = max_catch_up
        self.rng = rng if rng is not None else jax.random.PRNGKey(0)
        self.consume_key_on_skip = consume_key_on_skip
        self.time_fn = time_fn

        self.instructions_executed = 0
        self.timer_ticks = 0
        self.restart()

    @property
    def config(self) -> dict:
        return {
            "program_size": len(self.program),
            "instruction_frequency": self.instruction_frequency,
            "timer_frequency": self.timer_frequency,
            "max_catch_up": self.max_catch_up,
            "consume_key_on_skip": self.consume_key_on_skip,
        }

    def restart(self):
        """Rebuild the machine, reload the program and restart both clocks."""
        state = create_state(self.rng, consume_key_on_skip=self.consume_key_on_skip)
        self.state: EmulatorState = load_program(state, self.program)
        now = self.time_fn()
        self.instruction_clock = FixedRateClock(self.instruction_frequency, now)
        self.timer_clock = FixedRateClock(self.timer_frequency, now)

    def set_key(self, key: int, pressed: bool):
        self.state = set_key_state(self.state, key, pressed)

    @property
    def sound_active(self) -> bool:
        return sound_active(self.state)

    def _limit_backlog(self, clock: FixedRateClock, now: float):
        """Keep at most ``max_catch_up`` seconds of pending ticks on ``clock``."""
        backlog = (now - clock.origin) * clock.frequency - clock.ticks
        limit = self.max_catch_up * clock.frequency
        if backlog > limit:
            logger.debug(f"Dropping {int(backlog - limit)} ticks of a {clock.frequency} Hz clock after a stall")
            clock.rebase(now - self.max_catch_up)

    def update(self, now: Optional[float] = None) -> int:
        """Run every instruction and timer tick due by ``now``.

        Instructions due within the same call run before the timer ticks.
        Returns the number of instructions executed.
        """
        if now is None:
            now = self.time_fn()
        self._limit_backlog(self.instruction_clock, now)
        self._limit_backlog(self.timer_clock, now)

        steps = self.instruction_clock.due(now)
        ticks = self.timer_clock.due(now)

        self.state = run(self.state, steps)
        for _ in range(ticks):
            self.state = tick_timers(self.state)

        self.instructions_executed += steps
        self.timer_ticks += ticks
        return steps
