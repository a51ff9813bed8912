"""CHIP-8 machine state structures."""

import jax
import jax.numpy as jnp
import numpy as np
from flax.struct import dataclass, PyTreeNode, field

from chipvm.constants import (
    PROGRAM_START, FONT_START, FONT_DATA, SCREEN_WIDTH, SCREEN_HEIGHT, STACK_SIZE,
    MEMORY_SIZE, MAX_PROGRAM_SIZE, NUM_REGISTERS, NUM_KEYS, INSTRUCTION_SIZE,
)


class ProgramTooLargeError(ValueError):
    """Raised when a program does not fit between PROGRAM_START and the end of memory."""


@dataclass(frozen=True)
class StackState:
    """Call stack: fixed slots plus a pointer to the topmost used slot."""
    data: jnp.ndarray = field(default_factory=lambda: jnp.zeros(STACK_SIZE, dtype=jnp.uint16))
    pointer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))


class EmulatorState(PyTreeNode):
    """Complete architectural state of one CHIP-8 machine.

    The display is indexed ``[column, row]``. ``consume_key_on_skip`` selects the
    EX9E behaviour: when set, a satisfied key check releases the key.
    """
    rng: jax.random.PRNGKey
    memory: jnp.ndarray = field(default_factory=lambda: jnp.zeros(MEMORY_SIZE, dtype=jnp.uint8))
    pc: jnp.ndarray = field(default_factory=lambda: jnp.astype(PROGRAM_START, jnp.uint16))
    display: jnp.ndarray = field(default_factory=lambda: jnp.zeros((SCREEN_WIDTH, SCREEN_HEIGHT), dtype=jnp.bool_))
    stack: StackState = StackState()
    delay_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    sound_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    keypad: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_KEYS, dtype=jnp.bool_))
    V: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_REGISTERS, dtype=jnp.uint8))
    I: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint16))
    consume_key_on_skip: bool = field(pytree_node=False, default=True)

    def next_instruction(self) -> "EmulatorState":
        """Advance pc past the current instruction."""
        return self.replace(pc=self.pc + INSTRUCTION_SIZE)

    def skip_next_instruction(self) -> "EmulatorState":
        """Advance pc past the current and the following instruction."""
        return self.replace(pc=self.pc + 2 * INSTRUCTION_SIZE)


def create_state(rng: jax.random.PRNGKey = jax.random.PRNGKey(0),
                 consume_key_on_skip: bool = True) -> EmulatorState:
    """Create initial machine state with font data loaded."""
    state = EmulatorState(rng, consume_key_on_skip=consume_key_on_skip)
    return state.replace(memory=state.memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(FONT_DATA))


def load_program(state: EmulatorState, program: bytes) -> EmulatorState:
    """Copy program bytes into memory starting at PROGRAM_START.

    The size is validated before memory is touched, so a failed load leaves the
    state unchanged.
    """
    program = bytes(program)
    if len(program) > MAX_PROGRAM_SIZE:
        raise ProgramTooLargeError(
            f"Program is {len(program)} bytes, at most {MAX_PROGRAM_SIZE} fit at 0x{PROGRAM_START:03X}"
        )
    if not program:
        return state
    program_array = jnp.array(list(program), dtype=jnp.uint8)
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(program)].set(program_array)
    return state.replace(memory=new_memory)


def tick_timers(state: EmulatorState) -> EmulatorState:
    """Decrement both timers by one, stopping at zero."""
    return state.replace(
        delay_timer=jnp.where(state.delay_timer > 0, state.delay_timer - 1, state.delay_timer),
        sound_timer=jnp.where(state.sound_timer > 0, state.sound_timer - 1, state.sound_timer),
    )


def sound_active(state: EmulatorState) -> bool:
    """Whether the tone should currently sound."""
    return bool(state.sound_timer > 0)


def set_key_state(state: EmulatorState, key: int, pressed: bool) -> EmulatorState:
    """Record a key press or release for key 0x0-0xF."""
    if not 0 <= key < NUM_KEYS:
        raise ValueError(f"Key index must be in 0..{NUM_KEYS - 1}, got {key}")
    return state.replace(keypad=state.keypad.at[key].set(bool(pressed)))


def get_display_buffer(state: EmulatorState) -> np.ndarray:
    """Read-only snapshot of the display as a (64, 32) boolean array."""
    buffer = np.array(state.display, dtype=np.bool_)
    buffer.setflags(write=False)
    return buffer
