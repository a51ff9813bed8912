"""Main CHIP-8 interpreter: fetch, dispatch and the checked entry points.

``dispatch`` and ``_fetch`` are pure traced functions. The public ``fetch``,
``execute``, ``step`` and ``run`` wrap them in ``checkify`` under ``jax.jit`` and turn a failed
runtime check (stack overflow/underflow, out-of-range memory) into ``MachineFault``.
"""

from typing import Optional

import jax
import jax.lax
import jax.numpy as jnp
from jax.experimental import checkify

from chipvm.state import EmulatorState, load_program
from chipvm.decode import decode
from chipvm.memory import read_word
from chipvm.logging import logger
from chipvm.instructions.system import execute_system_instruction
from chipvm.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset, execute_skip_if_key
)
from chipvm.instructions.alu import execute_alu_operation
from chipvm.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chipvm.instructions.display import execute_display
from chipvm.instructions.misc import execute_misc_instruction


class MachineFault(RuntimeError):
    """Unrecoverable interpreter error; the machine must stop."""

    def __init__(self, message: str, pc: Optional[int] = None, opcode: Optional[int] = None):
        self.pc = pc
        self.opcode = opcode
        context = []
        if pc is not None:
            context.append(f"pc=0x{pc:03X}")
        if opcode is not None:
            context.append(f"opcode=0x{opcode:04X}")
        if context:
            message = f"{message} [{', '.join(context)}]"
        super().__init__(message)


def dispatch(state: EmulatorState, instruction) -> EmulatorState:
    """Execute single CHIP-8 instruction (unchecked, traceable)."""
    decoded_instruction = decode(instruction)

    return jax.lax.switch(
        decoded_instruction.opcode,
        [
            execute_system_instruction,
            execute_jump,
            execute_call,
            execute_skip_if_equal_immediate,
            execute_skip_if_not_equal_immediate,
            execute_skip_if_equal_register,
            execute_set,
            execute_add,
            execute_alu_operation,
            execute_skip_if_not_equal_register,
            execute_set_index,
            execute_jump_with_offset,
            execute_random,
            execute_display,
            execute_skip_if_key,
            execute_misc_instruction,
        ],
        state, decoded_instruction
    )


def _fetch(state: EmulatorState) -> jnp.ndarray:
    return read_word(state.memory, state.pc, state.pc)


def _step(state: EmulatorState) -> EmulatorState:
    return dispatch(state, _fetch(state))


def _run(state: EmulatorState, count) -> EmulatorState:
    return jax.lax.fori_loop(0, count, lambda _, state: _step(state), state)


_checked_fetch = jax.jit(checkify.checkify(_fetch))
_checked_dispatch = jax.jit(checkify.checkify(dispatch))
_checked_step = jax.jit(checkify.checkify(_step))
_checked_run = jax.jit(checkify.checkify(_run))


def _raise_on_fault(error, pc: Optional[int] = None, opcode: Optional[int] = None):
    message = error.get()
    if message is not None:
        fault = MachineFault(message, pc=pc, opcode=opcode)
        logger.log_fault(str(fault))
        raise fault


def _opcode_at(state: EmulatorState) -> Optional[int]:
    pc = int(state.pc)
    if pc + 1 >= state.memory.shape[0]:
        return None
    return (int(state.memory[pc]) << 8) | int(state.memory[pc + 1])


def fetch(state: EmulatorState) -> int:
    """Fetch the big-endian instruction at pc without advancing it."""
    error, instruction = _checked_fetch(state)
    _raise_on_fault(error, pc=int(state.pc))
    return int(instruction)


def execute(state: EmulatorState, instruction: int) -> EmulatorState:
    """Execute one given instruction word against the state."""
    error, new_state = _checked_dispatch(state, jnp.asarray(instruction, dtype=jnp.uint16))
    _raise_on_fault(error, pc=int(state.pc), opcode=int(instruction))
    return new_state


def step(state: EmulatorState) -> EmulatorState:
    """Perform one fetch-decode-execute cycle."""
    error, new_state = _checked_step(state)
    if error.get() is not None:
        _raise_on_fault(error, pc=int(state.pc), opcode=_opcode_at(state))
    return new_state


def run(state: EmulatorState, count: int) -> EmulatorState:
    """Perform ``count`` cycles in one compiled loop.

    A fault anywhere in the batch raises; the message names the faulting pc.
    """
    if count <= 0:
        return state
    error, new_state = _checked_run(state, jnp.asarray(count, dtype=jnp.int32))
    _raise_on_fault(error)
    return new_state


def load_rom(state: EmulatorState, filename: str) -> EmulatorState:
    """Load ROM data from a file into memory starting at 0x200."""
    with open(filename, 'rb') as f:
        rom_data = f.read()
    return load_program(state, rom_data)
