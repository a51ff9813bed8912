"""CHIP-8 system instructions (0x0xxx) and the unknown-opcode handler."""

import jax
import jax.numpy as jnp
from chipvm.state import EmulatorState
from chipvm.decode import DecodedInstruction, make_dispatcher
from chipvm.stack import pop
from chipvm.logging import logger


def _report_unknown(raw, pc):
    logger.log_unknown_opcode(int(raw), int(pc))


def execute_unknown(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Unrecognized opcode: log it and move on."""
    jax.debug.callback(_report_unknown, instruction.raw, state.pc)
    return state.next_instruction()


def execute_clear_screen(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00E0 - Clear display."""
    return state.replace(display=jnp.zeros_like(state.display)).next_instruction()


def execute_return(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00EE - Return from subroutine."""
    stack, address = pop(state.stack, state.pc)
    return state.replace(stack=stack, pc=address).next_instruction()


execute_system_instruction = make_dispatcher(
    {
        0x0E0: execute_clear_screen,
        0x0EE: execute_return,
    },
    select=lambda instruction: instruction.nnn,
    size=0x1000,
    fallback=execute_unknown,
)
execute_system_instruction.__doc__ = "Dispatch system instructions (00E0, 00EE)."
