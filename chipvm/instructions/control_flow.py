"""CHIP-8 control flow instructions."""

import jax
import jax.lax
import jax.numpy as jnp
from chipvm.state import EmulatorState
from chipvm.decode import DecodedInstruction, make_dispatcher
from chipvm.stack import push
from chipvm.instructions.system import execute_unknown


def execute_jump(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """1NNN - Jump to address NNN."""
    return state.replace(pc=jnp.astype(instruction.nnn, jnp.uint16))


def execute_call(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """2NNN - Call subroutine at NNN.

    The call site itself is saved; return resumes after it.
    """
    state = state.replace(stack=push(state.stack, state.pc, state.pc))
    return execute_jump(state, instruction)


def make_skip_instruction(condition_fn):
    """Factory for skip instructions."""
    def skip_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        condition = condition_fn(state, instruction)
        return jax.lax.cond(
            condition,
            lambda s: s.skip_next_instruction(),
            lambda s: s.next_instruction(),
            state
        )
    return skip_instruction


execute_skip_if_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == inst.nn
)

execute_skip_if_not_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != inst.nn
)

execute_skip_if_equal_register = make_dispatcher(
    {0x0: make_skip_instruction(lambda state, inst: state.V[inst.x] == state.V[inst.y])},
    select=lambda instruction: instruction.n,
    size=16,
    fallback=execute_unknown,
)

execute_skip_if_not_equal_register = make_dispatcher(
    {0x0: make_skip_instruction(lambda state, inst: state.V[inst.x] != state.V[inst.y])},
    select=lambda instruction: instruction.n,
    size=16,
    fallback=execute_unknown,
)


def execute_jump_with_offset(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """BNNN - Jump to address NNN + V0."""
    jump_address = jnp.astype(instruction.nnn, jnp.uint16) + jnp.astype(state.V[0], jnp.uint16)
    return state.replace(pc=jump_address)


def _key_index(state: EmulatorState, instruction: DecodedInstruction) -> jnp.ndarray:
    return state.V[instruction.x] & 0xF


def execute_skip_if_key_pressed(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """EX9E - Skip if key VX is pressed, releasing it when ``consume_key_on_skip`` is set."""
    key_index = _key_index(state, instruction)

    def pressed_action(state):
        if state.consume_key_on_skip:
            state = state.replace(keypad=state.keypad.at[key_index].set(False))
        return state.skip_next_instruction()

    return jax.lax.cond(
        state.keypad[key_index],
        pressed_action,
        lambda state: state.next_instruction(),
        state
    )


execute_skip_if_key_not_pressed = make_skip_instruction(
    lambda state, inst: ~state.keypad[_key_index(state, inst)]
)

execute_skip_if_key = make_dispatcher(
    {
        0x9E: execute_skip_if_key_pressed,
        0xA1: execute_skip_if_key_not_pressed,
    },
    select=lambda instruction: instruction.nn,
    size=0x100,
    fallback=execute_unknown,
)
execute_skip_if_key.__doc__ = "EX9E/EXA1 - Skip if key pressed/not pressed."
