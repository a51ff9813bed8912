"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from chipvm.state import EmulatorState
from chipvm.decode import DecodedInstruction, make_dispatcher
from chipvm.constants import FONT_START, FONT_GLYPH_SIZE, NUM_REGISTERS
from chipvm.memory import read_block, write_block
from chipvm.instructions.system import execute_unknown


def execute_get_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX07 - Set VX to delay timer value."""
    return state.replace(V=state.V.at[instruction.x].set(state.delay_timer)).next_instruction()


def execute_set_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX15 - Set delay timer to VX."""
    return state.replace(delay_timer=state.V[instruction.x]).next_instruction()


def execute_set_sound_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX18 - Set sound timer to VX."""
    return state.replace(sound_timer=state.V[instruction.x]).next_instruction()


def execute_add_to_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX1E - Add VX to I register, wrapping at 16 bits. VF is not touched."""
    return state.replace(I=state.I + jnp.astype(state.V[instruction.x], jnp.uint16)).next_instruction()


def execute_wait_for_key(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX0A - Wait for key press (blocking).

    Without a pressed key pc stays put, so the instruction runs again next step.
    """
    def key_pressed_action(state):
        pressed_key = jnp.argmax(state.keypad)
        return state.replace(
            V=state.V.at[instruction.x].set(jnp.astype(pressed_key, jnp.uint8)),
            keypad=state.keypad.at[pressed_key].set(False),
        ).next_instruction()

    def wait_action(state):
        return state

    return jax.lax.cond(jnp.any(state.keypad), key_pressed_action, wait_action, state)


def execute_font_character(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX29 - Set I to location of sprite for digit VX."""
    font_address = FONT_START + jnp.astype(state.V[instruction.x], jnp.uint16) * FONT_GLYPH_SIZE
    return state.replace(I=jnp.astype(font_address, jnp.uint16)).next_instruction()


def execute_bcd_conversion(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = state.V[instruction.x]

    digits = jnp.array([
        value // 100,
        (value // 10) % 10,
        value % 10
    ], dtype=jnp.uint8)

    new_memory = write_block(state.memory, state.I, digits, 3, state.pc)
    return state.replace(memory=new_memory).next_instruction()


def execute_store_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX55 - Store V0 through VX in memory starting at I. I is left unchanged."""
    new_memory = write_block(state.memory, state.I, state.V, instruction.x + 1, state.pc)
    return state.replace(memory=new_memory).next_instruction()


def execute_load_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX65 - Load V0 through VX from memory starting at I. I is left unchanged."""
    memory_values = read_block(state.memory, state.I, NUM_REGISTERS, instruction.x + 1, state.pc)
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    new_V = jnp.where(register_mask, memory_values, state.V)
    return state.replace(V=new_V).next_instruction()


execute_misc_instruction = make_dispatcher(
    {
        0x07: execute_get_delay_timer,
        0x0A: execute_wait_for_key,
        0x15: execute_set_delay_timer,
        0x18: execute_set_sound_timer,
        0x1E: execute_add_to_index,
        0x29: execute_font_character,
        0x33: execute_bcd_conversion,
        0x55: execute_store_registers,
        0x65: execute_load_registers,
    },
    select=lambda instruction: instruction.nn,
    size=0x100,
    fallback=execute_unknown,
)
execute_misc_instruction.__doc__ = "Dispatch misc instructions on the low byte."
