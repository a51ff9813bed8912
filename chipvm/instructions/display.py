"""CHIP-8 display operations."""

import jax.numpy as jnp
from chipvm.state import EmulatorState
from chipvm.decode import DecodedInstruction
from chipvm.constants import SCREEN_WIDTH, SCREEN_HEIGHT, SPRITE_WIDTH, MAX_SPRITE_HEIGHT, FLAG_REGISTER
from chipvm.memory import read_block

# Sprite-space grid: one row per sprite byte, one column per bit (MSB first)
rows = jnp.arange(MAX_SPRITE_HEIGHT + 1)[:, None]
cols = jnp.arange(SPRITE_WIDTH)[None, :]


def execute_display(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """DXYN - Draw sprite at (VX, VY) with height N.

    Both coordinates wrap around the screen edges. VF reports whether any lit
    pixel was switched off.
    """
    sprite_bytes = read_block(state.memory, state.I, MAX_SPRITE_HEIGHT + 1, instruction.n, state.pc)
    bits = ((sprite_bytes[:, None] >> (7 - cols)) & 1).astype(jnp.bool_) & (rows < instruction.n)

    # Rows and columns never alias: the sprite grid is smaller than the screen
    target_x = (jnp.astype(state.V[instruction.x], jnp.int32) + cols) % SCREEN_WIDTH
    target_y = (jnp.astype(state.V[instruction.y], jnp.int32) + rows) % SCREEN_HEIGHT
    target_x, target_y = jnp.broadcast_arrays(target_x, target_y)

    sprite = jnp.zeros_like(state.display).at[target_x, target_y].set(bits)
    collision = jnp.any(state.display & sprite)

    return state.replace(
        display=state.display ^ sprite,
        V=state.V.at[FLAG_REGISTER].set(jnp.astype(collision, jnp.uint8))
    ).next_instruction()
