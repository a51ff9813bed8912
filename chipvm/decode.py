"""CHIP-8 instruction decoding and dispatch tables."""

from typing import Callable, Mapping

import jax
import jax.lax
import jax.numpy as jnp
import numpy as np
from chex import dataclass


@dataclass(frozen=True)
class DecodedInstruction:
    """Decoded CHIP-8 instruction with extracted operands."""
    raw: int
    opcode: int  # First nibble
    x: int       # Second nibble (VX register)
    y: int       # Third nibble (VY register)
    n: int       # Fourth nibble (4-bit immediate)
    nn: int      # Last byte (8-bit immediate)
    nnn: int     # Last 12 bits (12-bit address)


def decode(instruction: int) -> DecodedInstruction:
    """Decode 16-bit instruction into components."""
    return DecodedInstruction(
        raw=instruction,
        opcode=(instruction & 0xF000) >> 12,
        x=(instruction & 0x0F00) >> 8,
        y=(instruction & 0x00F0) >> 4,
        n=instruction & 0x000F,
        nn=instruction & 0x00FF,
        nnn=instruction & 0x0FFF
    )


Handler = Callable  # (EmulatorState, DecodedInstruction) -> EmulatorState


def make_dispatcher(
    handlers: Mapping[int, Handler],
    select: Callable[[DecodedInstruction], int],
    size: int,
    fallback: Handler,
) -> Handler:
    """Build a table-driven dispatcher over one instruction field.

    ``select`` extracts the field (e.g. the low byte) that indexes a lookup table of
    ``size`` entries. Codes present in ``handlers`` map to their handler, every other
    code maps to ``fallback``.
    """
    branches = list(handlers.values()) + [fallback]
    table = np.full(size, len(handlers), dtype=np.int32)
    for index, code in enumerate(handlers):
        table[code] = index
    table = jnp.asarray(table)

    def dispatch(state, instruction: DecodedInstruction):
        return jax.lax.switch(table[select(instruction)], branches, state, instruction)

    return dispatch
