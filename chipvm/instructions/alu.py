"""CHIP-8 ALU operations (8xxx).

Each ``alu_*`` function maps ``(vx, vy)`` to ``(result, flag)``. Bitwise and copy
operations return ``None`` as flag and leave VF alone. When a flag is produced it is
written after the result, so ``8FY4`` and friends end with the flag in VF.
"""

import jax.numpy as jnp
from chipvm.state import EmulatorState
from chipvm.decode import DecodedInstruction, make_dispatcher
from chipvm.constants import FLAG_REGISTER
from chipvm.instructions.system import execute_unknown


def alu_set(vx, vy):
    """8XY0 - Set: VX = VY."""
    return vy, None


def alu_or(vx, vy):
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy, None


def alu_and(vx, vy):
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy, None


def alu_xor(vx, vy):
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy, None


def alu_add(vx, vy):
    """8XY4 - Add: VX += VY, set carry flag."""
    result = jnp.astype(vx, jnp.uint16) + jnp.astype(vy, jnp.uint16)
    carry = jnp.astype(result > 0xFF, jnp.uint8)
    return jnp.astype(result & 0xFF, jnp.uint8), carry


def alu_sub_xy(vx, vy):
    """8XY5 - Subtract: VX -= VY, VF = 1 when VX > VY."""
    not_borrow = jnp.astype(vx > vy, jnp.uint8)
    return vx - vy, not_borrow


def alu_shift_right(vx, vy):
    """8XY6 - Shift right: VX >>= 1, VF = shifted-out bit."""
    return vx >> 1, vx & 1


def alu_sub_yx(vx, vy):
    """8XY7 - Subtract: VX = VY - VX, VF = 1 when VY > VX."""
    not_borrow = jnp.astype(vy > vx, jnp.uint8)
    return vy - vx, not_borrow


def alu_shift_left(vx, vy):
    """8XYE - Shift left: VX <<= 1, VF = shifted-out bit."""
    return (vx << 1) & 0xFF, (vx >> 7) & 1


def make_alu_instruction(operation):
    """Wrap an ``alu_*`` function into an instruction handler."""
    def alu_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        vx = state.V[instruction.x]
        vy = state.V[instruction.y]
        result, flag = operation(vx, vy)

        new_V = state.V.at[instruction.x].set(jnp.astype(result, jnp.uint8))
        if flag is not None:
            new_V = new_V.at[FLAG_REGISTER].set(jnp.astype(flag, jnp.uint8))
        return state.replace(V=new_V).next_instruction()

    alu_instruction.__doc__ = operation.__doc__
    return alu_instruction


execute_alu_operation = make_dispatcher(
    {
        0x0: make_alu_instruction(alu_set),
        0x1: make_alu_instruction(alu_or),
        0x2: make_alu_instruction(alu_and),
        0x3: make_alu_instruction(alu_xor),
        0x4: make_alu_instruction(alu_add),
        0x5: make_alu_instruction(alu_sub_xy),
        0x6: make_alu_instruction(alu_shift_right),
        0x7: make_alu_instruction(alu_sub_yx),
        0xE: make_alu_instruction(alu_shift_left),
    },
    select=lambda instruction: instruction.n,
    size=16,
    fallback=execute_unknown,
)
execute_alu_operation.__doc__ = "8XYN - ALU operations dispatcher."
