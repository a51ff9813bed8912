"""CHIP-8 stack operations.

The pointer names the topmost occupied slot; 0 means empty. Push pre-increments,
pop reads then decrements, so slot 0 never holds a return address.
"""

import jax.numpy as jnp
from jax.experimental import checkify

from chipvm.constants import STACK_SIZE
from chipvm.state import StackState


def push(stack: StackState, address: jnp.ndarray, pc: jnp.ndarray) -> StackState:
    """Push address onto stack."""
    new_pointer = stack.pointer + 1
    checkify.check(
        new_pointer < STACK_SIZE,
        "Stack overflow: call at pc={pc} with {depth} frames already in use",
        pc=jnp.asarray(pc, dtype=jnp.int32), depth=jnp.asarray(stack.pointer, dtype=jnp.int32),
    )
    new_data = stack.data.at[new_pointer].set(jnp.astype(address, jnp.uint16))
    return stack.replace(data=new_data, pointer=new_pointer)


def pop(stack: StackState, pc: jnp.ndarray) -> tuple[StackState, jnp.ndarray]:
    """Pop address from stack."""
    checkify.check(
        stack.pointer > 0,
        "Stack underflow: return at pc={pc} with an empty stack",
        pc=jnp.asarray(pc, dtype=jnp.int32),
    )
    popped_address = stack.data[stack.pointer]
    new_data = stack.data.at[stack.pointer].set(0)
    return stack.replace(data=new_data, pointer=stack.pointer - 1), popped_address
