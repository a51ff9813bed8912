"""Addressable memory access with bounds checking.

Memory is a flat uint8 array of MEMORY_SIZE bytes. Every accessor validates its
address range with ``checkify.check`` so an out-of-range access surfaces as a
machine fault instead of being clamped or dropped by the underlying gather/scatter.
These helpers must therefore run under ``checkify.checkify`` (the public entry
points in ``chipvm.emulator`` take care of that).
"""

import jax.numpy as jnp
from jax.experimental import checkify

from chipvm.constants import MEMORY_SIZE


def check_range(address, length, pc) -> None:
    """Fail unless ``[address, address + length)`` lies inside memory."""
    start = jnp.asarray(address, dtype=jnp.int32)
    length = jnp.asarray(length, dtype=jnp.int32)
    checkify.check(
        (length == 0) | (start + length <= MEMORY_SIZE),
        "Memory access out of range: address={address}, length={length}, pc={pc}",
        address=start, length=length, pc=jnp.asarray(pc, dtype=jnp.int32),
    )


def read_byte(memory: jnp.ndarray, address, pc) -> jnp.ndarray:
    check_range(address, 1, pc)
    return memory[address]


def write_byte(memory: jnp.ndarray, address, value, pc) -> jnp.ndarray:
    check_range(address, 1, pc)
    return memory.at[address].set(jnp.astype(value, jnp.uint8))


def read_word(memory: jnp.ndarray, address, pc) -> jnp.ndarray:
    """Read a big-endian 16-bit word."""
    check_range(address, 2, pc)
    high = memory[address].astype(jnp.uint16)
    low = memory[address + 1].astype(jnp.uint16)
    return (high << 8) | low


def read_block(memory: jnp.ndarray, address, size: int, length, pc) -> jnp.ndarray:
    """Read ``size`` bytes starting at ``address``; only the first ``length`` are checked.

    ``size`` is the static width of the result, ``length`` the (possibly traced)
    number of bytes the instruction actually uses.
    """
    check_range(address, length, pc)
    return memory[address + jnp.arange(size)]


def write_block(memory: jnp.ndarray, address, values: jnp.ndarray, length, pc) -> jnp.ndarray:
    """Write the first ``length`` of ``values`` starting at ``address``."""
    check_range(address, length, pc)
    offsets = jnp.arange(values.shape[0])
    indices = address + offsets
    current = memory[indices]
    merged = jnp.where(offsets < length, jnp.astype(values, jnp.uint8), current)
    return memory.at[indices].set(merged)
