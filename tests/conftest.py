"""Test configuration and fixtures for CHIP-8 machine tests."""

import pytest
import jax.numpy as jnp
from chipvm import create_state, load_program


@pytest.fixture
def fresh_state():
    """Provide a fresh machine state for each test."""
    return create_state()


@pytest.fixture
def keep_keys_state():
    """Provide a fresh state where EX9E does not release the key."""
    return create_state(consume_key_on_skip=False)


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def program(*words):
    """Assemble 16-bit instruction words into big-endian program bytes."""
    return b"".join(word.to_bytes(2, "big") for word in words)


def load_words(state, *words):
    """Load a program given as instruction words."""
    return load_program(state, program(*words))
