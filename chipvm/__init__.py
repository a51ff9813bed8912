"""CHIP-8 virtual machine package."""

from chipvm.state import (
    EmulatorState, create_state, load_program, tick_timers, sound_active,
    set_key_state, get_display_buffer, ProgramTooLargeError,
)
from chipvm.emulator import execute, step, run, fetch, load_rom, MachineFault
from chipvm.decode import DecodedInstruction, decode
from chipvm.constants import PROGRAM_START, FONT_START, SCREEN_WIDTH, SCREEN_HEIGHT, MEMORY_SIZE
from chipvm.rendering import chip8_display_to_rgb, create_color_scheme, batch_render, save_screenshot
from chipvm.driver import Driver, FixedRateClock

__all__ = [
    "EmulatorState",
    "create_state",
    "load_program",
    "tick_timers",
    "sound_active",
    "set_key_state",
    "get_display_buffer",
    "ProgramTooLargeError",
    "fetch",
    "execute",
    "step",
    "run",
    "load_rom",
    "MachineFault",
    "DecodedInstruction",
    "decode",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "MEMORY_SIZE",
    "chip8_display_to_rgb",
    "create_color_scheme",
    "batch_render",
    "save_screenshot",
    "Driver",
    "FixedRateClock",
]
