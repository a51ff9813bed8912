"""Tests for miscellaneous instructions (Fxxx) and the keypad."""

import pytest
from chipvm import execute, MachineFault


class TestTimers:
    """Test timer-related instructions."""

    def test_misc_timer_instructions(self, fresh_state):
        """Test timer set and get operations."""
        state = fresh_state

        state = execute(state, 0x6030)  # V0 = 48
        state = execute(state, 0xF015)  # Set delay timer to V0
        assert state.delay_timer == 48

        state = execute(state, 0x6120)  # V1 = 32
        state = execute(state, 0xF118)  # Set sound timer to V1
        assert state.sound_timer == 32

        state = execute(state, 0xF207)  # V2 = delay timer
        assert state.V[2] == 48
        assert state.pc == fresh_state.pc + 10


class TestBCD:
    """Test BCD conversion."""

    def test_misc_bcd_conversion(self, fresh_state):
        """Test BCD conversion with 156."""
        state = execute(fresh_state, 0x609C)  # V0 = 156
        state = execute(state, 0xA300)
        state = execute(state, 0xF033)

        assert state.memory[0x300] == 1
        assert state.memory[0x301] == 5
        assert state.memory[0x302] == 6

    @pytest.mark.parametrize("value,digits", [(0, (0, 0, 0)), (7, (0, 0, 7)), (40, (0, 4, 0)), (255, (2, 5, 5))])
    def test_bcd_edge_cases(self, fresh_state, value, digits):
        state = execute(fresh_state, 0x6000 | value)
        state = execute(state, 0xA400)
        state = execute(state, 0xF033)

        assert tuple(int(d) for d in state.memory[0x400:0x403]) == digits
        assert state.I == 0x400

    def test_bcd_past_end_of_memory_is_fatal(self, fresh_state):
        state = execute(fresh_state, 0xAFFE)
        with pytest.raises(MachineFault, match="out of range"):
            execute(state, 0xF033)


class TestFont:
    """Test font character addressing."""

    def test_misc_font_character(self, fresh_state):
        state = execute(fresh_state, 0x600A)  # V0 = 0xA
        state = execute(state, 0xF029)

        assert state.I == 0x50 + 0xA * 5

    def test_font_all_characters(self, fresh_state):
        state = fresh_state

        for digit in range(16):
            state = execute(state, 0x6000 | digit)
            state = execute(state, 0xF029)

            assert state.I == 0x50 + digit * 5, f"Font address wrong for digit {digit:X}"

    def test_glyph_table_loaded(self, fresh_state):
        """The glyph for 'F' lives at 0x50 + 15 * 5."""
        glyph = [int(b) for b in fresh_state.memory[0x50 + 75:0x50 + 80]]
        assert glyph == [0xF0, 0x80, 0xF0, 0x80, 0x80]


class TestIndexArithmetic:

    def test_add_to_index(self, fresh_state):
        """FX1E - Add VX to I register."""
        state = execute(fresh_state, 0x6010)
        state = execute(state, 0xA300)
        state = execute(state, 0xF01E)

        assert state.I == 0x310
        assert state.V[15] == 0

    def test_add_to_index_goes_past_12_bits(self, fresh_state):
        """FX1E - Only 16-bit wraparound applies, VF is untouched."""
        state = execute(fresh_state, 0x60FF)
        state = execute(state, 0xAF80)
        state = execute(state, 0x6F07)
        state = execute(state, 0xF01E)

        assert state.I == 0x107F
        assert state.V[15] == 0x07

    def test_add_to_index_wraps_at_16_bits(self, fresh_state):
        state = fresh_state.replace(I=fresh_state.I + 0xFFFF)
        state = execute(state, 0x6002)
        state = execute(state, 0xF01E)

        assert state.I == 0x0001


class TestMemoryOperations:
    """Test store/load register operations."""

    def test_store_load_round_trip(self, fresh_state):
        """FX55/FX65 copy V0..VX and leave I unchanged."""
        state = execute(fresh_state, 0x6001)
        state = execute(state, 0x6102)
        state = execute(state, 0x6203)
        state = execute(state, 0x6399)  # V3 is outside the range
        state = execute(state, 0xA300)

        state = execute(state, 0xF255)
        assert state.I == 0x300
        assert [int(b) for b in state.memory[0x300:0x304]] == [1, 2, 3, 0]

        state = execute(state, 0x6000)
        state = execute(state, 0x6100)
        state = execute(state, 0x6200)

        state = execute(state, 0xF265)
        assert state.V[0] == 1
        assert state.V[1] == 2
        assert state.V[2] == 3
        assert state.V[3] == 0x99
        assert state.I == 0x300

    def test_store_all_registers(self, fresh_state):
        state = fresh_state.replace(V=fresh_state.V.at[15].set(0xEE))
        state = execute(state, 0xA500)
        state = execute(state, 0xFF55)
        assert state.memory[0x50F] == 0xEE

    def test_store_reaching_last_byte(self, fresh_state):
        state = execute(fresh_state, 0x6177)
        state = execute(state, 0xAFFE)
        state = execute(state, 0xF155)
        assert state.memory[0xFFF] == 0x77

    def test_store_past_end_of_memory_is_fatal(self, fresh_state):
        state = execute(fresh_state, 0xAFFE)
        with pytest.raises(MachineFault, match="out of range"):
            execute(state, 0xF255)

    def test_load_past_end_of_memory_is_fatal(self, fresh_state):
        state = execute(fresh_state, 0xAFFF)
        with pytest.raises(MachineFault):
            execute(state, 0xF165)


class TestKeypad:
    """Test keypad operations."""

    def test_skip_if_key_pressed_consumes_key(self, fresh_state):
        """EX9E - Skip and release the key."""
        state = execute(fresh_state, 0x6005)  # V0 = 5
        state = state.replace(keypad=state.keypad.at[5].set(True))
        initial_pc = state.pc

        state = execute(state, 0xE09E)
        assert state.pc == initial_pc + 4
        assert not state.keypad[5]

    def test_skip_if_key_pressed_keeps_key_when_configured(self, keep_keys_state):
        state = execute(keep_keys_state, 0x6005)
        state = state.replace(keypad=state.keypad.at[5].set(True))
        initial_pc = state.pc

        state = execute(state, 0xE09E)
        assert state.pc == initial_pc + 4
        assert state.keypad[5]

    def test_skip_if_key_pressed_no_key(self, fresh_state):
        state = execute(fresh_state, 0x6005)
        state = state.replace(keypad=state.keypad.at[6].set(True))
        initial_pc = state.pc

        state = execute(state, 0xE09E)
        assert state.pc == initial_pc + 2
        assert state.keypad[6]

    def test_skip_if_key_not_pressed(self, fresh_state):
        """EXA1 - Skip if key not pressed."""
        state = execute(fresh_state, 0x6005)
        initial_pc = state.pc

        state = execute(state, 0xE0A1)
        assert state.pc == initial_pc + 4

    def test_no_skip_if_key_pressed_for_a1(self, fresh_state):
        state = execute(fresh_state, 0x6005)
        state = state.replace(keypad=state.keypad.at[5].set(True))
        initial_pc = state.pc

        state = execute(state, 0xE0A1)
        assert state.pc == initial_pc + 2
        assert state.keypad[5]

    def test_wait_for_key_blocking(self, fresh_state):
        """FX0A - No key: pc stays on the instruction."""
        state = execute(fresh_state, 0xF00A)
        assert state.pc == fresh_state.pc

        state = execute(state, 0xF00A)
        assert state.pc == fresh_state.pc

    def test_wait_for_key_press(self, fresh_state):
        """FX0A - Lowest pressed key is stored and released."""
        state = fresh_state.replace(keypad=fresh_state.keypad.at[7].set(True).at[0xC].set(True))

        state = execute(state, 0xF30A)

        assert state.V[3] == 7
        assert not state.keypad[7]
        assert state.keypad[0xC]
        assert state.pc == fresh_state.pc + 2


class TestMiscInstructionDispatch:

    @pytest.mark.parametrize("instruction", [0xF000, 0xF0FF, 0xF130, 0xE000, 0xE09F])
    def test_undefined_misc_instructions(self, fresh_state, instruction):
        state = fresh_state.replace(V=fresh_state.V.at[0].set(3))
        new_state = execute(state, instruction)

        assert new_state.pc == state.pc + 2
        assert (new_state.V == state.V).all()
        assert new_state.I == state.I
