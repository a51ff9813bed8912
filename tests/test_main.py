"""Tests for the command-line entry point (headless mode)."""

import sys

import pytest
from PIL import Image
from conftest import program

import main


def run_cli(monkeypatch, *args):
    monkeypatch.setattr(sys, "argv", ["chipvm", *args])
    main.main()


def test_oversized_rom_exits_with_diagnostic(monkeypatch, tmp_path, capsys):
    rom = tmp_path / "huge.ch8"
    rom.write_bytes(bytes(4096))

    with pytest.raises(SystemExit) as exc_info:
        run_cli(monkeypatch, str(rom), "--headless", "--steps", "1")

    assert exc_info.value.code == 1
    output = capsys.readouterr().out
    assert f"Cannot load {rom}" in output
    assert "4096 bytes" in output


def test_fault_exits_with_diagnostic(monkeypatch, tmp_path, capsys):
    rom = tmp_path / "underflow.ch8"
    rom.write_bytes(program(0x00EE))

    with pytest.raises(SystemExit) as exc_info:
        run_cli(monkeypatch, str(rom), "--headless", "--steps", "1")

    assert exc_info.value.code == 1
    output = capsys.readouterr().out
    assert "Stack underflow" in output
    assert "Machine halted" in output


def test_headless_run_saves_screenshot(monkeypatch, tmp_path):
    rom = tmp_path / "glyph.ch8"
    # I = glyph 0; draw it at (V0, V0); loop
    rom.write_bytes(program(0xA050, 0xD005, 0x1204))
    screenshot = tmp_path / "screen.png"

    run_cli(monkeypatch, str(rom), "--headless", "--steps", "10",
            "--screenshot", str(screenshot), "--scale", "1", "--colors", "white")

    image = Image.open(screenshot)
    assert image.size == (64, 32)
    assert image.getpixel((0, 0)) == (255, 255, 255)
    assert image.getpixel((4, 0)) == (0, 0, 0)
