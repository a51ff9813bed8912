"""Turn machine displays into images."""

from typing import Sequence, Tuple

import numpy as np
from PIL import Image

from chipvm.state import EmulatorState

Color = Tuple[int, int, int]

COLOR_SCHEMES = {
    "chipvm": ((179, 102, 184), (45, 25, 61)),
    "classic": ((0, 255, 0), (0, 0, 0)),
    "amber": ((255, 176, 0), (0, 0, 0)),
    "white": ((255, 255, 255), (0, 0, 0)),
    "blue": ((0, 255, 255), (0, 0, 64)),
    "retro": ((255, 255, 0), (64, 0, 64)),
}


def chip8_display_to_rgb(
    display,
    scale: int = 8,
    on_color: Color = (0, 255, 0),
    off_color: Color = (0, 0, 0),
) -> np.ndarray:
    """Build an RGB image of a display.

    ``display`` is the machine's (64, 32) boolean buffer, indexed [column, row].
    The result is a (32 * scale, 64 * scale, 3) uint8 array in image order
    (rows first), each machine pixel blown up to a ``scale`` x ``scale`` block.
    """
    if scale < 1:
        raise ValueError(f"scale must be at least 1, got {scale}")

    palette = np.array([off_color, on_color], dtype=np.uint8)
    image = palette[np.asarray(display, dtype=np.intp).T]
    if scale == 1:
        return image
    return image.repeat(scale, axis=0).repeat(scale, axis=1)


def create_color_scheme(scheme: str = "classic") -> Tuple[Color, Color]:
    """Look up the (on_color, off_color) pair of a named scheme."""
    try:
        return COLOR_SCHEMES[scheme]
    except KeyError:
        raise ValueError(
            f"Unknown color scheme '{scheme}'. Available: {sorted(COLOR_SCHEMES)}"
        ) from None


def batch_render(
    displays: Sequence, scale: int = 4, color_scheme: str = "classic", padding: int = 5
) -> np.ndarray:
    """Tile several displays into one RGBA image.

    Tiles fill a near-square grid row by row. Padding and unused cells are
    fully transparent.
    """
    displays = np.asarray(displays)
    count = len(displays)
    on_color, off_color = create_color_scheme(color_scheme)

    columns = int(np.ceil(np.sqrt(count)))
    rows = -(-count // columns)
    tile_height, tile_width = displays.shape[2] * scale, displays.shape[1] * scale
    pitch_y, pitch_x = tile_height + padding, tile_width + padding

    canvas = np.zeros((rows * pitch_y - padding, columns * pitch_x - padding, 4), dtype=np.uint8)
    for index, display in enumerate(displays):
        top = (index // columns) * pitch_y
        left = (index % columns) * pitch_x
        tile = canvas[top:top + tile_height, left:left + tile_width]
        tile[..., :3] = chip8_display_to_rgb(display, scale, on_color, off_color)
        tile[..., 3] = 255

    return canvas


def save_screenshot(
    state: EmulatorState, filename: str, scale: int = 8, color_scheme: str = "classic"
) -> None:
    """Write the current display to an image file (format from the extension)."""
    frame = chip8_display_to_rgb(state.display, scale, *create_color_scheme(color_scheme))
    Image.fromarray(frame).save(filename)
