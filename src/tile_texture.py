"""Checkerboard cloth texture for the surface under the disc."""
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from PIL import ImageColor

from noise_fields import make_rng, to_uint8, validate_resolution
from texture_field import ColorSpace, TextureField, WrapMode

logger = logging.getLogger(__name__)


@dataclass
class TileTextureConfig:
    resolution: int = 512
    color1: str = "#f0f0f0"
    color2: str = "#c0392b"
    squares_per_side: int = 8
    grain_amplitude: float = 10.0
    repeat: Tuple[float, float] = (4.0, 4.0)


def parse_color(color) -> Tuple[int, int, int]:
    """Accept '#rrggbb'/CSS names or an RGB triple."""
    if isinstance(color, str):
        return ImageColor.getrgb(color)[:3]
    r, g, b = (int(c) for c in color)
    return (r, g, b)


def checker_mask(resolution: int, squares_per_side: int) -> np.ndarray:
    """True where ``(cell_x + cell_y) % 2 == 0``."""
    if squares_per_side <= 0:
        raise ValueError(f"squares_per_side must be positive, got {squares_per_side}")
    cells = (np.arange(resolution) * squares_per_side) // resolution
    return (cells[:, None] + cells[None, :]) % 2 == 0


def synthesize_tile(
    color1="#f0f0f0",
    color2="#c0392b",
    squares_per_side: int = 8,
    resolution: int = 512,
    config: Optional[TileTextureConfig] = None,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
) -> TextureField:
    """Checkerboard of *color2* squares over *color1* with fabric grain.

    The repeat factor is a sampling hint only; the pattern is synthesized once.
    """
    if config is None:
        config = TileTextureConfig(
            resolution=resolution,
            color1=color1,
            color2=color2,
            squares_per_side=squares_per_side,
        )
    resolution = validate_resolution(config.resolution)
    rng = make_rng(rng, seed)

    rgb = np.empty((resolution, resolution, 3), dtype=float)
    rgb[:] = parse_color(config.color1)
    rgb[checker_mask(resolution, config.squares_per_side)] = parse_color(config.color2)

    grain = rng.uniform(-config.grain_amplitude, config.grain_amplitude, (resolution, resolution))
    pixels = to_uint8(rgb + grain[..., None])

    logger.debug("Tile %dx%d with %d squares per side", resolution, resolution, config.squares_per_side)
    return TextureField(
        pixels=pixels,
        color_space=ColorSpace.SRGB,
        wrap=WrapMode.REPEAT,
        repeat=config.repeat,
        name="tile_color",
    )
