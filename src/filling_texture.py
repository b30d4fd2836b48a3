"""
Cut-face texture: wavy dough layers with cheese and egg speckles.

The colour field is tileable in both directions and the renderer stretches
it twice along the cut; the bump field is its per-pixel luminance.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from noise_fields import make_rng, to_uint8, validate_resolution
from texture_field import ColorSpace, TextureField, WrapMode

logger = logging.getLogger(__name__)

CREAM = (253, 245, 230)
DOUGH_LAYER = (210, 160, 100)
CHEESE = (255, 255, 255)
EGG = (255, 220, 100)


@dataclass
class FillingTextureConfig:
    """Layer wave, speckle thresholds and grain for the filling texture."""

    resolution: int = 512
    wave_y_frequency: float = 0.1
    wave_x_frequency: float = 0.05
    wave_warp: float = 5.0
    layer_threshold: float = 0.3
    cheese_threshold: float = 0.8   # draws above this become cheese
    egg_threshold: float = 0.1      # draws below this become egg
    grain_amplitude: float = 10.0
    repeat: Tuple[float, float] = (2.0, 1.0)


@dataclass
class FillingTextures:
    color: TextureField
    bump: TextureField

    def as_dict(self):
        return {"color": self.color, "bump": self.bump}


def layer_wave(x, y, config: Optional[FillingTextureConfig] = None):
    """``sin(y*0.1 + sin(x*0.05)*5) * 0.5 + 0.5`` in [0, 1]."""
    if config is None:
        config = FillingTextureConfig()
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    return np.sin(
        y * config.wave_y_frequency + np.sin(x * config.wave_x_frequency) * config.wave_warp
    ) * 0.5 + 0.5


def synthesize_filling(
    resolution: Optional[int] = None,
    config: Optional[FillingTextureConfig] = None,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
) -> FillingTextures:
    """Build the filling colour field and its luminance bump field."""
    if config is None:
        config = FillingTextureConfig()
    if resolution is None:
        resolution = config.resolution
    resolution = validate_resolution(resolution)
    rng = make_rng(rng, seed)

    ys, xs = np.mgrid[0:resolution, 0:resolution]
    wave = layer_wave(xs, ys, config)
    speckle = rng.random((resolution, resolution))
    grain = rng.uniform(-config.grain_amplitude, config.grain_amplitude, (resolution, resolution))

    rgb = np.empty((resolution, resolution, 3), dtype=float)
    rgb[:] = CREAM
    rgb[wave < config.layer_threshold] = DOUGH_LAYER
    rgb[speckle > config.cheese_threshold] = CHEESE
    rgb[speckle < config.egg_threshold] = EGG

    color = to_uint8(rgb + grain[..., None])
    bump = to_uint8(color.astype(float).mean(axis=-1))

    logger.debug(
        "Filling %dx%d: %.1f%% layer, %.1f%% cheese, %.1f%% egg",
        resolution, resolution,
        100.0 * float((wave < config.layer_threshold).mean()),
        100.0 * float((speckle > config.cheese_threshold).mean()),
        100.0 * float((speckle < config.egg_threshold).mean()),
    )
    return FillingTextures(
        color=TextureField(
            pixels=color,
            color_space=ColorSpace.SRGB,
            wrap=WrapMode.REPEAT,
            repeat=config.repeat,
            name="filling_color",
        ),
        bump=TextureField(
            pixels=bump,
            wrap=WrapMode.REPEAT,
            repeat=config.repeat,
            name="filling_bump",
        ),
    )
