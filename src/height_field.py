"""
Base elevation field for the pastry top.

A soft bright spiral stroke with a wobbling radius is drawn over mid-gray,
then every pixel gets heavy uniform noise and a banding non-linearity that
makes the layers look torn rather than smooth.
"""
import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
from PIL import Image, ImageDraw

from noise_fields import (
    blur,
    make_rng,
    pixel_scale,
    to_uint8,
    validate_resolution,
)
from texture_field import ColorSpace, TextureField

logger = logging.getLogger(__name__)

BASE_GRAY = 128
RIDGE_VALUE = 255


@dataclass
class HeightFieldConfig:
    """Spiral and noise parameters. Pixel values are at 1024 px and scale."""

    coils: float = 5.0
    stroke_points: int = 400
    angle_step: float = 0.1
    max_radius_frac: float = 0.48
    stroke_width_frac: float = 0.08
    stroke_blur_px: float = 4.0
    distortion_px: Tuple[float, float] = (10.0, 5.0)
    noise_amplitude: float = 40.0
    band_low: float = 150.0
    band_high: float = 200.0
    band_pull_down: float = 20.0
    band_push_up: float = 10.0


def spiral_distortion(angle, amplitudes: Tuple[float, float] = (10.0, 5.0)):
    """Radial wobble of the spiral: ``a0*sin(10a) + a1*cos(23a)``."""
    angle = np.asarray(angle, dtype=float)
    return amplitudes[0] * np.sin(angle * 10.0) + amplitudes[1] * np.cos(angle * 23.0)


def spiral_points(resolution: int, config: HeightFieldConfig) -> List[Tuple[float, float]]:
    """Pixel-space polyline of the distorted spiral, centred in the image."""
    scale = pixel_scale(resolution)
    cx = cy = resolution / 2.0
    max_radius = resolution * config.max_radius_frac
    amplitudes = (config.distortion_px[0] * scale, config.distortion_px[1] * scale)

    angles = np.arange(config.stroke_points, dtype=float) * config.angle_step
    base_radius = angles / (config.coils * math.pi * 2.0) * max_radius
    radius = base_radius + spiral_distortion(angles, amplitudes)
    xs = cx + np.cos(angles) * radius
    ys = cy + np.sin(angles) * radius
    return list(zip(xs.tolist(), ys.tolist()))


def _stroke_mask(resolution: int, config: HeightFieldConfig) -> np.ndarray:
    """Blurred coverage (0..1) of the thick round-capped spiral stroke."""
    width = max(1, int(round(resolution * config.stroke_width_frac)))
    canvas = Image.new("L", (resolution, resolution), 0)
    draw = ImageDraw.Draw(canvas)
    points = spiral_points(resolution, config)
    if len(points) > 1:
        draw.line(points, fill=255, width=width, joint="curve")
    if points:
        # Round caps
        half = width / 2.0
        for x, y in (points[0], points[-1]):
            draw.ellipse([x - half, y - half, x + half, y + half], fill=255)

    mask = np.asarray(canvas, dtype=float) / 255.0
    return np.clip(blur(mask, config.stroke_blur_px * pixel_scale(resolution)), 0.0, 1.0)


def apply_torn_banding(values: np.ndarray, config: Optional[HeightFieldConfig] = None) -> np.ndarray:
    """Pull the (low, high) band down, push values above high up, clamp."""
    if config is None:
        config = HeightFieldConfig()
    out = np.asarray(values, dtype=float).copy()
    mid = (out > config.band_low) & (out < config.band_high)
    out[mid] -= config.band_pull_down
    out[out > config.band_high] += config.band_push_up
    return np.clip(out, 0.0, 255.0)


def synthesize_height(
    resolution: int = 1024,
    config: Optional[HeightFieldConfig] = None,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
) -> TextureField:
    """Build the grayscale elevation field for the pastry top.

    Args:
        resolution: Side length in pixels.
        config: Spiral and noise parameters.
        rng: Random source for the per-pixel noise. Takes precedence over seed.
        seed: Seed used when no generator is injected.

    Returns:
        Single-channel uint8 TextureField named ``"height"``.
    """
    resolution = validate_resolution(resolution)
    if config is None:
        config = HeightFieldConfig()
    rng = make_rng(rng, seed)

    mask = _stroke_mask(resolution, config)
    base = to_uint8(BASE_GRAY + (RIDGE_VALUE - BASE_GRAY) * mask).astype(float)

    noise = rng.uniform(-config.noise_amplitude, config.noise_amplitude, size=base.shape)
    height = to_uint8(apply_torn_banding(base + noise, config))

    logger.debug(
        "Height field %dx%d: mean %.1f, ridge coverage %.3f",
        resolution, resolution, float(height.mean()), float((mask > 0.5).mean()),
    )
    return TextureField(pixels=height, color_space=ColorSpace.LINEAR, name="height")
