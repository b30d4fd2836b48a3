"""
Derive the crust material maps from an elevation field.

From one height field we derive four pixel-aligned maps:
1. Colour: three-band baked gradient plus rare burnt spots.
2. Roughness: linear inverse of height (egg-washed peaks are shinier).
3. Normal: tangent-space vectors from clamped central differences.
4. Ambient occlusion: heavily blurred height (valleys darker).
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from height_field import HeightFieldConfig, synthesize_height
from noise_fields import (
    blur,
    central_gradient,
    lerp,
    make_rng,
    pixel_scale,
    to_uint8,
    validate_resolution,
)
from texture_field import ColorSpace, TextureField

logger = logging.getLogger(__name__)

# Colour stops (RGB) along the height axis
DEEP_AMBER = np.array([139.0, 69.0, 19.0])
MID_BROWN = np.array([184.0, 115.0, 51.0])
GOLD = np.array([240.0, 180.0, 60.0])
PALE_CREAM = np.array([255.0, 245.0, 220.0])
HIGHLIGHT = np.array([255.0, 250.0, 240.0])
BURNT_SCALE = np.array([0.5, 0.5, 0.4])


@dataclass
class SurfaceMapConfig:
    """Parameters for the derived crust maps. Pixel values scale from 1024 px."""

    crack_limit: float = 80.0
    golden_limit: float = 180.0
    highlight_threshold: float = 240.0
    burn_probability: float = 0.01
    roughness_max: float = 0.9
    roughness_span: float = 0.5
    normal_strength: float = 2.0
    normal_z: float = 255.0
    ao_blur_px: float = 10.0


@dataclass
class SurfaceTextureConfig:
    """Everything needed to synthesize the full crust texture set."""

    resolution: int = 1024
    height: HeightFieldConfig = field(default_factory=HeightFieldConfig)
    maps: SurfaceMapConfig = field(default_factory=SurfaceMapConfig)


@dataclass
class SurfaceMaps:
    """The four pixel-aligned maps sampled together by the top material."""

    color: TextureField
    roughness: TextureField
    normal: TextureField
    ambient_occlusion: TextureField
    height: Optional[TextureField] = None

    def as_dict(self):
        return {
            "color": self.color,
            "normal": self.normal,
            "roughness": self.roughness,
            "ambientOcclusion": self.ambient_occlusion,
        }


def _height_values(height) -> np.ndarray:
    pixels = height.pixels if isinstance(height, TextureField) else np.asarray(height)
    if pixels.ndim == 3:
        pixels = pixels[..., 0]
    if pixels.ndim != 2:
        raise ValueError(f"Height field must be 2D, got shape {pixels.shape}")
    validate_resolution(int(pixels.shape[0]))
    validate_resolution(int(pixels.shape[1]))
    return pixels.astype(float)


# ─── Individual maps ─────────────────────────────────────────────────────────

def height_to_color(
    h: np.ndarray,
    config: Optional[SurfaceMapConfig] = None,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """Map height values (0..255) to baked-pastry RGB, float (N, M, 3)."""
    if config is None:
        config = SurfaceMapConfig()
    h = np.asarray(h, dtype=float)[..., None]

    crack = lerp(DEEP_AMBER, MID_BROWN, h / config.crack_limit)
    golden = lerp(
        MID_BROWN, GOLD,
        (h - config.crack_limit) / (config.golden_limit - config.crack_limit),
    )
    crisp = lerp(GOLD, PALE_CREAM, (h - config.golden_limit) / (255.0 - config.golden_limit))

    rgb = np.where(h < config.crack_limit, crack, np.where(h < config.golden_limit, golden, crisp))
    rgb = np.where(h > config.highlight_threshold, HIGHLIGHT, rgb)

    if rng is not None and config.burn_probability > 0:
        burnt = rng.random(h.shape[:2]) < config.burn_probability
        rgb = np.where(burnt[..., None], rgb * BURNT_SCALE, rgb)
    return rgb


def height_to_roughness(h: np.ndarray, config: Optional[SurfaceMapConfig] = None) -> np.ndarray:
    """``0.9 - (h/255)*0.5`` as a 0..1 float field."""
    if config is None:
        config = SurfaceMapConfig()
    return config.roughness_max - (np.asarray(h, dtype=float) / 255.0) * config.roughness_span


def height_to_normal(h: np.ndarray, config: Optional[SurfaceMapConfig] = None) -> np.ndarray:
    """Unit tangent-space normals (N, M, 3) from clamped central differences."""
    if config is None:
        config = SurfaceMapConfig()
    dx, dy = central_gradient(h, strength=config.normal_strength)
    dz = np.full_like(dx, config.normal_z)
    n = np.stack([dx, dy, dz], axis=-1)
    return n / np.linalg.norm(n, axis=-1, keepdims=True)


def encode_normal(normals: np.ndarray) -> np.ndarray:
    """Pack unit vectors into RGB bytes: ``(c*0.5 + 0.5) * 255``."""
    return to_uint8((np.asarray(normals, dtype=float) * 0.5 + 0.5) * 255.0)


def height_to_occlusion(h: np.ndarray, config: Optional[SurfaceMapConfig] = None) -> np.ndarray:
    if config is None:
        config = SurfaceMapConfig()
    h = np.asarray(h, dtype=float)
    return blur(h, config.ao_blur_px * pixel_scale(h.shape[0]))


# ─── Entry points ────────────────────────────────────────────────────────────

def derive_maps(
    height,
    config: Optional[SurfaceMapConfig] = None,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
) -> SurfaceMaps:
    """Derive colour, roughness, normal and AO maps from a height field.

    Args:
        height: TextureField or 2D uint8 array of elevations.
        config: Band limits, burn probability, normal strength, AO blur.
        rng: Random source for burnt spots. Takes precedence over seed.
        seed: Seed used when no generator is injected.

    Returns:
        SurfaceMaps whose fields all share the height field's resolution.
    """
    if config is None:
        config = SurfaceMapConfig()
    h = _height_values(height)
    rng = make_rng(rng, seed)

    color = TextureField(
        pixels=to_uint8(height_to_color(h, config, rng)),
        color_space=ColorSpace.SRGB,
        name="color",
    )
    roughness = TextureField(
        pixels=to_uint8(height_to_roughness(h, config) * 255.0),
        name="roughness",
    )
    normal = TextureField(
        pixels=encode_normal(height_to_normal(h, config)),
        name="normal",
    )
    ambient_occlusion = TextureField(
        pixels=to_uint8(height_to_occlusion(h, config)),
        name="ambient_occlusion",
    )
    source = height if isinstance(height, TextureField) else None
    return SurfaceMaps(
        color=color,
        roughness=roughness,
        normal=normal,
        ambient_occlusion=ambient_occlusion,
        height=source,
    )


def synthesize_surface_textures(
    resolution: Optional[int] = None,
    config: Optional[SurfaceTextureConfig] = None,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
) -> SurfaceMaps:
    """Height field synthesis followed by map derivation, one random stream."""
    if config is None:
        config = SurfaceTextureConfig()
    if resolution is None:
        resolution = config.resolution
    resolution = validate_resolution(resolution)
    rng = make_rng(rng, seed)

    height = synthesize_height(resolution, config.height, rng=rng)
    maps = derive_maps(height, config.maps, rng=rng)
    logger.info("Synthesized crust textures at %dx%d", resolution, resolution)
    return maps
