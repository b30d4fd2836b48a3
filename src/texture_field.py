"""
Pixel-buffer container shared by every texture synthesizer.

A TextureField is a square grid of 8-bit samples, either single-channel
(``(N, N)``) or RGB (``(N, N, 3)``), plus the presentation hints a renderer
needs to sample it: wrap mode, repeat factors and colour space.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Tuple

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)


class WrapMode(Enum):
    """How UVs outside [0, 1] are resolved."""
    CLAMP = "clamp"
    REPEAT = "repeat"


class ColorSpace(Enum):
    """Interpretation of the stored values."""
    SRGB = "srgb"       # colour maps
    LINEAR = "linear"   # data maps (height, roughness, normal, AO, bump)


@dataclass
class TextureField:
    """A synthesized texture and its sampling hints."""
    pixels: np.ndarray
    color_space: ColorSpace = ColorSpace.LINEAR
    wrap: WrapMode = WrapMode.CLAMP
    repeat: Tuple[float, float] = (1.0, 1.0)
    name: str = ""
    metadata: dict = field(default_factory=dict)

    def __post_init__(self):
        pixels = np.asarray(self.pixels)
        if pixels.ndim not in (2, 3):
            raise ValueError(f"TextureField expects 2D or 3D pixels, got {pixels.shape}")
        if pixels.ndim == 3 and pixels.shape[2] != 3:
            raise ValueError(f"RGB TextureField needs 3 channels, got {pixels.shape[2]}")
        if pixels.dtype != np.uint8:
            raise ValueError(f"TextureField pixels must be uint8, got {pixels.dtype}")
        self.pixels = pixels

    @property
    def resolution(self) -> Tuple[int, int]:
        """(height, width) in pixels."""
        return (int(self.pixels.shape[0]), int(self.pixels.shape[1]))

    @property
    def channels(self) -> int:
        return 1 if self.pixels.ndim == 2 else int(self.pixels.shape[2])

    @property
    def is_tiling(self) -> bool:
        return self.wrap is WrapMode.REPEAT

    def to_image(self) -> Image.Image:
        # uint8 2D arrays become "L", uint8 RGB arrays become "RGB"
        return Image.fromarray(np.ascontiguousarray(self.pixels))

    def save(self, path) -> Path:
        """Write the field as a PNG and return the path."""
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        self.to_image().save(out, format="PNG")
        return out

    def describe(self) -> dict:
        """JSON-friendly summary used in run manifests."""
        h, w = self.resolution
        return {
            "name": self.name,
            "width": w,
            "height": h,
            "channels": self.channels,
            "color_space": self.color_space.value,
            "wrap": self.wrap.value,
            "repeat": list(self.repeat),
        }


def texture_from_image(image: Image.Image, name: str = "photo") -> TextureField:
    """Wrap an externally loaded RGB image (e.g. a photograph) as a colour map."""
    if "A" in image.getbands() or "transparency" in image.info:
        logger.debug("Discarding alpha of %s image %r", image.mode, name)
    return TextureField(
        pixels=np.asarray(image.convert("RGB"), dtype=np.uint8),
        color_space=ColorSpace.SRGB,
        name=name,
    )
