"""
Small stateless numeric helpers shared by the texture synthesizers.

Trigonometric 2D noise, easing curves, interpolation, clamped central-difference
gradients and Gaussian blurs over 2D scalar fields. Everything here takes and
returns numpy arrays and never holds state between calls.
"""
from typing import Optional, Tuple

import numpy as np
from scipy.ndimage import gaussian_filter

# Resolution every pixel-space constant in this project is tuned against.
REFERENCE_RESOLUTION = 1024


class DegenerateInputError(ValueError):
    """A texture was requested at a resolution that produces no pixels."""
    pass


def validate_resolution(resolution) -> int:
    """Return *resolution* as an int, or raise DegenerateInputError."""
    if isinstance(resolution, bool) or not isinstance(resolution, (int, np.integer)):
        raise DegenerateInputError(
            f"Texture resolution must be an integer, got {resolution!r}"
        )
    if resolution <= 0:
        raise DegenerateInputError(
            f"Texture resolution must be positive, got {resolution}"
        )
    return int(resolution)


def make_rng(
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
) -> np.random.Generator:
    """Use the injected generator, or build a fresh one from *seed*."""
    if rng is not None:
        return rng
    return np.random.default_rng(seed)


def pixel_scale(resolution: int) -> float:
    """Ratio between *resolution* and the reference resolution."""
    return resolution / float(REFERENCE_RESOLUTION)


# ─── Curves ──────────────────────────────────────────────────────────────────

def lerp(a, b, t):
    """Linear interpolation, broadcasting over numpy arrays."""
    return a + (b - a) * t


def smoothstep(edge0: float, edge1: float, x):
    """Hermite easing between two edges, clamped to [0, 1]."""
    t = np.clip((np.asarray(x, dtype=float) - edge0) / (edge1 - edge0), 0.0, 1.0)
    return t * t * (3.0 - 2.0 * t)


def cubic_edge_falloff(t):
    """Falloff that is 1 at t=0 and t=1 and 0 at t=0.5.

    ``t`` is clamped to [0, 1] first; the curve is ``(1 - 2*min(t, 1-t))**3``.
    """
    t = np.clip(np.asarray(t, dtype=float), 0.0, 1.0)
    dist_to_edge = np.minimum(t, 1.0 - t)
    return (1.0 - 2.0 * dist_to_edge) ** 3


def trig_noise_2d(x, y, frequency: float = 3.0):
    """Coherent-looking bounded noise: ``sin(f*x) * cos(f*y)`` in [-1, 1]."""
    return np.sin(np.asarray(x, dtype=float) * frequency) * np.cos(
        np.asarray(y, dtype=float) * frequency
    )


# ─── Field operations ────────────────────────────────────────────────────────

def central_gradient(field: np.ndarray, strength: float = 2.0) -> Tuple[np.ndarray, np.ndarray]:
    """Central differences of a 2D field with edge clamping.

    Returns ``(dx, dy)`` where ``dx = (right - left) * strength`` and
    ``dy = (down - up) * strength``. Border pixels reuse their nearest valid
    neighbour instead of wrapping around.
    """
    f = np.asarray(field, dtype=float)
    if f.ndim != 2:
        raise ValueError(f"Expected a 2D field, got shape {f.shape}")
    padded = np.pad(f, 1, mode="edge")
    left = padded[1:-1, :-2]
    right = padded[1:-1, 2:]
    up = padded[:-2, 1:-1]
    down = padded[2:, 1:-1]
    return (right - left) * strength, (down - up) * strength


def blur(field: np.ndarray, sigma: float) -> np.ndarray:
    """Gaussian blur of a 2D field; borders extend the nearest pixel."""
    f = np.asarray(field, dtype=float)
    if sigma <= 0:
        return f.copy()
    return gaussian_filter(f, sigma=sigma, mode="nearest")


def to_uint8(values) -> np.ndarray:
    """Round and clamp to the 0..255 byte range."""
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)
