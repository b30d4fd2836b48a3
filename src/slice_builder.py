"""
Wedge-slice mesh builder for the segmented pastry disc.

Each slice is a pie-shaped prism extruded from a shapely outline. The top
face droops towards both cut edges (rolled dough sheets meeting) and carries
a faint wobble. Every vertex then gets a planar UV computed in disc-global
coordinates, so all slices together sample one shared top-down photograph
as if the disc were never cut.

Coordinate conventions:
    - Slice-local build space: outline in the XY plane, extrusion along +Z,
      wedge spanning angles [0, slice_angle].
    - Output mesh space: Y-up (build Z becomes Y), bottom at y=0, top at
      y=height. The slice transform is a rotation about +Y.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np
import trimesh
from shapely.geometry import Polygon
from shapely.geometry.polygon import orient

from noise_fields import cubic_edge_falloff, trig_noise_2d

logger = logging.getLogger(__name__)

SLOT_TOP = 0
SLOT_SIDE = 1
MATERIAL_SLOTS = ("top", "side")

# Build space (extrusion along +Z) -> Y-up output space
LAY_FLAT = trimesh.transformations.rotation_matrix(-math.pi / 2.0, [1.0, 0.0, 0.0])
UP_AXIS = [0.0, 1.0, 0.0]


class ConfigurationError(ValueError):
    """Disc parameters that cannot describe a solid."""
    pass


@dataclass
class DiscConfig:
    """Shape parameters for the whole disc."""

    slice_count: int = 8
    radius: float = 5.0
    height: float = 0.8
    gap_deg: float = 1.0          # visual gap between neighbouring slices
    edge_dip: float = 0.02        # droop of the top face at the cut edges
    wobble_amp: float = 0.02
    arc_segments: int = 24
    uv_margin: float = 1.1        # UV reference radius = radius * uv_margin

    @property
    def angle_per_slice(self) -> float:
        return 2.0 * math.pi / self.slice_count

    @property
    def gap_rad(self) -> float:
        return math.radians(self.gap_deg)

    @property
    def slice_angle(self) -> float:
        return self.angle_per_slice - self.gap_rad

    @property
    def map_radius(self) -> float:
        return self.radius * self.uv_margin

    def validate(self) -> None:
        """Raise ConfigurationError for parameters no geometry can satisfy.

        A non-positive slice angle is not checked here; build_slices treats
        it as an empty disc.
        """
        if isinstance(self.slice_count, bool) or not isinstance(self.slice_count, (int, np.integer)):
            raise ConfigurationError(f"slice_count must be an integer, got {self.slice_count!r}")
        if self.slice_count < 2:
            raise ConfigurationError(f"slice_count must be at least 2, got {self.slice_count}")
        if not self.radius > 0:
            raise ConfigurationError(f"radius must be positive, got {self.radius}")
        if not self.height > 0:
            raise ConfigurationError(f"height must be positive, got {self.height}")
        if self.gap_deg < 0:
            raise ConfigurationError(f"gap_deg must be >= 0, got {self.gap_deg}")
        if self.edge_dip < 0:
            raise ConfigurationError(f"edge_dip must be >= 0, got {self.edge_dip}")
        if self.wobble_amp < 0:
            raise ConfigurationError(f"wobble_amp must be >= 0, got {self.wobble_amp}")
        if self.arc_segments < 1:
            raise ConfigurationError(f"arc_segments must be >= 1, got {self.arc_segments}")
        if not self.uv_margin > 0:
            raise ConfigurationError(f"uv_margin must be positive, got {self.uv_margin}")


@dataclass
class Slice:
    """One wedge of the disc plus the metadata the game layer reads."""

    index: int
    fortune: str
    has_coin: bool
    mesh: Optional[trimesh.Trimesh]   # Y-up, unplaced
    face_slots: np.ndarray             # (F,) SLOT_TOP / SLOT_SIDE per face
    rotation_y: float
    transform: np.ndarray              # (4, 4) placement about +Y
    angular_span: float
    name: str = ""
    original_y: float = 0.0
    metadata: dict = field(default_factory=dict)

    @property
    def released(self) -> bool:
        return self.mesh is None

    def placed_mesh(self) -> trimesh.Trimesh:
        """Copy of the mesh with the placement transform baked in."""
        mesh = self._require_mesh().copy()
        mesh.apply_transform(self.transform)
        return mesh

    def slot_mesh(self, slot: int, placed: bool = False) -> trimesh.Trimesh:
        """Sub-mesh holding only the faces of one material slot."""
        mesh = self.placed_mesh() if placed else self._require_mesh()
        faces = np.asarray(mesh.faces)[self.face_slots == slot]
        used = np.unique(faces.reshape(-1))
        remap = np.full(len(mesh.vertices), -1, dtype=np.int64)
        remap[used] = np.arange(len(used), dtype=np.int64)
        return trimesh.Trimesh(
            vertices=np.asarray(mesh.vertices)[used],
            faces=remap[faces],
            visual=trimesh.visual.TextureVisuals(uv=np.asarray(mesh.visual.uv)[used]),
            process=False,
        )

    def release(self) -> None:
        """Drop the geometry buffers; the slice keeps only its metadata."""
        self.mesh = None
        self.face_slots = np.zeros(0, dtype=np.int64)

    def _require_mesh(self) -> trimesh.Trimesh:
        if self.mesh is None:
            raise RuntimeError(f"Slice {self.index} has been released")
        return self.mesh


# ─── Outline and extrusion ───────────────────────────────────────────────────

def wedge_outline(radius: float, slice_angle: float, arc_segments: int = 24) -> Polygon:
    """Pie-slice silhouette: origin, arc over [0, slice_angle], back to origin."""
    angles = np.linspace(0.0, slice_angle, arc_segments + 1)
    arc = np.column_stack([np.cos(angles), np.sin(angles)]) * radius
    return orient(Polygon([(0.0, 0.0)] + [tuple(p) for p in arc]), sign=1.0)


def _wall_strip(points_2d: np.ndarray, height: float) -> Tuple[np.ndarray, np.ndarray]:
    """Vertical wall under a polyline; vertices shared only inside the strip."""
    n = len(points_2d)
    bottom = np.column_stack([points_2d, np.zeros(n)])
    top = np.column_stack([points_2d, np.full(n, height)])
    vertices = np.vstack([bottom, top])

    faces = []
    for k in range(n - 1):
        b0, b1 = k, k + 1
        t0, t1 = n + k, n + k + 1
        faces.append([b0, b1, t1])
        faces.append([b0, t1, t0])
    return vertices, np.array(faces, dtype=np.int64).reshape(-1, 3)


def extrude_wedge(outline: Polygon, height: float) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Extrude a wedge outline along +Z into a sharp-edged prism.

    The outline must start at the wedge apex and run counter-clockwise along
    the arc. Caps are fanned from the apex. The two radial walls and the arc
    wall each get their own vertices so the corners stay sharp when normals
    are averaged.

    Returns:
        (vertices (N, 3), faces (F, 3), face_slots (F,))
    """
    contour = np.asarray(outline.exterior.coords)[:-1]
    apex, arc = contour[0], contour[1:]
    n_fill = len(contour)

    cap_tris = np.array([[0, k, k + 1] for k in range(1, n_fill - 1)], dtype=np.int64)
    top = np.column_stack([contour, np.full(n_fill, height)])
    bottom = np.column_stack([contour, np.zeros(n_fill)])

    all_verts: List[np.ndarray] = [top, bottom]
    all_faces: List[np.ndarray] = [cap_tris, cap_tris[:, ::-1] + n_fill]
    all_slots: List[np.ndarray] = [
        np.full(len(cap_tris), SLOT_TOP),
        np.full(len(cap_tris), SLOT_TOP),
    ]

    base_idx = 2 * n_fill
    walls = [
        np.vstack([apex, arc[0]]),
        arc,
        np.vstack([arc[-1], apex]),
    ]
    for wall in walls:
        verts, faces = _wall_strip(wall, height)
        all_verts.append(verts)
        all_faces.append(faces + base_idx)
        all_slots.append(np.full(len(faces), SLOT_SIDE))
        base_idx += len(verts)

    return (
        np.vstack(all_verts).astype(float),
        np.vstack(all_faces),
        np.concatenate(all_slots).astype(np.int64),
    )


# ─── Surface detail and UVs ──────────────────────────────────────────────────

def top_vertex_mask(vertices: np.ndarray, height: float) -> np.ndarray:
    """Vertices lying on the extrusion's top plane."""
    tol = min(1e-3, height * 0.5)
    return np.abs(np.asarray(vertices)[:, 2] - height) < tol


def edge_dip_offsets(vertices: np.ndarray, slice_angle: float, edge_dip: float) -> np.ndarray:
    """Downward offset per vertex from its angle inside the wedge (all <= 0)."""
    v = np.asarray(vertices, dtype=float)
    theta = np.arctan2(v[:, 1], v[:, 0])
    return -cubic_edge_falloff(theta / slice_angle) * edge_dip


def deform_top(
    vertices: np.ndarray,
    height: float,
    slice_angle: float,
    edge_dip: float,
    wobble_amp: float,
) -> np.ndarray:
    """Return a new vertex array with the top face dipped and wobbled.

    The input array is never modified.
    """
    src = np.asarray(vertices, dtype=float)
    out = src.copy()
    mask = top_vertex_mask(src, height)
    top = src[mask]
    dz = edge_dip_offsets(top, slice_angle, edge_dip)
    dz = dz + wobble_amp * trig_noise_2d(top[:, 0], top[:, 1], frequency=3.0)
    out[mask, 2] = top[:, 2] + dz
    return out


def placement_rotation(index: int, config: DiscConfig) -> float:
    """Rotation about the vertical axis that moves slice *index* to its slot."""
    return -(index * config.angle_per_slice + config.gap_rad / 2.0)


def planar_uvs(vertices: np.ndarray, rotation: float, map_radius: float) -> np.ndarray:
    """Top-down UVs in disc-global space, ignoring the height axis.

    Applied identically to top and side vertices, so the walls show the top
    photograph projected straight down.
    """
    v = np.asarray(vertices, dtype=float)
    c, s = math.cos(rotation), math.sin(rotation)
    gx = v[:, 0] * c - v[:, 1] * s
    gy = v[:, 0] * s + v[:, 1] * c
    return np.column_stack([
        gx / (2.0 * map_radius) + 0.5,
        gy / (2.0 * map_radius) + 0.5,
    ])


def placement_transform(rotation: float) -> np.ndarray:
    return trimesh.transformations.rotation_matrix(rotation, UP_AXIS)


# ─── Builders ────────────────────────────────────────────────────────────────

def clamp_coin_index(coin_index: int, slice_count: int) -> int:
    """Reset a coin index that no longer fits the slice count to 0."""
    if coin_index < 0 or coin_index >= slice_count:
        return 0
    return coin_index


def build_slice(index: int, config: DiscConfig, fortune: str, coin_index: int) -> Slice:
    """Build, deform, UV-map and place a single slice."""
    slice_angle = config.slice_angle
    outline = wedge_outline(config.radius, slice_angle, config.arc_segments)
    if not outline.is_valid or outline.area <= 0:
        raise ConfigurationError(f"Slice {index} outline is degenerate")

    vertices, faces, slots = extrude_wedge(outline, config.height)
    deformed = deform_top(
        vertices, config.height, slice_angle, config.edge_dip, config.wobble_amp,
    )
    rotation = placement_rotation(index, config)
    uv = planar_uvs(deformed, rotation, config.map_radius)

    flat = trimesh.transformations.transform_points(deformed, LAY_FLAT)
    mesh = trimesh.Trimesh(
        vertices=flat,
        faces=faces,
        visual=trimesh.visual.TextureVisuals(uv=uv),
        process=False,
    )
    # Populate the normal cache from the displaced surface
    mesh.vertex_normals

    return Slice(
        index=index,
        fortune=fortune,
        has_coin=(index == coin_index),
        mesh=mesh,
        face_slots=slots,
        rotation_y=rotation,
        transform=placement_transform(rotation),
        angular_span=slice_angle,
        name=f"slice-{index}",
        metadata={"outline_area": float(outline.area)},
    )


def build_slices(
    config: DiscConfig,
    fortunes: Sequence[str],
    coin_index: int,
) -> List[Slice]:
    """Build every slice of the disc.

    Args:
        config: Disc shape parameters.
        fortunes: At least ``config.slice_count`` fortune strings.
        coin_index: Index of the slice hiding the coin. Any index outside
            [0, slice_count) simply means no slice has the coin.

    Returns:
        Fresh slices in index order, or an empty list when the gap leaves
        no room for a slice.

    Raises:
        ConfigurationError: invalid shape parameters.
        IndexError: fewer fortunes than slices.
    """
    config.validate()

    if config.slice_angle <= 0:
        logger.warning(
            "Gap of %.2f deg is too large for %d slices; no slices built",
            config.gap_deg, config.slice_count,
        )
        return []

    if len(fortunes) < config.slice_count:
        raise IndexError(
            f"Need {config.slice_count} fortunes, got {len(fortunes)}"
        )

    slices = []
    for i in range(config.slice_count):
        piece = build_slice(i, config, fortunes[i], coin_index)
        logger.debug(
            "Built %s: %d vertices, %d faces, rotation %.4f rad",
            piece.name, len(piece.mesh.vertices), len(piece.mesh.faces), piece.rotation_y,
        )
        slices.append(piece)

    logger.info(
        "Built %d slices (span %.4f rad, gap %.2f deg, coin at %s)",
        len(slices), config.slice_angle, config.gap_deg,
        coin_index if 0 <= coin_index < config.slice_count else "none",
    )
    return slices
