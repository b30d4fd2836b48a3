"""
Assemble built slices into a renderable scene and export it.

Each slice is split into its "top" and "side" material groups, both placed
with the slice transform. Slice metadata travels in the node's geometry
metadata so a viewer can pick slices by name.
"""
import logging
from pathlib import Path
from typing import Iterable, List, Optional

import trimesh

from materials import MaterialDescriptor, make_side_material, make_top_material
from slice_builder import MATERIAL_SLOTS, SLOT_SIDE, SLOT_TOP, Slice

logger = logging.getLogger(__name__)


def _dressed(mesh: trimesh.Trimesh, material: MaterialDescriptor, pbr_cache: dict) -> trimesh.Trimesh:
    pbr = pbr_cache.get(material.name)
    if pbr is None:
        pbr = material.to_pbr()
        pbr_cache[material.name] = pbr
    mesh.visual = trimesh.visual.TextureVisuals(uv=mesh.visual.uv, material=pbr)
    return mesh


def build_disc_scene(
    slices: Iterable[Slice],
    top_material: Optional[MaterialDescriptor] = None,
    side_material: Optional[MaterialDescriptor] = None,
) -> trimesh.Scene:
    """Scene with two placed, textured geometries per slice."""
    if top_material is None:
        top_material = make_top_material()
    if side_material is None:
        side_material = make_side_material()

    scene = trimesh.Scene()
    pbr_cache: dict = {}
    count = 0
    for piece in slices:
        info = {
            "index": piece.index,
            "fortune": piece.fortune,
            "has_coin": piece.has_coin,
            "original_y": piece.original_y,
        }
        for slot, material in ((SLOT_TOP, top_material), (SLOT_SIDE, side_material)):
            suffix = MATERIAL_SLOTS[slot]
            part = _dressed(piece.slot_mesh(slot), material, pbr_cache)
            part.metadata.update(info)
            scene.add_geometry(
                part,
                node_name=f"{piece.name}-{suffix}",
                geom_name=f"{piece.name}-{suffix}",
                transform=piece.transform,
            )
        count += 1

    logger.info("Disc scene: %d slices, %d geometries", count, len(scene.geometry))
    return scene


def export_disc_glb(
    slices: Iterable[Slice],
    path,
    top_material: Optional[MaterialDescriptor] = None,
    side_material: Optional[MaterialDescriptor] = None,
) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    scene = build_disc_scene(slices, top_material, side_material)
    scene.export(str(out), file_type="glb")
    logger.info("Exported disc GLB: %s", out)
    return out


def slice_records(slices: Iterable[Slice]) -> List[dict]:
    """JSON-friendly metadata for each slice."""
    records = []
    for piece in slices:
        records.append({
            "index": piece.index,
            "name": piece.name,
            "fortune": piece.fortune,
            "has_coin": piece.has_coin,
            "rotation_y": piece.rotation_y,
            "angular_span": piece.angular_span,
            "original_y": piece.original_y,
            "vertex_count": 0 if piece.released else len(piece.mesh.vertices),
            "face_count": 0 if piece.released else len(piece.mesh.faces),
        })
    return records


def release_slices(slices: List[Slice]) -> None:
    """Release every slice's geometry and empty the list in place."""
    for piece in slices:
        piece.release()
    released = len(slices)
    slices.clear()
    logger.debug("Released %d slices", released)
