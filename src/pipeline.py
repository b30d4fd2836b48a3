"""Single-shot generation: textures + slices + materials -> run artifacts."""

from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
from PIL import Image

from disc_scene import export_disc_glb, slice_records
from filling_texture import FillingTextureConfig, FillingTextures, synthesize_filling
from fortunes import DEFAULT_FORTUNES, pad_fortunes
from materials import (
    make_side_material,
    make_tablecloth_material,
    make_top_material,
)
from run_protocol import (
    prepare_run_dir,
    update_latest_pointer,
    write_json,
    write_text,
)
from slice_builder import DiscConfig, Slice, build_slices, clamp_coin_index
from surface_maps import SurfaceMaps, SurfaceTextureConfig, synthesize_surface_textures
from texture_field import TextureField, texture_from_image
from tile_texture import TileTextureConfig, synthesize_tile

logger = logging.getLogger(__name__)


@dataclass
class GenerationConfig:
    runs_dir: str = "runs"
    name: str = "banitsa"
    disc: DiscConfig = field(default_factory=DiscConfig)
    fortunes: List[str] = field(default_factory=lambda: list(DEFAULT_FORTUNES))
    coin_index: int = 0
    clamp_coin: bool = False        # reset an out-of-range coin index to 0
    seed: Optional[int] = None
    surface: SurfaceTextureConfig = field(default_factory=SurfaceTextureConfig)
    filling: FillingTextureConfig = field(default_factory=FillingTextureConfig)
    tile: TileTextureConfig = field(default_factory=TileTextureConfig)
    use_filling: bool = True
    export_textures: bool = True
    export_glb: bool = True


@dataclass
class GenerationResult:
    run_id: str
    run_dir: str
    manifest_path: str
    metrics_path: str
    summary_path: str
    slices_path: str
    glb_path: Optional[str] = None
    texture_paths: Dict[str, str] = field(default_factory=dict)
    slices: List[Slice] = field(default_factory=list)
    surface: Optional[SurfaceMaps] = None
    filling: Optional[FillingTextures] = None
    tile: Optional[TextureField] = None


def run_generation(
    config: Optional[GenerationConfig] = None,
    photo: Optional[TextureField] = None,
) -> GenerationResult:
    """Generate every texture and slice and write them to a new run folder.

    Args:
        config: Disc, texture and output settings.
        photo: Optional top-down photograph replacing the synthesized crust
            colour map.
    """
    if config is None:
        config = GenerationConfig()

    # Validate before allocating anything
    config.disc.validate()
    fortunes = pad_fortunes(config.fortunes, config.disc.slice_count)

    started = time.perf_counter()
    rng = np.random.default_rng(config.seed)

    surface = synthesize_surface_textures(config=config.surface, rng=rng)
    filling = synthesize_filling(config=config.filling, rng=rng) if config.use_filling else None
    tile = synthesize_tile(config=config.tile, rng=rng)
    textures_s = time.perf_counter() - started

    coin_index = config.coin_index
    if config.clamp_coin:
        coin_index = clamp_coin_index(coin_index, config.disc.slice_count)
        if coin_index != config.coin_index:
            logger.info("Coin index %d out of range; reset to 0", config.coin_index)
    slices = build_slices(config.disc, fortunes, coin_index)
    mesh_s = time.perf_counter() - started - textures_s

    top = make_top_material(surface, photo=photo)
    side = make_side_material(filling)
    table = make_tablecloth_material(tile)

    paths = prepare_run_dir(config.runs_dir, config.name)

    texture_paths: Dict[str, str] = {}
    if config.export_textures:
        fields = {
            "height": surface.height,
            "color": surface.color,
            "roughness": surface.roughness,
            "normal": surface.normal,
            "ambient_occlusion": surface.ambient_occlusion,
            "tile": tile,
        }
        if filling is not None:
            fields["filling_color"] = filling.color
            fields["filling_bump"] = filling.bump
        if photo is not None:
            fields["photo"] = photo
        for key, tex in fields.items():
            if tex is None:
                continue
            texture_paths[key] = str(tex.save(paths.texture_path(key)))
        logger.info("Wrote %d textures to %s", len(texture_paths), paths.textures_dir)

    glb_path = None
    if config.export_glb and slices:
        glb_path = str(export_disc_glb(slices, paths.artifact_path("disc.glb"), top, side))

    records = slice_records(slices)
    slices_path = paths.artifact_path("slices.json")
    write_json(slices_path, records)

    elapsed = time.perf_counter() - started
    coin_slices = [r["index"] for r in records if r["has_coin"]]
    metrics = {
        "run_id": paths.run_id,
        "elapsed_s": round(elapsed, 3),
        "texture_s": round(textures_s, 3),
        "mesh_s": round(mesh_s, 3),
        "counts": {
            "slices": len(slices),
            "vertices": sum(r["vertex_count"] for r in records),
            "faces": sum(r["face_count"] for r in records),
            "textures": len(texture_paths),
        },
        "coin_slices": coin_slices,
        "slice_angle_rad": config.disc.slice_angle,
    }
    write_json(paths.metrics_path, metrics)

    write_text(paths.summary_path, _build_summary(paths.run_id, config, records, elapsed))

    manifest = {
        "run_id": paths.run_id,
        "name": config.name,
        "created_utc": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "config": {
            "disc": asdict(config.disc),
            "coin_index": coin_index,
            "requested_coin_index": config.coin_index,
            "seed": config.seed,
            "surface_resolution": config.surface.resolution,
            "filling_resolution": config.filling.resolution if config.use_filling else None,
            "tile_resolution": config.tile.resolution,
        },
        "materials": {
            "top": top.describe(),
            "side": side.describe(),
            "table": table.describe(),
        },
        "artifacts": {
            "glb": glb_path,
            "slices": str(slices_path),
            "metrics": str(paths.metrics_path),
            "summary": str(paths.summary_path),
            "textures": texture_paths,
        },
    }
    write_json(paths.manifest_path, manifest)
    update_latest_pointer(config.runs_dir, paths.run_dir)

    return GenerationResult(
        run_id=paths.run_id,
        run_dir=str(paths.run_dir),
        manifest_path=str(paths.manifest_path),
        metrics_path=str(paths.metrics_path),
        summary_path=str(paths.summary_path),
        slices_path=str(slices_path),
        glb_path=glb_path,
        texture_paths=texture_paths,
        slices=slices,
        surface=surface,
        filling=filling,
        tile=tile,
    )


def _build_summary(
    run_id: str,
    config: GenerationConfig,
    records: List[dict],
    elapsed_s: float,
) -> str:
    disc = config.disc
    lines = [
        f"# Run {run_id}",
        "",
        f"- Duration: {elapsed_s:.2f}s",
        f"- Slices: {len(records)} of {disc.slice_count}",
        f"- Radius: {disc.radius:g}, height: {disc.height:g}, gap: {disc.gap_deg:g} deg",
        f"- Edge dip: {disc.edge_dip:g}, wobble: {disc.wobble_amp:g}",
        "",
        "## Slices",
    ]
    if not records:
        lines.append("- None (gap leaves no room for a slice)")
    for r in records:
        coin = " (coin)" if r["has_coin"] else ""
        lines.append(f"- {r['name']}: {r['fortune']}{coin}")
    lines.append("")
    return "\n".join(lines)


def load_photo(path: str) -> TextureField:
    """Open a top-down photograph for use as the crust colour map."""
    with Image.open(Path(path)) as image:
        return texture_from_image(image, name="photo")
