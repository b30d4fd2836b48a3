"""
Material catalog for the pastry disc.

Every slice has two material slots: "top" (caps) and "side" (cut walls).
Presets hold the scalar shading parameters; the make_* helpers attach the
synthesized or externally supplied texture fields.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Optional

import numpy as np
from trimesh.visual.material import PBRMaterial

from filling_texture import FillingTextures
from surface_maps import SurfaceMaps, encode_normal, height_to_normal
from texture_field import TextureField
from tile_texture import parse_color


@dataclass
class MaterialDescriptor:
    """Renderer-agnostic material: scalars plus optional texture fields."""

    name: str
    base_color: str = "#ffffff"
    roughness: float = 0.6
    metalness: float = 0.0
    bump_scale: float = 0.0
    double_sided: bool = True
    maps: Dict[str, TextureField] = field(default_factory=dict)

    @property
    def base_color_rgba(self):
        r, g, b = parse_color(self.base_color)
        return [r, g, b, 255]

    def with_maps(self, **maps: Optional[TextureField]) -> "MaterialDescriptor":
        merged = dict(self.maps)
        merged.update({k: v for k, v in maps.items() if v is not None})
        return replace(self, maps=merged)

    def describe(self) -> dict:
        return {
            "name": self.name,
            "base_color": self.base_color,
            "roughness": self.roughness,
            "metalness": self.metalness,
            "bump_scale": self.bump_scale,
            "double_sided": self.double_sided,
            "maps": {k: v.describe() for k, v in self.maps.items()},
        }

    def to_pbr(self) -> PBRMaterial:
        """Convert to a glTF metallic-roughness material for export."""
        kwargs = dict(
            name=self.name,
            baseColorFactor=self.base_color_rgba,
            metallicFactor=self.metalness,
            roughnessFactor=self.roughness,
            doubleSided=self.double_sided,
        )
        color = self.maps.get("color")
        if color is not None:
            kwargs["baseColorTexture"] = color.to_image()
        normal = self.maps.get("normal")
        bump = self.maps.get("bump")
        if normal is not None:
            kwargs["normalTexture"] = normal.to_image()
        elif bump is not None:
            kwargs["normalTexture"] = TextureField(
                pixels=encode_normal(height_to_normal(bump.pixels.astype(float))),
            ).to_image()
        occlusion = self.maps.get("ambient_occlusion")
        if occlusion is not None:
            kwargs["occlusionTexture"] = occlusion.to_image()
        roughness = self.maps.get("roughness")
        if roughness is not None:
            # glTF packs roughness in G and metalness in B
            packed = np.zeros(roughness.pixels.shape + (3,), dtype=np.uint8)
            packed[..., 1] = roughness.pixels
            kwargs["metallicRoughnessTexture"] = TextureField(pixels=packed).to_image()
            kwargs["roughnessFactor"] = 1.0
        return PBRMaterial(**kwargs)


MATERIAL_PRESETS = {
    "crust_top": MaterialDescriptor(
        name="Crust Top",
        base_color="#ffffff",
        roughness=0.6,
        bump_scale=0.05,
    ),
    "filling_side": MaterialDescriptor(
        name="Filling Side",
        base_color="#ffffff",
        roughness=0.7,
        bump_scale=0.05,
    ),
    "plain_crust_side": MaterialDescriptor(
        name="Plain Crust Side",
        base_color="#b67636",
        roughness=0.85,
    ),
    "tablecloth": MaterialDescriptor(
        name="Tablecloth",
        base_color="#ffffff",
        roughness=0.9,
        double_sided=False,
    ),
}


def get_preset(key: str) -> MaterialDescriptor:
    """Fresh copy of a preset; callers may attach or edit maps freely."""
    preset = MATERIAL_PRESETS[key]
    return replace(preset, maps=dict(preset.maps))


def make_top_material(
    maps: Optional[SurfaceMaps] = None,
    photo: Optional[TextureField] = None,
) -> MaterialDescriptor:
    """Crust material; *photo* replaces the synthesized colour map.

    The photograph is sampled with the same planar disc UVs as the
    synthesized map, so it must be a top-down image centred on the disc.
    """
    material = get_preset("crust_top")
    if maps is not None:
        material = material.with_maps(
            color=maps.color,
            normal=maps.normal,
            roughness=maps.roughness,
            ambient_occlusion=maps.ambient_occlusion,
        )
    if photo is not None:
        material = material.with_maps(color=photo)
    return material


def make_side_material(filling: Optional[FillingTextures] = None) -> MaterialDescriptor:
    """Filling material for the cut walls, or plain baked crust without one."""
    if filling is None:
        return get_preset("plain_crust_side")
    return get_preset("filling_side").with_maps(color=filling.color, bump=filling.bump)


def make_tablecloth_material(tile: TextureField) -> MaterialDescriptor:
    return get_preset("tablecloth").with_maps(color=tile)
