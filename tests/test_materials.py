from __future__ import annotations

import numpy as np
import pytest
from trimesh.visual.material import PBRMaterial

from filling_texture import synthesize_filling
from materials import (
    MATERIAL_PRESETS,
    make_side_material,
    make_tablecloth_material,
    make_top_material,
)
from surface_maps import derive_maps
from texture_field import TextureField
from tile_texture import synthesize_tile


@pytest.fixture
def surface(ramp_height):
    return derive_maps(ramp_height, seed=0)


def test_preset_scalars():
    top = MATERIAL_PRESETS["crust_top"]
    assert top.roughness == pytest.approx(0.6)
    assert top.bump_scale == pytest.approx(0.05)
    assert top.double_sided
    assert MATERIAL_PRESETS["filling_side"].roughness == pytest.approx(0.7)
    plain = MATERIAL_PRESETS["plain_crust_side"]
    assert plain.base_color == "#b67636"
    assert plain.base_color_rgba == [182, 118, 54, 255]


def test_top_material_attaches_surface_maps(surface):
    material = make_top_material(surface)
    assert set(material.maps) == {"color", "normal", "roughness", "ambient_occlusion"}
    assert material.maps["color"] is surface.color
    # Presets are shared and must stay untouched
    assert MATERIAL_PRESETS["crust_top"].maps == {}


def test_photo_replaces_color_only(surface):
    photo = TextureField(pixels=np.zeros((16, 16, 3), dtype=np.uint8), name="photo")
    material = make_top_material(surface, photo=photo)
    assert material.maps["color"] is photo
    assert material.maps["normal"] is surface.normal


def test_side_material_falls_back_to_plain_crust():
    plain = make_side_material(None)
    assert plain.name == "Plain Crust Side"
    assert plain is not MATERIAL_PRESETS["plain_crust_side"]
    filling = synthesize_filling(16, seed=0)
    material = make_side_material(filling)
    assert material.name == "Filling Side"
    assert material.maps["color"] is filling.color
    assert material.maps["bump"] is filling.bump


def test_describe_lists_maps(surface):
    info = make_top_material(surface).describe()
    assert info["name"] == "Crust Top"
    assert info["maps"]["normal"]["channels"] == 3
    assert info["maps"]["roughness"]["width"] == 64


def test_to_pbr_packs_textures(surface):
    pbr = make_top_material(surface).to_pbr()
    assert isinstance(pbr, PBRMaterial)
    assert pbr.baseColorTexture is not None
    assert pbr.normalTexture is not None
    assert pbr.metallicRoughnessTexture is not None
    assert pbr.roughnessFactor == pytest.approx(1.0)


def test_bump_only_material_gets_derived_normal():
    filling = synthesize_filling(16, seed=1)
    pbr = make_side_material(filling).to_pbr()
    assert pbr.normalTexture is not None
    assert pbr.roughnessFactor == pytest.approx(0.7)


def test_tablecloth_material():
    tile = synthesize_tile(resolution=16, seed=0)
    material = make_tablecloth_material(tile)
    assert material.maps["color"] is tile
    assert not material.double_sided


@pytest.mark.parametrize(
    "factory",
    [make_top_material, make_side_material],
    ids=["top", "side"],
)
def test_returned_materials_are_independent(factory):
    first = factory()
    first.maps["color"] = TextureField(pixels=np.zeros((4, 4, 3), dtype=np.uint8))
    first.roughness = 0.1
    second = factory()
    assert "color" not in second.maps
    assert second.roughness != pytest.approx(0.1)
    assert all(not preset.maps for preset in MATERIAL_PRESETS.values())
