"""Tests for wedge slice geometry, deformation, UVs and placement."""
import logging
import math

import numpy as np
import pytest
import trimesh

from slice_builder import (
    SLOT_SIDE,
    SLOT_TOP,
    ConfigurationError,
    DiscConfig,
    build_slices,
    clamp_coin_index,
    deform_top,
    edge_dip_offsets,
    extrude_wedge,
    planar_uvs,
    top_vertex_mask,
    wedge_outline,
)


def _local_build_coords(mesh_vertices: np.ndarray) -> np.ndarray:
    """Undo the Y-up lay-flat rotation: (x, y, z) -> (x, -z, y)."""
    v = np.asarray(mesh_vertices)
    return np.column_stack([v[:, 0], -v[:, 2], v[:, 1]])


class TestDiscConfig:

    def test_derived_angles(self, disc_config):
        assert disc_config.angle_per_slice == pytest.approx(math.pi / 4)
        assert disc_config.gap_rad == pytest.approx(math.radians(1.0))
        assert disc_config.slice_angle == pytest.approx(math.pi / 4 - math.radians(1.0))
        assert disc_config.map_radius == pytest.approx(6.6)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"slice_count": 0},
            {"slice_count": 1},
            {"slice_count": 2.5},
            {"radius": 0.0},
            {"radius": -1.0},
            {"height": 0.0},
            {"gap_deg": -1.0},
            {"edge_dip": -0.1},
            {"wobble_amp": -0.1},
            {"arc_segments": 0},
        ],
    )
    def test_invalid_config_rejected(self, overrides, fortunes):
        config = DiscConfig(**overrides)
        with pytest.raises(ConfigurationError):
            build_slices(config, fortunes, 0)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            DiscConfig(radius=-2).validate()


class TestOutlineAndExtrusion:

    def test_outline_starts_at_apex(self):
        outline = wedge_outline(2.0, math.pi / 3, arc_segments=12)
        coords = np.asarray(outline.exterior.coords)
        np.testing.assert_allclose(coords[0], [0.0, 0.0])
        assert len(coords) == 12 + 2 + 1
        assert outline.is_valid
        assert outline.exterior.is_ccw

    def test_outline_area_approaches_sector(self):
        angle = math.pi / 4
        outline = wedge_outline(3.0, angle, arc_segments=96)
        assert outline.area == pytest.approx(0.5 * 9.0 * angle, rel=1e-3)

    def test_prism_heights_and_slots(self):
        outline = wedge_outline(1.0, math.pi / 2, arc_segments=8)
        vertices, faces, slots = extrude_wedge(outline, 0.5)
        assert set(np.round(vertices[:, 2], 9)) == {0.0, 0.5}
        assert len(slots) == len(faces)
        # Caps: 8 fan triangles each for top and bottom
        assert np.count_nonzero(slots == SLOT_TOP) == 16
        # Walls: 2 radial quads + 8 arc quads
        assert np.count_nonzero(slots == SLOT_SIDE) == 20

    def test_prism_is_closed_and_outward(self):
        outline = wedge_outline(1.0, math.pi / 3, arc_segments=6)
        vertices, faces, _ = extrude_wedge(outline, 0.4)
        mesh = trimesh.Trimesh(vertices=vertices, faces=faces, process=True)
        mesh.merge_vertices()
        assert mesh.is_watertight
        assert mesh.volume > 0
        expected = outline.area * 0.4
        assert mesh.volume == pytest.approx(expected, rel=1e-6)


class TestDeformation:

    def test_only_top_vertices_move(self):
        outline = wedge_outline(2.0, math.pi / 4, arc_segments=8)
        vertices, _, _ = extrude_wedge(outline, 1.0)
        out = deform_top(vertices, 1.0, math.pi / 4, edge_dip=0.2, wobble_amp=0.05)
        bottom = ~top_vertex_mask(vertices, 1.0)
        np.testing.assert_array_equal(out[bottom], vertices[bottom])
        np.testing.assert_array_equal(out[:, :2], vertices[:, :2])

    def test_input_not_mutated(self):
        outline = wedge_outline(2.0, math.pi / 4, arc_segments=8)
        vertices, _, _ = extrude_wedge(outline, 1.0)
        before = vertices.copy()
        out = deform_top(vertices, 1.0, math.pi / 4, edge_dip=0.2, wobble_amp=0.05)
        np.testing.assert_array_equal(vertices, before)
        assert out is not vertices

    def test_dip_profile(self):
        angle = math.pi / 3
        thetas = np.linspace(0.0, angle, 41)
        pts = np.column_stack([np.cos(thetas) * 2.0, np.sin(thetas) * 2.0, np.ones(41)])
        dz = edge_dip_offsets(pts, angle, 0.25)
        assert np.all(dz <= 0)
        assert dz[0] == pytest.approx(-0.25)
        assert dz[-1] == pytest.approx(-0.25)
        assert dz[20] == pytest.approx(0.0, abs=1e-12)
        # Magnitude shrinks moving from either edge towards the middle
        assert np.all(np.diff(np.abs(dz[:21])) <= 1e-12)
        assert np.all(np.diff(np.abs(dz[20:])) >= -1e-12)

    def test_wobble_formula(self):
        pts = np.array([[0.3, 0.2, 1.0]])
        angle = math.pi / 2
        out = deform_top(pts, 1.0, angle, edge_dip=0.0, wobble_amp=0.1)
        expected = 1.0 + 0.1 * math.sin(0.9) * math.cos(0.6)
        assert out[0, 2] == pytest.approx(expected)


class TestUVs:

    def test_center_maps_to_uv_center(self):
        uv = planar_uvs(np.array([[0.0, 0.0, 1.0]]), rotation=0.7, map_radius=5.5)
        np.testing.assert_allclose(uv[0], [0.5, 0.5])

    def test_rim_distance(self):
        radius = 5.0
        pts = np.array([[radius, 0.0, 0.0], [0.0, radius, 0.3]])
        uv = planar_uvs(pts, rotation=-1.1, map_radius=radius * 1.1)
        dist = np.linalg.norm(uv - 0.5, axis=1)
        np.testing.assert_allclose(dist, 1.0 / 2.2)
        assert dist[0] == pytest.approx(0.4545, abs=1e-4)

    def test_rotation_applied(self):
        uv = planar_uvs(np.array([[1.0, 0.0, 0.0]]), rotation=math.pi / 2, map_radius=1.0)
        np.testing.assert_allclose(uv[0], [0.5, 1.0], atol=1e-12)


class TestBuildSlices:

    def test_reference_scenario(self, disc_config, fortunes):
        slices = build_slices(disc_config, fortunes, coin_index=3)
        assert len(slices) == 8
        assert [s.has_coin for s in slices] == [i == 3 for i in range(8)]
        for s in slices:
            assert s.angular_span == pytest.approx(2 * math.pi / 8 - math.radians(1.0))
            assert s.fortune == fortunes[s.index]
            assert s.name == f"slice-{s.index}"
            assert s.original_y == 0.0

    def test_placements_tile_full_revolution(self, disc_config, fortunes):
        slices = build_slices(disc_config, fortunes, coin_index=0)
        rotations = np.array([s.rotation_y for s in slices])
        steps = -np.diff(rotations)
        np.testing.assert_allclose(steps, 2 * math.pi / 8)
        assert rotations[0] == pytest.approx(-math.radians(1.0) / 2)
        total = sum(s.angular_span for s in slices) + 8 * disc_config.gap_rad
        assert total == pytest.approx(2 * math.pi)

    @pytest.mark.parametrize("coin_index", [-1, 8, 100])
    def test_out_of_range_coin_means_no_coin(self, disc_config, fortunes, coin_index):
        slices = build_slices(disc_config, fortunes, coin_index)
        assert not any(s.has_coin for s in slices)

    def test_gap_too_large_returns_empty(self, fortunes, caplog):
        config = DiscConfig(slice_count=4, gap_deg=91.0)
        with caplog.at_level(logging.WARNING, logger="slice_builder"):
            slices = build_slices(config, fortunes, 0)
        assert slices == []
        assert "too large" in caplog.text

    def test_gap_wider_than_slot_returns_empty(self, fortunes):
        config = DiscConfig(slice_count=12, gap_deg=45.0)
        assert build_slices(config, fortunes, 0) == []

    def test_too_few_fortunes(self, disc_config):
        with pytest.raises(IndexError):
            build_slices(disc_config, ["only one"], 0)

    def test_mesh_is_y_up(self, disc_config, fortunes):
        piece = build_slices(disc_config, fortunes, 0)[0]
        v = piece.mesh.vertices
        assert v[:, 1].min() == pytest.approx(0.0)
        assert v[:, 1].max() <= disc_config.height + disc_config.wobble_amp + 1e-9
        assert v[:, 1].max() > disc_config.height - disc_config.edge_dip

    def test_top_face_dip_in_mesh(self, flat_disc_config, fortunes):
        piece = build_slices(flat_disc_config, fortunes, 0)[2]
        local = _local_build_coords(piece.mesh.vertices)
        top = local[:, 2] > flat_disc_config.height * 0.5
        dz = local[top, 2] - flat_disc_config.height
        assert np.all(dz <= 1e-12)
        assert dz.min() == pytest.approx(-flat_disc_config.edge_dip)
        # Arc midpoint sits at the angular centre and does not dip
        theta = np.arctan2(local[top, 1], local[top, 0])
        centre = np.argmin(np.abs(theta - flat_disc_config.slice_angle / 2))
        assert dz[centre] == pytest.approx(0.0, abs=1e-9)

    def test_uvs_match_world_position(self, disc_config, fortunes):
        slices = build_slices(disc_config, fortunes, 0)
        for piece in slices:
            placed = piece.placed_mesh()
            uv = np.asarray(placed.visual.uv)
            w = placed.vertices
            expected_u = w[:, 0] / (2 * disc_config.map_radius) + 0.5
            expected_v = -w[:, 2] / (2 * disc_config.map_radius) + 0.5
            np.testing.assert_allclose(uv[:, 0], expected_u, atol=1e-9)
            np.testing.assert_allclose(uv[:, 1], expected_v, atol=1e-9)

    def test_uvs_stay_inside_margin(self, disc_config, fortunes):
        slices = build_slices(disc_config, fortunes, 0)
        for piece in slices:
            uv = np.asarray(piece.mesh.visual.uv)
            dist = np.linalg.norm(uv - 0.5, axis=1)
            assert dist.max() <= disc_config.radius / (2 * disc_config.map_radius) + 1e-9
            assert uv.min() > 0.0
            assert uv.max() < 1.0

    def test_side_and_top_share_projection(self, disc_config, fortunes):
        piece = build_slices(disc_config, fortunes, 0)[1]
        uv = np.asarray(piece.mesh.visual.uv)
        v = piece.mesh.vertices
        # Same planar footprint -> same UV regardless of height
        key = np.round(v[:, [0, 2]], 9)
        _, inverse = np.unique(key, axis=0, return_inverse=True)
        inverse = inverse.reshape(-1)
        for group in np.unique(inverse):
            members = uv[inverse == group]
            np.testing.assert_allclose(
                members, np.broadcast_to(members[0], members.shape), atol=1e-12,
            )

    def test_slices_do_not_share_buffers(self, disc_config, fortunes):
        a = build_slices(disc_config, fortunes, 0)
        b = build_slices(disc_config, fortunes, 0)
        a[0].mesh.vertices[:, 1] += 1.0
        assert b[0].mesh.vertices[:, 1].min() == pytest.approx(0.0)

    def test_slot_meshes_partition_faces(self, disc_config, fortunes):
        piece = build_slices(disc_config, fortunes, 0)[0]
        top = piece.slot_mesh(SLOT_TOP)
        side = piece.slot_mesh(SLOT_SIDE)
        assert len(top.faces) + len(side.faces) == len(piece.mesh.faces)
        assert len(top.visual.uv) == len(top.vertices)

    def test_release(self, disc_config, fortunes):
        piece = build_slices(disc_config, fortunes, 0)[0]
        piece.release()
        assert piece.released
        with pytest.raises(RuntimeError):
            piece.placed_mesh()


class TestClampCoinIndex:

    def test_in_range_kept(self):
        assert clamp_coin_index(3, 8) == 3

    @pytest.mark.parametrize("coin_index", [-1, 8, 12])
    def test_out_of_range_reset(self, coin_index):
        assert clamp_coin_index(coin_index, 8) == 0
