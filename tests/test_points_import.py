"""Tests for points JSON import and atlas descriptor parsing."""

import json
import os
import random

import pytest

from nosgen.io.pivot import from_pivot_coords, to_pivot_coords
from nosgen.io.points_import import (
    AtlasImportError,
    build_groups_from_json,
    import_atlas,
    import_points_json,
    parse_animation,
    parse_atlas_entries,
    project_name_from_atlas,
    to_finite,
)
from nosgen.models import PivotMode, SpriteDirection


class TestPivot:
    """Tests for pivot-space conversion."""

    @pytest.mark.parametrize("mode", ["top-left", "bottom-left", "center"])
    def test_round_trip(self, mode):
        x, y = to_pivot_coords(7, 3, 20, 10, mode)
        assert from_pivot_coords(x, y, 20, 10, mode) == pytest.approx((7, 3))

    def test_center(self):
        assert to_pivot_coords(7, 3, 20, 10, PivotMode.CENTER) == (-3, -2)

    def test_bottom_left_flips_y(self):
        assert to_pivot_coords(7, 3, 20, 10, "bottom-left") == (7, 7)

    def test_unknown_mode_is_top_left(self):
        assert to_pivot_coords(7, 3, 20, 10, "middle") == (7, 3)


class TestImportAtlasFormat:
    """Tests for the frames-array payload."""

    def make_frames(self, frame_factory):
        return [frame_factory("a.png", 10, 20), frame_factory("b.png", 10, 20)]

    def test_points_matched_by_name_and_filename(self, frame_factory):
        payload = {
            "meta": {"pivot": "center", "spriteDirection": "counterclockwise", "scale": 2},
            "frames": [
                {"name": "a.png", "points": [{"name": "hand", "x": -5, "y": -10}]},
                {"filename": "b.png", "points": [{"name": "hand", "x": 0, "y": 0}]},
            ],
        }

        result = import_points_json(payload, self.make_frames(frame_factory), rng=random.Random(3))

        a, b = result.frames
        assert (a.points[0].x, a.points[0].y) == (0, 0)
        assert (b.points[0].x, b.points[0].y) == (5, 10)
        assert a.points[0].id == b.points[0].id
        assert a.points[0].color == b.points[0].color
        assert a.points[0].is_keyframe
        assert result.pivot_mode == PivotMode.CENTER
        assert result.sprite_direction == SpriteDirection.COUNTERCLOCKWISE
        assert result.export_size == 2.0

    def test_malformed_points_skipped(self, frame_factory):
        payload = {
            "frames": [
                {"name": "a.png", "points": [
                    {"name": "foot", "x": "bad", "y": 0},
                    "junk",
                    {"x": 1.6, "y": 1},
                    {"name": "knee"},
                ]},
            ],
        }

        result = import_points_json(payload, self.make_frames(frame_factory))

        points = result.frames[0].points
        assert [p.name for p in points] == ["point-3", "knee"]
        assert (points[0].x, points[0].y) == (2, 1)
        assert (points[1].x, points[1].y) == (0, 0)
        # unmatched frame keeps its points
        assert result.frames[1].points == []

    def test_points_clamped_into_frame(self, frame_factory):
        payload = {"frames": [{"name": "a.png", "points": [{"name": "p", "x": 99, "y": -4}]}]}

        result = import_points_json(payload, self.make_frames(frame_factory))

        assert (result.frames[0].points[0].x, result.frames[0].points[0].y) == (10, 0)

    def test_unknown_meta_values_absent(self, frame_factory):
        payload = {"meta": {"pivot": "middle", "spriteDirection": "up"}, "frames": []}

        result = import_points_json(payload, self.make_frames(frame_factory))

        assert result.pivot_mode is None
        assert result.sprite_direction is None

    def test_non_object_payload(self, frame_factory):
        frames = self.make_frames(frame_factory)
        result = import_points_json(["not", "an", "object"], frames)

        assert result.frames == frames


class TestImportLegacyFormat:
    """Tests for the name -> per-frame array payload."""

    def test_legacy_points(self, frame_factory):
        frames = [frame_factory(f"f{i}", 10, 10) for i in range(3)]
        payload = {
            "meta": {"pivot": "bottom-left"},
            "head": [[1, 2], None, [3, "x"]],
            "tail": [[4, 4]],
        }

        result = import_points_json(payload, frames)

        first, second, third = result.frames
        assert [p.name for p in first.points] == ["head", "tail"]
        assert (first.points[0].x, first.points[0].y) == (1, 8)
        assert first.points[0].is_keyframe
        assert (second.points[0].x, second.points[0].y) == (0, 0)
        assert not second.points[0].is_keyframe
        assert not third.points[0].is_keyframe
        assert not third.points[1].is_keyframe
        assert first.points[0].id == third.points[0].id

    def test_no_point_arrays(self, frame_factory):
        frames = [frame_factory("f0")]
        result = import_points_json({"meta": {}}, frames)

        assert result.frames == frames


class TestDescriptorParsing:

    def test_to_finite(self):
        assert to_finite("2.5") == 2.5
        assert to_finite(float("nan")) is None
        assert to_finite(float("inf")) is None
        assert to_finite(True) is None
        assert to_finite(None) is None

    def test_parse_entries(self):
        payload = {"frames": [
            {"name": "a", "x": 1, "y": 2, "w": 3, "h": 4},
            {"filename": "b", "width": 5, "height": 6},
            {"name": "zero", "w": 0, "h": 4},
            {"name": "nan", "w": "x", "h": 4},
            "junk",
        ]}

        entries = parse_atlas_entries(payload)

        assert [(e.name, e.x, e.y, e.w, e.h) for e in entries] == [
            ("a", 1, 2, 3, 4),
            ("b", 0, 0, 5, 6),
        ]

    def test_non_string_names_fall_back(self):
        payload = {"frames": [
            {"name": 7, "filename": "walk.png", "w": 1, "h": 1},
            {"name": "", "id": 12, "w": 1, "h": 1},
            {"name": None, "id": "f-1", "w": 1, "h": 1},
        ]}

        names = [entry.name for entry in parse_atlas_entries(payload)]

        assert names == ["walk.png", "frame", "f-1"]

    def test_groups_resolved_through_first_frame(self, frame_factory, point_factory):
        frames = [frame_factory("a", points=[point_factory("id-hand", 0, 0, name="hand")])]
        payload = {"groups": {"arm": [["hand", "nope"], "bad"]}}

        groups = build_groups_from_json(payload, frames)

        assert len(groups) == 1
        assert groups[0].name == "arm"
        assert groups[0].entries == [["id-hand"], []]

    def test_parse_animation(self, frame_factory):
        frames = [frame_factory("a"), frame_factory("b")]
        payload = {"animation": {"name": "run", "fps": 12.4, "speed": 1.5, "loop": False, "frames": ["b"]}}

        settings = parse_animation(payload, frames)

        assert settings.name == "run"
        assert settings.fps == 12
        assert settings.speed == 1.5
        assert settings.loop is False
        assert settings.frame_selection == {"id-a": False, "id-b": True}

    def test_parse_animation_fps_floor(self, frame_factory):
        assert parse_animation({"animation": {"fps": 0}}, []).fps == 1

    def test_parse_animation_empty(self):
        assert parse_animation({"animation": {"fps": "fast"}}, []) is None
        assert parse_animation({}, []) is None

    def test_project_name(self):
        assert project_name_from_atlas(os.path.join("out", "hero_atlas.png")) == "hero"
        assert project_name_from_atlas("sheet.png") == "sheet"


class TestImportAtlas:

    def test_no_entries_raises(self, temp_dir):
        json_path = os.path.join(temp_dir, "data.json")
        with open(json_path, "w", encoding="utf-8") as f:
            json.dump({"frames": [{"name": "a", "w": 0, "h": 0}]}, f)

        with pytest.raises(AtlasImportError):
            import_atlas(os.path.join(temp_dir, "missing.png"), json_path)

    def test_non_object_raises(self, temp_dir):
        json_path = os.path.join(temp_dir, "data.json")
        with open(json_path, "w", encoding="utf-8") as f:
            json.dump([1, 2, 3], f)

        with pytest.raises(AtlasImportError):
            import_atlas(os.path.join(temp_dir, "missing.png"), json_path)

    def test_numeric_frame_name_still_imports(self, temp_dir, png_writer):
        png_path = png_writer(os.path.join(temp_dir, "hero_atlas.png"), 20, 10)
        json_path = os.path.join(temp_dir, "hero_data.json")
        with open(json_path, "w", encoding="utf-8") as f:
            json.dump({"frames": [
                {"name": "ok", "x": 0, "y": 0, "w": 10, "h": 10},
                {"name": 7, "id": 3, "x": 10, "y": 0, "w": 10, "h": 10,
                 "points": [{"name": "hand", "x": 1, "y": 1}]},
            ]}, f)

        result = import_atlas(png_path, json_path)

        assert [frame.name for frame in result.frames] == ["ok", "frame"]
        assert result.frames[1].points == []
