"""Tests for scene-to-source mapping."""

import pytest

from scenecast.models import Scene
from scenecast.scene_mapper import find_active_mapping, map_scenes


class TestMapScenes:
    def test_empty_scene_list(self):
        assert map_scenes([], 24.0) == []

    def test_even_split(self):
        scenes = [Scene(0, 3), Scene(3, 12)]
        m = map_scenes(scenes, 24.0)
        assert (m[0].video_start, m[0].video_end) == (0.0, 3.0)
        assert (m[1].video_start, m[1].video_end) == (12.0, 21.0)

    def test_even_split_capped_at_source_end(self):
        scenes = [Scene(0, 2), Scene(2, 10)]
        m = map_scenes(scenes, 10.0)
        assert m[1].video_start == 5.0
        assert m[1].video_end == 10.0

    def test_short_source_reused(self):
        scenes = [Scene(i * 4, i * 4 + 4) for i in range(4)]
        m = map_scenes(scenes, 2.0)
        assert [x.video_start for x in m] == [0.0, 0.5, 1.0, 1.5]
        assert all(x.video_end <= 2.0 for x in m)

    def test_explicit_range_verbatim(self):
        scenes = [Scene(0, 5, video_start=7.5, video_end=9.0), Scene(5, 10)]
        m = map_scenes(scenes, 20.0)
        assert (m[0].video_start, m[0].video_end) == (7.5, 9.0)
        assert m[1].video_start == 10.0

    def test_half_explicit_range_uses_even_split(self):
        m = map_scenes([Scene(0, 4, video_start=3.0)], 10.0)
        assert m[0].video_start == 0.0

    def test_output_times_and_indices(self):
        scenes = [Scene(0, 3), Scene(5, 8)]
        m = map_scenes(scenes, 12.0)
        assert [(x.output_start, x.output_end, x.scene_index) for x in m] == [
            (0, 3, 0), (5, 8, 1),
        ]
        assert m[1].scene is scenes[1]


class TestFindActiveMapping:
    def setup_method(self):
        self.mappings = map_scenes([Scene(0, 3), Scene(3, 12)], 24.0)

    def test_inside_scene(self):
        assert find_active_mapping(self.mappings, 1.0).scene_index == 0

    def test_boundary_belongs_to_next_scene(self):
        assert find_active_mapping(self.mappings, 3.0).scene_index == 1

    def test_outside_falls_back_to_first(self):
        assert find_active_mapping(self.mappings, 50.0).scene_index == 0

    def test_no_mappings(self):
        assert find_active_mapping([], 1.0) is None


class TestSourceTimeAt:
    def test_linear_interpolation(self):
        m = map_scenes([Scene(0, 3), Scene(3, 12)], 24.0)[1]
        assert m.source_time_at(3.0) == pytest.approx(12.0)
        assert m.source_time_at(7.5) == pytest.approx(16.5)
