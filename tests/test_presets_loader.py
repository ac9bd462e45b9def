"""
Tests for scene templates and built-in scenes.
"""

import json
import math

import pytest

from gravsim.constants import G
from gravsim.presets import BUILTIN_SCENES, load_scene, scene_figure_eight, scene_names
from gravsim.presets_loader import list_templates, load_template


def write_template(directory, file_name, data):
    path = directory / file_name
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestTemplates:
    def test_bundled_templates_listed(self):
        templates = dict(list_templates())
        assert templates["head_on.json"] == "Head-on pair"
        assert templates["sandbox.json"] == "Sandbox"
        assert templates["sun_earth_venus.json"] == "Sun, Earth & Venus"

    def test_load_bundled(self):
        bodies, name = load_template("head_on.json")
        assert name == "Head-on pair"
        assert [b.name for b in bodies] == ["A", "B"]
        assert bodies[0].position == (-2e6, 0.0)
        assert bodies[1].velocity == (-10.0, 0.0)
        assert all(b.current.t == 0.0 for b in bodies)

    def test_load_at_start_time(self):
        bodies, _ = load_template("head_on.json", t=500.0)
        assert all(b.current.t == 500.0 for b in bodies)

    def test_malformed_and_duplicate_bodies_skipped(self, tmp_path):
        body = {"name": "X", "mass": 1.0, "radius": 1.0, "position": [0, 0], "velocity": [0, 0]}
        write_template(tmp_path, "custom.json", {
            "name": "Custom",
            "bodies": [
                body,
                dict(body),
                {"name": "NoMass", "radius": 1.0, "position": [0, 0], "velocity": [0, 0]},
                {"name": "Short", "mass": 1.0, "radius": 1.0, "position": [0], "velocity": [0, 0]},
                dict(body, name="Y", position=[5, 5]),
            ],
        })
        bodies, name = load_template("custom.json", directory=str(tmp_path))
        assert name == "Custom"
        assert [b.name for b in bodies] == ["X", "Y"]

    def test_unreadable_template(self, tmp_path):
        (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
        assert list_templates(str(tmp_path)) == [("broken.json", "broken")]
        bodies, name = load_template("broken.json", directory=str(tmp_path))
        assert bodies == []
        assert name == "broken"

    def test_missing_directory(self, tmp_path):
        assert list_templates(str(tmp_path / "nope")) == []

    def test_non_json_files_ignored(self, tmp_path):
        (tmp_path / "notes.txt").write_text("hello", encoding="utf-8")
        assert list_templates(str(tmp_path)) == []


class TestScenes:
    def test_scene_names_include_templates_and_builtins(self):
        names = scene_names()
        assert "Sandbox" in names
        for builtin in BUILTIN_SCENES:
            assert builtin in names
        assert len(names) == len(set(names))

    def test_load_template_scene(self):
        assert [b.name for b in load_scene("Head-on pair")] == ["A", "B"]

    def test_load_builtin_scene(self):
        bodies = load_scene("Solar System (circular)")
        assert [b.name for b in bodies] == ["Sun", "Earth", "Moon", "Mars"]

    def test_unknown_scene(self):
        with pytest.raises(KeyError):
            load_scene("Nowhere")

    def test_figure_eight_has_zero_momentum(self):
        bodies = scene_figure_eight()
        px = sum(b.mass * b.velocity[0] for b in bodies)
        py = sum(b.mass * b.velocity[1] for b in bodies)
        scale = bodies[0].mass * math.sqrt(G * bodies[0].mass / 1.0e9)
        assert abs(px) < 1e-6 * scale
        assert abs(py) < 1e-6 * scale
