"""Unit tests for the OBJ / MTL / JSON scene loaders."""

import json

import numpy as np
import pytest


def write(path, text):
    path.write_text(text)
    return path


class TestLoadObj:
    """Tests for load_obj."""

    def test_triangle_and_quad(self, tmp_path, empty_scene):
        """Test a quad is split into a fan of two triangles."""
        from pathtracer.scene import load_obj

        obj = write(
            tmp_path / "quad.obj",
            "# a unit quad\n"
            "v 0 0 0\nv 1 0 0\nv 1 1 0\nv 0 1 0\n"
            "f 1 2 3 4\n",
        )
        mat = empty_scene.add_lambertian_material((0.5, 0.5, 0.5))
        assert load_obj(obj, empty_scene, material_id=mat) == 2
        assert empty_scene.get_triangle_count() == 2
        first, second = empty_scene.triangles
        assert (first.a, first.b, first.c) == ((0, 0, 0), (1, 0, 0), (1, 1, 0))
        assert (second.a, second.b, second.c) == ((0, 0, 0), (1, 1, 0), (0, 1, 0))
        assert first.material_id == mat

    def test_slashes_and_negative_indices(self, tmp_path, empty_scene):
        """Test v/vt/vn references and relative negative indices."""
        from pathtracer.scene import load_obj

        obj = write(
            tmp_path / "tri.obj",
            "v 0 0 0\nv 2 0 0\nv 0 2 0\n"
            "vt 0 0\nvn 0 0 1\n"
            "f 1/1/1 2//1 -1\n",
        )
        assert load_obj(obj, empty_scene) == 1
        tri = empty_scene.triangles[0]
        assert tri.c == (0.0, 2.0, 0.0)

    def test_default_material_is_green(self, tmp_path, empty_scene):
        """Test faces without a material get one shared green Lambertian."""
        from pathtracer.materials import MaterialType
        from pathtracer.scene import load_obj

        obj = write(tmp_path / "two.obj", "v 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 2 3\nf 3 2 1\n")
        load_obj(obj, empty_scene)
        assert empty_scene.get_material_count() == 1
        info = empty_scene.get_material_info(0)
        assert info.material_type == MaterialType.LAMBERTIAN
        assert info.params["albedo"] == (0.0, 1.0, 0.0)

    @pytest.mark.parametrize(
        "face",
        ["f 1 2\n", "f 0 1 2\n", "f 1 2 9\n", "f 1 2 x\n"],
    )
    def test_bad_faces(self, tmp_path, empty_scene, face):
        """Test malformed faces raise ValueError naming the line."""
        from pathtracer.scene import load_obj

        obj = write(tmp_path / "bad.obj", "v 0 0 0\nv 1 0 0\nv 0 1 0\n" + face)
        with pytest.raises(ValueError, match=":4:"):
            load_obj(obj, empty_scene)

    def test_bad_vertex(self, tmp_path, empty_scene):
        """Test a vertex with too few coordinates raises ValueError."""
        from pathtracer.scene import load_obj

        obj = write(tmp_path / "bad.obj", "v 0 0\n")
        with pytest.raises(ValueError):
            load_obj(obj, empty_scene)

    def test_missing_file(self, tmp_path, empty_scene):
        """Test a missing file raises FileNotFoundError."""
        from pathtracer.scene import load_obj

        with pytest.raises(FileNotFoundError):
            load_obj(tmp_path / "nope.obj", empty_scene)

    def test_usemtl(self, tmp_path, empty_scene):
        """Test faces pick up the material named by usemtl."""
        from pathtracer.materials import MaterialType
        from pathtracer.scene import load_obj

        write(
            tmp_path / "lib.mtl",
            "newmtl glass\nNi 1.5\n"
            "newmtl chrome\nKa 0.9 0.9 0.9\nNs 0.1\n",
        )
        obj = write(
            tmp_path / "scene.obj",
            "mtllib lib.mtl\n"
            "v 0 0 0\nv 1 0 0\nv 0 1 0\n"
            "usemtl chrome\nf 1 2 3\n"
            "usemtl glass\nf 3 2 1\n",
        )
        load_obj(obj, empty_scene)
        first, second = empty_scene.triangles
        assert empty_scene.get_material_info(first.material_id).material_type == MaterialType.METAL
        assert (
            empty_scene.get_material_info(second.material_id).material_type
            == MaterialType.DIELECTRIC
        )


class TestLoadMtl:
    """Tests for load_mtl."""

    def test_material_kinds(self, tmp_path, empty_scene):
        """Test Ni, Ka+Kd and Ka+Ns select dielectric, Lambertian and metal."""
        from pathtracer.materials import MaterialType
        from pathtracer.scene import load_mtl

        mtl = write(
            tmp_path / "m.mtl",
            "newmtl water\nNi 1.33\n"
            "newmtl paint\nKa 0.5 1 1\nKd 0.8 0.4 0.2\n"
            "newmtl brushed\nKa 0.7 0.6 0.5\nNs 25\n"
            "newmtl empty\n",
        )
        materials = load_mtl(mtl, empty_scene)
        assert set(materials) == {"water", "paint", "brushed"}

        water = empty_scene.get_material_info(materials["water"])
        assert water.material_type == MaterialType.DIELECTRIC
        assert water.params["ior"] == 1.33

        paint = empty_scene.get_material_info(materials["paint"])
        assert paint.material_type == MaterialType.LAMBERTIAN
        np.testing.assert_allclose(paint.params["albedo"], (0.4, 0.4, 0.2))

        brushed = empty_scene.get_material_info(materials["brushed"])
        assert brushed.material_type == MaterialType.METAL
        assert brushed.params["fuzz"] == 1.0

    def test_parameter_before_newmtl(self, tmp_path, empty_scene):
        """Test a parameter outside any material raises ValueError."""
        from pathtracer.scene import load_mtl

        mtl = write(tmp_path / "m.mtl", "Kd 1 1 1\n")
        with pytest.raises(ValueError):
            load_mtl(mtl, empty_scene)


class TestSceneJson:
    """Tests for load_scene_json / save_scene_json."""

    def test_save_and_load(self, tmp_path, three_spheres):
        """Test a saved scene and camera load back unchanged."""
        from pathtracer.camera import CameraConfig
        from pathtracer.scene import load_scene_json, save_scene_json

        scene, _ = three_spheres
        config = CameraConfig(lookfrom=(1.0, 2.0, 3.0), vfov=40.0, aperture=0.1, focus_dist=3.0)
        path = tmp_path / "scene.json"
        save_scene_json(scene, path, camera_config=config)

        loaded, loaded_config = load_scene_json(path)
        assert loaded.to_dict() == scene.to_dict()
        assert loaded_config == config

    def test_without_camera(self, tmp_path):
        """Test a file without a camera entry returns None for the camera."""
        from pathtracer.scene import load_scene_json

        path = tmp_path / "scene.json"
        path.write_text(
            json.dumps(
                {
                    "materials": [{"type": "lambertian", "albedo": [0.5, 0.5, 0.5]}],
                    "spheres": [{"center": [0, 0, -1], "radius": 0.5, "material_id": 0}],
                }
            )
        )
        scene, config = load_scene_json(path)
        assert config is None
        assert scene.get_sphere_count() == 1
        assert scene.get_triangle_count() == 0

    def test_invalid_json(self, tmp_path):
        """Test malformed JSON raises ValueError."""
        from pathtracer.scene import load_scene_json

        path = tmp_path / "scene.json"
        path.write_text("{not json")
        with pytest.raises(ValueError):
            load_scene_json(path)

    def test_bad_camera(self, tmp_path):
        """Test an unknown camera key raises ValueError."""
        from pathtracer.scene import load_scene_json

        path = tmp_path / "scene.json"
        path.write_text(json.dumps({"camera": {"zoom": 2}}))
        with pytest.raises(ValueError):
            load_scene_json(path)

    def test_missing_file(self, tmp_path):
        """Test a missing file raises FileNotFoundError."""
        from pathtracer.scene import load_scene_json

        with pytest.raises(FileNotFoundError):
            load_scene_json(tmp_path / "nope.json")
