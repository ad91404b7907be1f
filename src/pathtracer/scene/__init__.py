"""Scene representation, construction and loading.

Components:
    manager: The Scene aggregate (primitive and material storage,
        intersection, scatter dispatch, dict serialization)
    presets: Ready-made scenes with matching cameras
    loader: OBJ / MTL / JSON scene loaders

Scene data is organized for kernel access:
    - Structure-of-Arrays layout for geometric data
    - A single material table indexed by material id
"""

from .loader import load_mtl, load_obj, load_scene_json, save_scene_json
from .manager import (
    MAX_MATERIALS,
    MAX_SPHERES,
    MAX_TRIANGLES,
    MaterialInfo,
    Scene,
    SphereInfo,
    TriangleInfo,
)
from .presets import create_random_scene, create_three_spheres_scene, random_scene_camera

__all__ = [
    "Scene",
    "MaterialInfo",
    "SphereInfo",
    "TriangleInfo",
    "MAX_SPHERES",
    "MAX_TRIANGLES",
    "MAX_MATERIALS",
    "create_random_scene",
    "create_three_spheres_scene",
    "random_scene_camera",
    "load_obj",
    "load_mtl",
    "load_scene_json",
    "save_scene_json",
]
