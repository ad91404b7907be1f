"""Scene file loaders.

Supported inputs:
    - Wavefront OBJ meshes (``v`` and ``f`` records, polygon faces
      fan-triangulated, 1-based or negative indices, ``v/vt/vn`` tokens,
      ``mtllib`` / ``usemtl`` material switching)
    - Wavefront MTL material libraries (mapped onto the three material
      models, see load_mtl)
    - JSON scene descriptions in the Scene.to_dict() layout, optionally
      with a "camera" object holding CameraConfig fields

Example:
    >>> from pathtracer.scene.loader import load_obj
    >>> from pathtracer.scene.manager import Scene
    >>> scene = Scene()
    >>> white = scene.add_lambertian_material((0.73, 0.73, 0.73))
    >>> load_obj("teapot.obj", scene, material_id=white)
"""

import json
import logging
from pathlib import Path
from typing import Any

from pathtracer.camera.thin_lens import CameraConfig
from pathtracer.scene.manager import Scene

logger = logging.getLogger(__name__)

# Albedo of the material created when an OBJ names no material
DEFAULT_OBJ_ALBEDO = (0.0, 1.0, 0.0)


def _read_lines(path: Path) -> list[str]:
    if not path.is_file():
        raise FileNotFoundError(f"Scene file not found: {path}")
    return path.read_text(encoding="utf-8").splitlines()


def _parse_floats(values: list[str], count: int, path: Path, line_no: int) -> list[float]:
    if len(values) < count:
        raise ValueError(f"{path}:{line_no}: expected {count} numbers, got {len(values)}")
    try:
        return [float(v) for v in values[:count]]
    except ValueError as e:
        raise ValueError(f"{path}:{line_no}: {e}") from e


# =============================================================================
# MTL
# =============================================================================


def load_mtl(path: str | Path, scene: Scene) -> dict[str, int]:
    """Load a Wavefront MTL library into a scene.

    Each ``newmtl`` entry becomes one scene material:
        - an entry with ``Ni`` (optical density) is a dielectric with that ior
        - otherwise ``Ka`` and ``Kd`` give a Lambertian with albedo Kd * Ka
        - otherwise ``Ka`` and ``Ns`` give a metal with albedo Ka and fuzz
          Ns clamped to [0, 1]
    Entries matching none of these are skipped.

    Args:
        path: Path to the .mtl file.
        scene: Scene to register materials in.

    Returns:
        Mapping of material name to scene material id.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If a record is malformed or a parameter is invalid.
    """
    path = Path(path)
    entries: dict[str, dict[str, Any]] = {}
    current: dict[str, Any] | None = None

    for line_no, raw in enumerate(_read_lines(path), start=1):
        parts = raw.split("#", 1)[0].split()
        if not parts:
            continue
        keyword, values = parts[0], parts[1:]
        if keyword == "newmtl":
            if not values:
                raise ValueError(f"{path}:{line_no}: newmtl without a name")
            current = {}
            entries[" ".join(values)] = current
        elif keyword in ("Ka", "Kd"):
            if current is None:
                raise ValueError(f"{path}:{line_no}: {keyword} before newmtl")
            current[keyword] = tuple(_parse_floats(values, 3, path, line_no))
        elif keyword in ("Ns", "Ni"):
            if current is None:
                raise ValueError(f"{path}:{line_no}: {keyword} before newmtl")
            current[keyword] = _parse_floats(values, 1, path, line_no)[0]

    materials: dict[str, int] = {}
    for name, entry in entries.items():
        if "Ni" in entry:
            materials[name] = scene.add_dielectric_material(entry["Ni"])
        elif "Ka" in entry and "Kd" in entry:
            albedo = tuple(kd * ka for kd, ka in zip(entry["Kd"], entry["Ka"]))
            materials[name] = scene.add_lambertian_material(albedo)
        elif "Ka" in entry and "Ns" in entry:
            fuzz = min(max(entry["Ns"], 0.0), 1.0)
            materials[name] = scene.add_metal_material(entry["Ka"], fuzz)
        else:
            logger.warning("%s: material %r has no usable parameters, skipping", path, name)

    logger.debug("Loaded %d materials from %s", len(materials), path)
    return materials


# =============================================================================
# OBJ
# =============================================================================


def _resolve_index(token: str, vertex_count: int, path: Path, line_no: int) -> int:
    """Turn one face token (``i``, ``i/t``, ``i//n``, ``i/t/n``) into a 0-based index."""
    head = token.split("/", 1)[0]
    try:
        index = int(head)
    except ValueError as e:
        raise ValueError(f"{path}:{line_no}: bad vertex index {token!r}") from e

    if index > 0:
        resolved = index - 1
    elif index < 0:
        resolved = vertex_count + index
    else:
        raise ValueError(f"{path}:{line_no}: vertex index 0 is invalid")

    if not 0 <= resolved < vertex_count:
        raise ValueError(
            f"{path}:{line_no}: vertex index {index} out of range ({vertex_count} vertices)"
        )
    return resolved


def load_obj(path: str | Path, scene: Scene, material_id: int | None = None) -> int:
    """Load the triangles of a Wavefront OBJ file into a scene.

    Faces with more than three vertices are split into a fan around their
    first vertex. Faces use the material selected by the most recent
    ``usemtl`` from a ``mtllib`` library; before any ``usemtl`` (or for an
    unknown name) they use material_id.

    Args:
        path: Path to the .obj file.
        scene: Scene to add triangles to.
        material_id: Default material. None registers a green Lambertian
            the first time a face needs it.

    Returns:
        The number of triangles added.

    Raises:
        FileNotFoundError: If the file (or a referenced library) does not exist.
        ValueError: If a record is malformed; the message names the line.
        RuntimeError: If the scene's triangle capacity is exceeded.
    """
    path = Path(path)
    lines = _read_lines(path)

    vertices: list[tuple[float, float, float]] = []
    library: dict[str, int] = {}
    default_material = material_id
    current_material = material_id
    added = 0

    for line_no, raw in enumerate(lines, start=1):
        parts = raw.split("#", 1)[0].split()
        if not parts:
            continue
        keyword, values = parts[0], parts[1:]

        if keyword == "v":
            x, y, z = _parse_floats(values, 3, path, line_no)
            vertices.append((x, y, z))
        elif keyword == "f":
            if len(values) < 3:
                raise ValueError(f"{path}:{line_no}: face needs at least 3 vertices")
            indices = [_resolve_index(v, len(vertices), path, line_no) for v in values]

            if current_material is None:
                if default_material is None:
                    default_material = scene.add_lambertian_material(DEFAULT_OBJ_ALBEDO)
                current_material = default_material

            root = vertices[indices[0]]
            for i in range(1, len(indices) - 1):
                scene.add_triangle(
                    root, vertices[indices[i]], vertices[indices[i + 1]], current_material
                )
                added += 1
        elif keyword == "mtllib":
            for name in values:
                library.update(load_mtl(path.parent / name, scene))
        elif keyword == "usemtl":
            name = " ".join(values)
            if name in library:
                current_material = library[name]
            else:
                logger.warning("%s:%d: unknown material %r, using default", path, line_no, name)
                current_material = default_material

    logger.info("Loaded %d triangles (%d vertices) from %s", added, len(vertices), path)
    return added


# =============================================================================
# JSON
# =============================================================================


def load_scene_json(path: str | Path) -> tuple[Scene, CameraConfig | None]:
    """Load a JSON scene description.

    Args:
        path: Path to a JSON file in the Scene.to_dict() layout. An
            optional "camera" object holds CameraConfig keyword arguments.

    Returns:
        Tuple of (scene, camera_config); camera_config is None when the
        file has no "camera" entry.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the JSON is malformed or describes an invalid scene.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Scene file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"{path}: invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be an object")

    scene = Scene.from_dict(data)

    camera_config = None
    if "camera" in data:
        camera_data = dict(data["camera"])
        for key in ("lookfrom", "lookat", "vup"):
            if key in camera_data:
                camera_data[key] = tuple(camera_data[key])
        try:
            camera_config = CameraConfig(**camera_data)
        except TypeError as e:
            raise ValueError(f"{path}: bad camera entry: {e}") from e
        camera_config.validate()

    logger.info("Loaded scene %s (%d primitives)", path, scene.get_primitive_count())
    return scene, camera_config


def save_scene_json(
    scene: Scene,
    path: str | Path,
    camera_config: CameraConfig | None = None,
) -> None:
    """Write a scene (and optionally its camera) as JSON.

    Raises:
        OSError: If the file cannot be written.
    """
    data = scene.to_dict()
    if camera_config is not None:
        data["camera"] = {
            "lookfrom": list(camera_config.lookfrom),
            "lookat": list(camera_config.lookat),
            "vup": list(camera_config.vup),
            "vfov": camera_config.vfov,
            "aspect_ratio": camera_config.aspect_ratio,
            "aperture": camera_config.aperture,
            "focus_dist": camera_config.focus_dist,
        }
    Path(path).write_text(json.dumps(data, indent=2), encoding="utf-8")
