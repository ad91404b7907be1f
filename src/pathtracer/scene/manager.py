"""Scene aggregate: primitives, the shared material table and intersection.

A Scene owns preallocated structure-of-arrays Taichi fields for spheres,
triangles and materials. Materials are registered first and referenced by
a unified material_id; any number of primitives may share one id. The
scene is built on the host and read-only while kernels run.

Intersection is a linear scan over every primitive. The closest hit so
far shrinks the search interval, so a later primitive only replaces the
current hit when it is strictly closer.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.scene.manager import Scene
    >>> scene = Scene()
    >>> ground = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
    >>> scene.add_sphere(center=(0, -1000, 0), radius=1000, material_id=ground)
    >>> scene.add_dielectric_sphere(center=(0, 1, 0), radius=1.0, ior=1.5)
"""

import logging
from dataclasses import dataclass
from typing import Any

import taichi as ti

from pathtracer.core.ray import Ray, vec3
from pathtracer.geometry.hit_record import HitRecord, make_miss_record
from pathtracer.geometry.sphere import Sphere, hit_sphere
from pathtracer.geometry.triangle import Triangle, hit_triangle
from pathtracer.materials import (
    MaterialType,
    scatter_dielectric,
    scatter_lambertian,
    scatter_metal,
    validate_albedo,
    validate_ior,
    validate_metal,
)

logger = logging.getLogger(__name__)

# Default capacities
MAX_SPHERES = 1024
MAX_TRIANGLES = 8192
MAX_MATERIALS = 1024

Vec3Tuple = tuple[float, float, float]


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material ID.
        material_type: The type of material (Lambertian, Metal, Dielectric).
        params: The material parameters as provided during creation.
    """

    material_id: int
    material_type: MaterialType
    params: dict[str, Any]


@dataclass
class SphereInfo:
    """Host-side record of a sphere in the scene."""

    sphere_index: int
    center: Vec3Tuple
    radius: float
    material_id: int


@dataclass
class TriangleInfo:
    """Host-side record of a triangle in the scene."""

    triangle_index: int
    a: Vec3Tuple
    b: Vec3Tuple
    c: Vec3Tuple
    material_id: int


def _as_vec3_tuple(value, name: str) -> Vec3Tuple:
    """Convert a 3-sequence into a tuple of floats."""
    if len(value) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(value)}")
    return (float(value[0]), float(value[1]), float(value[2]))


@ti.data_oriented
class Scene:
    """Collection of primitives and materials used by the renderer.

    Attributes:
        materials: MaterialInfo for every registered material, by id.
        spheres: SphereInfo for every sphere, in insertion order.
        triangles: TriangleInfo for every triangle, in insertion order.

    Example:
        >>> scene = Scene()
        >>> red = scene.add_lambertian_material(albedo=(0.8, 0.1, 0.1))
        >>> gold = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
        >>> scene.add_sphere((0, 0, -1), 0.5, red)
        >>> scene.add_sphere((1, 0, -1), 0.5, gold)
    """

    def __init__(
        self,
        max_spheres: int = MAX_SPHERES,
        max_triangles: int = MAX_TRIANGLES,
        max_materials: int = MAX_MATERIALS,
    ) -> None:
        """Allocate an empty scene.

        Args:
            max_spheres: Sphere capacity.
            max_triangles: Triangle capacity.
            max_materials: Material table capacity.

        Raises:
            ValueError: If any capacity is not positive.
        """
        for name, capacity in (
            ("max_spheres", max_spheres),
            ("max_triangles", max_triangles),
            ("max_materials", max_materials),
        ):
            if capacity <= 0:
                raise ValueError(f"{name} must be positive, got {capacity}")

        self.max_spheres = max_spheres
        self.max_triangles = max_triangles
        self.max_materials = max_materials

        # Sphere storage (Structure of Arrays)
        self.sphere_centers = ti.Vector.field(3, dtype=ti.f64, shape=max_spheres)
        self.sphere_radii = ti.field(dtype=ti.f64, shape=max_spheres)
        self.sphere_material_ids = ti.field(dtype=ti.i32, shape=max_spheres)
        self.num_spheres = ti.field(dtype=ti.i32, shape=())

        # Triangle storage
        self.triangle_a = ti.Vector.field(3, dtype=ti.f64, shape=max_triangles)
        self.triangle_b = ti.Vector.field(3, dtype=ti.f64, shape=max_triangles)
        self.triangle_c = ti.Vector.field(3, dtype=ti.f64, shape=max_triangles)
        self.triangle_material_ids = ti.field(dtype=ti.i32, shape=max_triangles)
        self.num_triangles = ti.field(dtype=ti.i32, shape=())

        # Material table: one row per material id, unused columns stay zero
        self.material_types = ti.field(dtype=ti.i32, shape=max_materials)
        self.material_albedos = ti.Vector.field(3, dtype=ti.f64, shape=max_materials)
        self.material_fuzz = ti.field(dtype=ti.f64, shape=max_materials)
        self.material_ior = ti.field(dtype=ti.f64, shape=max_materials)
        self.num_materials = ti.field(dtype=ti.i32, shape=())

        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self.triangles: list[TriangleInfo] = []

    def clear(self) -> None:
        """Remove all primitives and materials.

        Field data is not zeroed; it is overwritten as new entries are added.
        """
        self.num_spheres[None] = 0
        self.num_triangles[None] = 0
        self.num_materials[None] = 0
        self.materials.clear()
        self.spheres.clear()
        self.triangles.clear()

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register_material(
        self,
        material_type: MaterialType,
        params: dict[str, Any],
        albedo: Vec3Tuple = (0.0, 0.0, 0.0),
        fuzz: float = 0.0,
        ior: float = 1.0,
    ) -> int:
        material_id = self.num_materials[None]
        if material_id >= self.max_materials:
            raise RuntimeError(f"Maximum number of materials ({self.max_materials}) exceeded")

        self.material_types[material_id] = int(material_type)
        self.material_albedos[material_id] = albedo
        self.material_fuzz[material_id] = fuzz
        self.material_ior[material_id] = ior
        self.num_materials[None] = material_id + 1

        self.materials.append(
            MaterialInfo(material_id=material_id, material_type=material_type, params=params)
        )
        return material_id

    def add_lambertian_material(self, albedo: Vec3Tuple) -> int:
        """Add a Lambertian (diffuse) material.

        Args:
            albedo: The diffuse reflectance color as (R, G, B), each in [0, 1].

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1].
        """
        albedo = _as_vec3_tuple(albedo, "albedo")
        validate_albedo(albedo)
        return self._register_material(
            MaterialType.LAMBERTIAN, {"albedo": albedo}, albedo=albedo
        )

    def add_metal_material(self, albedo: Vec3Tuple, fuzz: float = 0.0) -> int:
        """Add a metal (specular reflective) material.

        Args:
            albedo: The reflective color as (R, G, B), each in [0, 1].
            fuzz: Reflection perturbation in [0, 1]. Default is 0 (mirror).

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component or fuzz is outside [0, 1].
        """
        albedo = _as_vec3_tuple(albedo, "albedo")
        fuzz = float(fuzz)
        validate_metal(albedo, fuzz)
        return self._register_material(
            MaterialType.METAL, {"albedo": albedo, "fuzz": fuzz}, albedo=albedo, fuzz=fuzz
        )

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Add a dielectric (glass/water) material.

        Args:
            ior: Index of refraction. Default is 1.5 (typical glass).
                Common values: Water=1.33, Glass=1.5, Diamond=2.4

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If ior is not positive.
        """
        ior = float(ior)
        validate_ior(ior)
        return self._register_material(MaterialType.DIELECTRIC, {"ior": ior}, ior=ior)

    def get_material_count(self) -> int:
        """Get the total number of materials in the scene."""
        return int(self.num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by ID.

        Returns:
            MaterialInfo for the material, or None if not found.
        """
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def _check_material_id(self, material_id: int) -> None:
        if material_id < 0 or material_id >= self.num_materials[None]:
            raise ValueError(f"Invalid material_id: {material_id}")

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def add_sphere(self, center: Vec3Tuple, radius: float, material_id: int) -> int:
        """Add a sphere to the scene.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere (must be positive).
            material_id: A material ID returned by an add_*_material call.

        Returns:
            The index of the added sphere.

        Raises:
            RuntimeError: If the maximum number of spheres is exceeded.
            ValueError: If the radius is not positive or material_id is invalid.
        """
        center = _as_vec3_tuple(center, "center")
        radius = float(radius)
        if not radius > 0.0:
            raise ValueError(f"Sphere radius must be positive, got {radius}")
        self._check_material_id(material_id)

        idx = self.num_spheres[None]
        if idx >= self.max_spheres:
            raise RuntimeError(f"Maximum number of spheres ({self.max_spheres}) exceeded")

        self.sphere_centers[idx] = center
        self.sphere_radii[idx] = radius
        self.sphere_material_ids[idx] = material_id
        self.num_spheres[None] = idx + 1

        self.spheres.append(
            SphereInfo(sphere_index=idx, center=center, radius=radius, material_id=material_id)
        )
        return idx

    def add_triangle(self, a: Vec3Tuple, b: Vec3Tuple, c: Vec3Tuple, material_id: int) -> int:
        """Add a triangle to the scene.

        Zero-area triangles are accepted but never intersect.

        Args:
            a: First vertex as (x, y, z).
            b: Second vertex.
            c: Third vertex.
            material_id: A material ID returned by an add_*_material call.

        Returns:
            The index of the added triangle.

        Raises:
            RuntimeError: If the maximum number of triangles is exceeded.
            ValueError: If material_id is invalid.
        """
        a = _as_vec3_tuple(a, "a")
        b = _as_vec3_tuple(b, "b")
        c = _as_vec3_tuple(c, "c")
        self._check_material_id(material_id)

        idx = self.num_triangles[None]
        if idx >= self.max_triangles:
            raise RuntimeError(f"Maximum number of triangles ({self.max_triangles}) exceeded")

        self.triangle_a[idx] = a
        self.triangle_b[idx] = b
        self.triangle_c[idx] = c
        self.triangle_material_ids[idx] = material_id
        self.num_triangles[None] = idx + 1

        self.triangles.append(
            TriangleInfo(triangle_index=idx, a=a, b=b, c=c, material_id=material_id)
        )
        return idx

    # =========================================================================
    # Convenience Methods (add object with material in one call)
    # =========================================================================

    def add_lambertian_sphere(
        self, center: Vec3Tuple, radius: float, albedo: Vec3Tuple
    ) -> tuple[int, int]:
        """Add a sphere with a new Lambertian material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_lambertian_material(albedo)
        return self.add_sphere(center, radius, material_id), material_id

    def add_metal_sphere(
        self, center: Vec3Tuple, radius: float, albedo: Vec3Tuple, fuzz: float = 0.0
    ) -> tuple[int, int]:
        """Add a sphere with a new metal material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_metal_material(albedo, fuzz)
        return self.add_sphere(center, radius, material_id), material_id

    def add_dielectric_sphere(
        self, center: Vec3Tuple, radius: float, ior: float = 1.5
    ) -> tuple[int, int]:
        """Add a sphere with a new dielectric material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_dielectric_material(ior)
        return self.add_sphere(center, radius, material_id), material_id

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return int(self.num_spheres[None])

    def get_triangle_count(self) -> int:
        """Get the number of triangles in the scene."""
        return int(self.num_triangles[None])

    def get_primitive_count(self) -> int:
        """Get the total number of primitives in the scene."""
        return self.get_sphere_count() + self.get_triangle_count()

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization).

        Returns:
            A dict with "materials", "spheres" and "triangles" lists.
            Primitives reference materials by their index in "materials".
        """
        materials = []
        for mat in self.materials:
            entry: dict[str, Any] = {"type": mat.material_type.name.lower()}
            for key, value in mat.params.items():
                entry[key] = list(value) if isinstance(value, tuple) else value
            materials.append(entry)

        spheres = [
            {
                "center": list(s.center),
                "radius": s.radius,
                "material_id": s.material_id,
            }
            for s in self.spheres
        ]
        triangles = [
            {
                "vertices": [list(t.a), list(t.b), list(t.c)],
                "material_id": t.material_id,
            }
            for t in self.triangles
        ]
        return {"materials": materials, "spheres": spheres, "triangles": triangles}

    @classmethod
    def from_dict(cls, data: dict[str, Any], **capacities: int) -> "Scene":
        """Build a scene from a dictionary produced by to_dict().

        Args:
            data: The scene description.
            **capacities: Optional max_spheres / max_triangles /
                max_materials overrides.

        Returns:
            A new Scene.

        Raises:
            ValueError: If the description contains an unknown material
                type, a malformed entry, or an invalid parameter.
        """
        scene = cls(**capacities)

        for index, mat_config in enumerate(data.get("materials", [])):
            mat_type = str(mat_config.get("type", "")).lower()
            if mat_type == "lambertian":
                scene.add_lambertian_material(mat_config.get("albedo", [0.5, 0.5, 0.5]))
            elif mat_type == "metal":
                scene.add_metal_material(
                    mat_config.get("albedo", [0.8, 0.8, 0.8]),
                    mat_config.get("fuzz", 0.0),
                )
            elif mat_type == "dielectric":
                scene.add_dielectric_material(mat_config.get("ior", 1.5))
            else:
                raise ValueError(f"Unknown material type at index {index}: {mat_type!r}")

        for sphere_config in data.get("spheres", []):
            try:
                center = sphere_config["center"]
                radius = sphere_config["radius"]
            except KeyError as e:
                raise ValueError(f"Sphere entry missing field {e}: {sphere_config}") from e
            scene.add_sphere(center, radius, int(sphere_config.get("material_id", 0)))

        for triangle_config in data.get("triangles", []):
            vertices = triangle_config.get("vertices")
            if vertices is None or len(vertices) != 3:
                raise ValueError(f"Triangle entry needs 3 vertices: {triangle_config}")
            scene.add_triangle(
                vertices[0],
                vertices[1],
                vertices[2],
                int(triangle_config.get("material_id", 0)),
            )

        logger.debug(
            "Loaded scene: %d materials, %d spheres, %d triangles",
            scene.get_material_count(),
            scene.get_sphere_count(),
            scene.get_triangle_count(),
        )
        return scene

    # =========================================================================
    # Kernel-side Queries
    # =========================================================================

    @ti.func
    def hit(self, ray: Ray, t_min: ti.f64, t_max: ti.f64) -> HitRecord:
        """Find the nearest intersection of a ray with any primitive.

        Args:
            ray: The ray to test.
            t_min: Lower bound (exclusive) for a valid hit.
            t_max: Upper bound (exclusive) for a valid hit.

        Returns:
            The HitRecord of the closest primitive, or a miss record.
        """
        closest_so_far = t_max
        result = make_miss_record()

        for i in range(self.num_spheres[None]):
            sphere = Sphere(
                center=self.sphere_centers[i],
                radius=self.sphere_radii[i],
                material_id=self.sphere_material_ids[i],
            )
            rec = hit_sphere(ray, sphere, t_min, closest_so_far)
            if rec.hit == 1:
                closest_so_far = rec.t
                result = rec

        for i in range(self.num_triangles[None]):
            triangle = Triangle(
                a=self.triangle_a[i],
                b=self.triangle_b[i],
                c=self.triangle_c[i],
                material_id=self.triangle_material_ids[i],
            )
            rec = hit_triangle(ray, triangle, t_min, closest_so_far)
            if rec.hit == 1:
                closest_so_far = rec.t
                result = rec

        return result

    @ti.func
    def scatter(self, ray: Ray, rec: HitRecord, state: ti.u32):
        """Dispatch to the scatter function of the hit surface's material.

        Args:
            ray: The incoming ray.
            rec: The hit record (hit == 1).
            state: Random stream state.

        Returns:
            A tuple of (scattered_direction, attenuation, did_scatter, state).
        """
        material_id = rec.material_id
        mat_type = self.material_types[material_id]

        scattered_direction = vec3(0.0, 0.0, 0.0)
        attenuation = vec3(0.0, 0.0, 0.0)
        did_scatter = 0
        s = state

        if mat_type == int(MaterialType.LAMBERTIAN):
            scattered_direction, attenuation, did_scatter, s = scatter_lambertian(
                self.material_albedos[material_id], rec.normal, s
            )
        elif mat_type == int(MaterialType.METAL):
            scattered_direction, attenuation, did_scatter, s = scatter_metal(
                self.material_albedos[material_id],
                self.material_fuzz[material_id],
                ray.direction,
                rec.normal,
                s,
            )
        elif mat_type == int(MaterialType.DIELECTRIC):
            scattered_direction, attenuation, did_scatter, s = scatter_dielectric(
                self.material_ior[material_id],
                ray.direction,
                rec.normal,
                rec.front_face,
                s,
            )

        return scattered_direction, attenuation, did_scatter, s
