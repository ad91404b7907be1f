"""Thin-lens camera model with depth of field.

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The image plane sits focus_dist in front of the camera. Each primary ray
starts at a random point on a lens disk of radius aperture / 2 and passes
through the image-plane point for (s, t), so objects at focus_dist are
sharp and everything else blurs. With aperture == 0 the camera is a
pinhole and the lens sample is skipped.

Image coordinates are normalized:
    s in [0, 1]: left to right across the image
    t in [0, 1]: bottom to top across the image

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.camera.thin_lens import Camera, CameraConfig
    >>> config = CameraConfig(
    ...     lookfrom=(13.0, 2.0, 3.0),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     vfov=20.0,
    ...     aspect_ratio=3.0 / 2.0,
    ...     aperture=0.1,
    ...     focus_dist=10.0,
    ... )
    >>> camera = Camera.from_config(config)
    >>> origin, direction = camera.get_ray(0.5, 0.5)
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti

from pathtracer.core.ray import Ray, make_ray, random_in_unit_disk, vec3

# Below this length the cross product of vup and w counts as parallel
_PARALLEL_EPSILON = 1e-12


# =============================================================================
# Camera Configuration
# =============================================================================


@dataclass
class CameraConfig:
    """Configuration for a thin-lens camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation.
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter. 0 gives a pinhole camera.
        focus_dist: Distance from the camera to the plane in focus.
    """

    lookfrom: tuple[float, float, float] = (0.0, 0.0, 0.0)
    lookat: tuple[float, float, float] = (0.0, 0.0, -1.0)
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    vfov: float = 90.0
    aspect_ratio: float = 16.0 / 9.0
    aperture: float = 0.0
    focus_dist: float = 1.0

    def validate(self) -> None:
        """Check the configuration.

        Raises:
            ValueError: If any parameter is out of range, lookfrom equals
                lookat, or vup is parallel to the view direction.
        """
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"vfov must be in (0, 180) degrees, got {self.vfov}")
        if not self.aspect_ratio > 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if self.aperture < 0.0:
            raise ValueError(f"aperture must be non-negative, got {self.aperture}")
        if not self.focus_dist > 0.0:
            raise ValueError(f"focus_dist must be positive, got {self.focus_dist}")

        view = np.asarray(self.lookfrom, dtype=np.float64) - np.asarray(
            self.lookat, dtype=np.float64
        )
        if np.linalg.norm(view) == 0.0:
            raise ValueError("lookfrom and lookat must differ")
        side = np.cross(np.asarray(self.vup, dtype=np.float64), view)
        if np.linalg.norm(side) < _PARALLEL_EPSILON:
            raise ValueError(f"vup {self.vup} is parallel to the view direction")

    def with_aspect_ratio(self, aspect_ratio: float) -> "CameraConfig":
        """Return a copy of this configuration with a different aspect ratio."""
        return CameraConfig(
            lookfrom=self.lookfrom,
            lookat=self.lookat,
            vup=self.vup,
            vfov=self.vfov,
            aspect_ratio=aspect_ratio,
            aperture=self.aperture,
            focus_dist=self.focus_dist,
        )


def compute_camera_basis(config: CameraConfig) -> dict[str, np.ndarray]:
    """Compute the camera frame and viewport geometry on the host.

    Args:
        config: A validated camera configuration.

    Returns:
        Dictionary of float64 arrays: origin, u, v, w, horizontal,
        vertical, lower_left, plus the scalar lens_radius.
    """
    theta = math.radians(config.vfov)
    h = math.tan(theta / 2.0)
    viewport_height = 2.0 * h
    viewport_width = config.aspect_ratio * viewport_height

    lookfrom = np.asarray(config.lookfrom, dtype=np.float64)
    lookat = np.asarray(config.lookat, dtype=np.float64)
    vup = np.asarray(config.vup, dtype=np.float64)

    w = lookfrom - lookat
    w = w / np.linalg.norm(w)
    u = np.cross(vup, w)
    u = u / np.linalg.norm(u)
    v = np.cross(w, u)

    horizontal = config.focus_dist * viewport_width * u
    vertical = config.focus_dist * viewport_height * v
    lower_left = lookfrom - horizontal / 2.0 - vertical / 2.0 - config.focus_dist * w

    return {
        "origin": lookfrom,
        "u": u,
        "v": v,
        "w": w,
        "horizontal": horizontal,
        "vertical": vertical,
        "lower_left": lower_left,
        "lens_radius": np.float64(config.aperture / 2.0),
    }


# =============================================================================
# Camera
# =============================================================================


@ti.data_oriented
class Camera:
    """Thin-lens camera, immutable after construction.

    The frame is computed once on the host and stored in 0-d Taichi fields
    that kernels read through shoot_ray().
    """

    def __init__(
        self,
        lookfrom: tuple[float, float, float],
        lookat: tuple[float, float, float],
        vup: tuple[float, float, float],
        vfov: float,
        aspect_ratio: float,
        aperture: float = 0.0,
        focus_dist: float = 1.0,
    ) -> None:
        """Build the camera frame.

        Args:
            lookfrom: Camera position.
            lookat: Point the camera looks at.
            vup: Up direction.
            vfov: Vertical field of view in degrees.
            aspect_ratio: Image width / height.
            aperture: Lens diameter (0 for a pinhole).
            focus_dist: Distance to the plane in focus.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = CameraConfig(
            lookfrom=tuple(lookfrom),
            lookat=tuple(lookat),
            vup=tuple(vup),
            vfov=vfov,
            aspect_ratio=aspect_ratio,
            aperture=aperture,
            focus_dist=focus_dist,
        )
        self.config.validate()
        basis = compute_camera_basis(self.config)

        self._origin = ti.Vector.field(3, dtype=ti.f64, shape=())
        self._u = ti.Vector.field(3, dtype=ti.f64, shape=())
        self._v = ti.Vector.field(3, dtype=ti.f64, shape=())
        self._w = ti.Vector.field(3, dtype=ti.f64, shape=())
        self._horizontal = ti.Vector.field(3, dtype=ti.f64, shape=())
        self._vertical = ti.Vector.field(3, dtype=ti.f64, shape=())
        self._lower_left = ti.Vector.field(3, dtype=ti.f64, shape=())
        self._lens_radius = ti.field(dtype=ti.f64, shape=())

        self._origin[None] = basis["origin"].tolist()
        self._u[None] = basis["u"].tolist()
        self._v[None] = basis["v"].tolist()
        self._w[None] = basis["w"].tolist()
        self._horizontal[None] = basis["horizontal"].tolist()
        self._vertical[None] = basis["vertical"].tolist()
        self._lower_left[None] = basis["lower_left"].tolist()
        self._lens_radius[None] = float(basis["lens_radius"])

        # Output slots for get_ray()
        self._single_origin = ti.Vector.field(3, dtype=ti.f64, shape=())
        self._single_direction = ti.Vector.field(3, dtype=ti.f64, shape=())

    @classmethod
    def from_config(cls, config: CameraConfig) -> "Camera":
        """Create a camera from a CameraConfig."""
        return cls(
            lookfrom=config.lookfrom,
            lookat=config.lookat,
            vup=config.vup,
            vfov=config.vfov,
            aspect_ratio=config.aspect_ratio,
            aperture=config.aperture,
            focus_dist=config.focus_dist,
        )

    @property
    def aspect_ratio(self) -> float:
        return self.config.aspect_ratio

    @ti.func
    def shoot_ray(self, s: ti.f64, t: ti.f64, state: ti.u32):
        """Generate a primary ray through normalized image coordinates.

        Args:
            s: Horizontal coordinate in [0, 1] (left to right).
            t: Vertical coordinate in [0, 1] (bottom to top).
            state: Random stream state.

        Returns:
            A tuple (ray, state). The direction is not normalized.
        """
        offset = vec3(0.0, 0.0, 0.0)
        next_state = state
        lens_radius = self._lens_radius[None]
        if lens_radius > 0.0:
            rd, next_state = random_in_unit_disk(state)
            rd = lens_radius * rd
            offset = self._u[None] * rd.x + self._v[None] * rd.y

        origin = self._origin[None] + offset
        target = self._lower_left[None] + s * self._horizontal[None] + t * self._vertical[None]
        ray = make_ray(origin, target - origin)
        return ray, next_state

    @ti.kernel
    def _single_ray(self, s: ti.f64, t: ti.f64, seed: ti.u32):
        ray, _ = self.shoot_ray(s, t, seed)
        self._single_origin[None] = ray.origin
        self._single_direction[None] = ray.direction

    def get_ray(self, s: float, t: float, seed: int = 0) -> tuple[np.ndarray, np.ndarray]:
        """Generate a single primary ray from Python, for inspection.

        Args:
            s: Horizontal image coordinate in [0, 1].
            t: Vertical image coordinate in [0, 1].
            seed: Random stream state for the lens sample.

        Returns:
            Tuple of (origin, direction) as float64 arrays.
        """
        self._single_ray(s, t, seed)
        return self._single_origin.to_numpy(), self._single_direction.to_numpy()

    def get_camera_info(self) -> dict[str, tuple[float, float, float] | float]:
        """Get the camera frame for debugging.

        Returns:
            Dictionary with origin, u, v, w, horizontal, vertical,
            lower_left and lens_radius.
        """

        def _as_tuple(field: ti.MatrixField) -> tuple[float, float, float]:
            value = field[None]
            return (float(value[0]), float(value[1]), float(value[2]))

        return {
            "origin": _as_tuple(self._origin),
            "u": _as_tuple(self._u),
            "v": _as_tuple(self._v),
            "w": _as_tuple(self._w),
            "horizontal": _as_tuple(self._horizontal),
            "vertical": _as_tuple(self._vertical),
            "lower_left": _as_tuple(self._lower_left),
            "lens_radius": float(self._lens_radius[None]),
        }
