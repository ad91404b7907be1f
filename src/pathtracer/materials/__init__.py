"""Material scattering models.

Components:
    lambertian: Ideal diffuse reflection
    metal: Specular reflection with optional fuzz
    dielectric: Refraction with Schlick-weighted reflection

Every scatter function takes the hit data and an explicit random stream
state and returns (scattered_direction, attenuation, did_scatter, state).
The scattered ray always starts at the hit point.
"""

from enum import IntEnum

from .dielectric import refraction_ratio, scatter_dielectric, validate_ior, will_reflect
from .lambertian import scatter_lambertian, validate_albedo
from .metal import scatter_metal, validate_metal


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Stored per material id in the scene and used for scatter dispatch.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


__all__ = [
    "MaterialType",
    "scatter_lambertian",
    "validate_albedo",
    "scatter_metal",
    "validate_metal",
    "scatter_dielectric",
    "refraction_ratio",
    "will_reflect",
    "validate_ior",
]
