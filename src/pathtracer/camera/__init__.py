"""Camera models for primary ray generation.

Components:
    thin_lens: Look-at camera with thin-lens depth of field

Ray generation uses normalized image coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image
"""

from .thin_lens import Camera, CameraConfig, compute_camera_basis

__all__ = [
    "Camera",
    "CameraConfig",
    "compute_camera_basis",
]
