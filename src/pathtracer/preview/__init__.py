"""Preview module for output and visualization.

Components:
    display: Gamma encoding, clamping, 8-bit quantization, Matplotlib preview
    export: PPM, PNG and RGBA frame output
    interactive: Taichi GGUI window driving a progressive render

Example:
    >>> from pathtracer.preview import image_to_uint8, save_image
    >>> save_image(image_to_uint8(linear_image, gamma=2.0), "output.png")
"""

from pathtracer.preview.display import (
    apply_gamma,
    clamp_for_display,
    image_to_uint8,
    process_image_for_display,
    show_preview,
)
from pathtracer.preview.export import (
    compute_rmse,
    format_ppm,
    save_image,
    save_png,
    save_ppm,
    to_rgba_frame,
)
from pathtracer.preview.interactive import InteractivePreview

__all__ = [
    # Interactive preview
    "InteractivePreview",
    # Display encoding
    "apply_gamma",
    "clamp_for_display",
    "process_image_for_display",
    "image_to_uint8",
    "show_preview",
    # Export functions
    "format_ppm",
    "save_ppm",
    "save_png",
    "save_image",
    "to_rgba_frame",
    "compute_rmse",
]
