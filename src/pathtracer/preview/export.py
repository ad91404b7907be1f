"""Image export utilities for rendered images.

Supported formats:
    - Plain-text PPM (P3), written directly
    - PNG and any other format Pillow can write

Every writer takes an 8-bit (H, W, 3) array with row 0 at the top, as
produced by pathtracer.preview.display.image_to_uint8(). Write failures
propagate as OSError naming the path.

Example:
    >>> from pathtracer.preview.display import image_to_uint8
    >>> from pathtracer.preview.export import save_image
    >>> save_image(image_to_uint8(linear_image), "spheres.ppm")
"""

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)


def _check_rgb_uint8(image: npt.NDArray[np.uint8]) -> None:
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) image, got shape {image.shape}")
    if image.dtype != np.uint8:
        raise ValueError(f"Expected a uint8 image, got dtype {image.dtype}")


def format_ppm(image: npt.NDArray[np.uint8]) -> str:
    """Encode an 8-bit image as plain-text PPM.

    The header is "P3", the width and height, and the maximum value 255,
    each on its own line. One "r g b" line per pixel follows, rows top to
    bottom and columns left to right.

    Args:
        image: uint8 array of shape (H, W, 3).

    Returns:
        The PPM text, ending with a newline.

    Raises:
        ValueError: If the image is not (H, W, 3) uint8.
    """
    _check_rgb_uint8(image)
    height, width, _ = image.shape
    lines = ["P3", f"{width} {height}", "255"]
    lines.extend(f"{r} {g} {b}" for r, g, b in image.reshape(-1, 3).tolist())
    return "\n".join(lines) + "\n"


def save_ppm(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Write an 8-bit image as plain-text PPM.

    Raises:
        OSError: If the file cannot be written.
    """
    text = format_ppm(image)
    path = Path(filepath)
    try:
        path.write_text(text, encoding="ascii")
    except OSError as e:
        raise OSError(f"Failed to write PPM image to {path}: {e}") from e
    logger.info("Wrote %s", path)


def save_png(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Write an 8-bit image through Pillow (format chosen by extension).

    Raises:
        OSError: If the file cannot be written.
    """
    _check_rgb_uint8(image)
    path = Path(filepath)
    pil_image = PILImage.fromarray(np.ascontiguousarray(image))
    try:
        pil_image.save(path)
    except OSError as e:
        raise OSError(f"Failed to write image to {path}: {e}") from e
    logger.info("Wrote %s", path)


def save_image(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Write an 8-bit image, choosing PPM or Pillow by file extension."""
    if Path(filepath).suffix.lower() == ".ppm":
        save_ppm(image, filepath)
    else:
        save_png(image, filepath)


def to_rgba_frame(image: npt.NDArray[np.uint8]) -> npt.NDArray[np.uint8]:
    """Expand an 8-bit RGB image into an opaque RGBA frame.

    Args:
        image: uint8 array of shape (H, W, 3).

    Returns:
        uint8 array of shape (H, W, 4) with alpha 255.
    """
    _check_rgb_uint8(image)
    height, width, _ = image.shape
    frame = np.full((height, width, 4), 255, dtype=np.uint8)
    frame[:, :, :3] = image
    return frame


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
