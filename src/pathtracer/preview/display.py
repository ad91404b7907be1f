"""Display encoding and Matplotlib preview for rendered images.

Rendered buffers hold linear radiance. Before display or export each
channel is gamma encoded as x^(1/gamma), clamped to [0, 0.999] and
quantized as floor(256 * x), which keeps every value inside [0, 255].

Example:
    >>> from pathtracer.preview.display import image_to_uint8, show_preview
    >>> pixels = image_to_uint8(image, gamma=2.0)
    >>> show_preview(image, title="Random spheres")
"""

from __future__ import annotations

import numpy as np
import numpy.typing as npt

# Upper clamp before quantization so floor(256 * x) never reaches 256
DISPLAY_MAX = 0.999

# Default display gamma
DEFAULT_GAMMA = 2.0


def apply_gamma(
    image: npt.NDArray[np.floating],
    gamma: float = DEFAULT_GAMMA,
) -> npt.NDArray[np.float64]:
    """Apply gamma encoding for display.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma value. 2.0 takes the square root of each channel.

    Returns:
        Gamma encoded float64 image. Negative inputs map to 0.

    Raises:
        ValueError: If gamma is not positive.
    """
    if not gamma > 0.0:
        raise ValueError(f"gamma must be positive, got {gamma}")

    # Negative values would give NaN under a fractional power
    result = np.maximum(np.asarray(image, dtype=np.float64), 0.0)
    if gamma != 1.0:
        result = np.power(result, 1.0 / gamma)
    return result


def clamp_for_display(image: npt.NDArray[np.floating]) -> npt.NDArray[np.float64]:
    """Clamp every channel to [0, DISPLAY_MAX]."""
    return np.clip(np.asarray(image, dtype=np.float64), 0.0, DISPLAY_MAX)


def process_image_for_display(
    image: npt.NDArray[np.floating],
    gamma: float = DEFAULT_GAMMA,
) -> npt.NDArray[np.float64]:
    """Gamma encode and clamp a linear image.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma correction value.

    Returns:
        Display-ready float64 image in [0, DISPLAY_MAX].
    """
    return clamp_for_display(apply_gamma(image, gamma))


def image_to_uint8(
    image: npt.NDArray[np.floating],
    gamma: float = DEFAULT_GAMMA,
) -> npt.NDArray[np.uint8]:
    """Convert a linear image to 8-bit RGB.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma correction value.

    Returns:
        uint8 array of shape (H, W, 3) holding floor(256 * clamp(x^(1/gamma))).
    """
    processed = process_image_for_display(image, gamma)
    return np.floor(256.0 * processed).astype(np.uint8)


def show_preview(
    image: npt.NDArray[np.floating],
    *,
    gamma: float = DEFAULT_GAMMA,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 6),
    block: bool = True,
) -> None:
    """Display a linear image as a Matplotlib figure.

    Args:
        image: Linear image array of shape (H, W, 3), row 0 at the top.
        gamma: Gamma correction value.
        title: Figure title.
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until the figure is closed.
    """
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(process_image_for_display(image, gamma))
    ax.axis("off")
    if title is not None:
        ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)
