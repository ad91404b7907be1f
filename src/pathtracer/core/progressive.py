"""Accumulating renderer that refines an image one sample pass at a time.

The renderer keeps a per-pixel running sum plus a sample count and
divides only when an image is requested. Pass k traces sample index k of
every pixel, so N passes produce the same image as
render(..., samples_per_pixel=N) with the same seed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.core.progressive import ProgressiveRenderer
    >>> renderer = ProgressiveRenderer(scene, camera, 400, 225, max_depth=50)
    >>> for done, target in renderer.render_progressive(64, batch_size=8):
    ...     logger.info("%d/%d", done, target)
    >>> linear = renderer.get_image_numpy()
"""

import logging
from collections.abc import Callable, Generator

import numpy as np
import numpy.typing as npt

from pathtracer.core.render import accumulate_samples, buffer_to_image, validate_render_args
from pathtracer.preview.display import image_to_uint8, process_image_for_display

logger = logging.getLogger(__name__)

# Called with (samples so far, samples requested)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """Per-pixel radiance sum over a growing number of sample passes.

    Attributes:
        scene: The Scene being rendered.
        camera: The Camera being rendered from.
        max_depth: Bounce budget per path.
        seed: Render-wide seed.
    """

    def __init__(
        self,
        scene,
        camera,
        width: int,
        height: int,
        max_depth: int = 50,
        seed: int = 0,
    ) -> None:
        """Allocate an empty sum buffer for a width x height image.

        Args:
            scene: The Scene to render.
            camera: The Camera to render from.
            width: Image width in pixels.
            height: Image height in pixels.
            max_depth: Bounce budget per path.
            seed: Render-wide seed.

        Raises:
            ValueError: If dimensions are not positive or max_depth is negative.
        """
        validate_render_args(width, height, 1, max_depth)
        self.scene = scene
        self.camera = camera
        self.max_depth = max_depth
        self.seed = seed
        self._width = width
        self._height = height
        self._accum = np.zeros((width, height, 3), dtype=np.float64)
        self._sample_count = 0

    @property
    def width(self) -> int:
        """Image width in pixels."""
        return self._width

    @property
    def height(self) -> int:
        """Image height in pixels."""
        return self._height

    @property
    def sample_count(self) -> int:
        """Samples summed into every pixel so far."""
        return self._sample_count

    def reset(self) -> None:
        """Clear the running sum and sample count."""
        self._accum.fill(0.0)
        self._sample_count = 0

    def _render_passes(self, passes: int) -> None:
        accumulate_samples(
            self.scene,
            self.camera,
            self._accum,
            passes,
            self._sample_count,
            self.max_depth,
            self.seed,
        )
        self._sample_count += passes

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Add num_samples passes, reporting after every batch.

        Sample indices continue from sample_count, so repeated calls keep
        extending the same sequence.

        Args:
            num_samples: Passes to add.
            batch_size: Passes traced per kernel launch.
            callback: Called as callback(sample_count, target) after each
                launch.
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Generator form of render(): yields after every kernel launch.

        Args:
            num_samples: Passes to add.
            batch_size: Passes traced per kernel launch.

        Yields:
            (sample_count, target) pairs.

        Raises:
            ValueError: If batch_size is not positive.
        """
        if num_samples <= 0:
            return
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        target_samples = self._sample_count + num_samples
        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            self._render_passes(batch)
            remaining -= batch
            logger.debug("Accumulated %d/%d samples", self._sample_count, target_samples)
            yield (self._sample_count, target_samples)

    def get_image_numpy(self, gamma: float = 1.0) -> npt.NDArray[np.float64]:
        """Get the current mean radiance as a NumPy array.

        Args:
            gamma: Gamma for display encoding. 1.0 returns linear radiance
                without clamping.

        Returns:
            Array of shape (height, width, 3), row 0 at the top. All zeros
            before the first pass.
        """
        if self._sample_count == 0:
            return np.zeros((self._height, self._width, 3), dtype=np.float64)
        image = buffer_to_image(self._accum, self._sample_count)
        if gamma != 1.0:
            image = process_image_for_display(image, gamma=gamma)
        return image

    def get_image_uint8(self, gamma: float = 2.0) -> npt.NDArray[np.uint8]:
        """Get the current image as 8-bit RGB, gamma encoded and quantized."""
        return image_to_uint8(self.get_image_numpy(), gamma=gamma)

    def save_image(self, filepath: str, gamma: float = 2.0) -> None:
        """Save the current image.

        The format follows the extension: .ppm writes plain-text PPM,
        anything else goes through Pillow.

        Args:
            filepath: Output path.
            gamma: Display gamma.
        """
        from pathtracer.preview.export import save_image

        save_image(self.get_image_uint8(gamma=gamma), filepath)

    def __repr__(self) -> str:
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count})"
        )
