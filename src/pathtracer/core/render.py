"""Data-parallel per-pixel sampling driver.

Every pixel is an independent task: for each sample it jitters a position
inside the pixel, asks the camera for a ray, traces it and sums the
radiance. Each (pixel, sample) pair draws from its own random stream
derived by pixel_seed(), so a render is a pure function of scene, camera,
resolution and seed.

The Taichi accumulation buffer is indexed (i, j) with i = column and
j = 0 at the bottom. render() returns the conventional (height, width, 3)
layout with row 0 at the top.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.camera.thin_lens import Camera
    >>> from pathtracer.core.render import render
    >>> from pathtracer.scene.presets import create_three_spheres_scene
    >>> scene, camera_config = create_three_spheres_scene()
    >>> camera = Camera.from_config(camera_config.with_aspect_ratio(2.0))
    >>> image = render(scene, camera, 200, 100, samples_per_pixel=16, max_depth=10)
    >>> image.shape
    (100, 200, 3)
"""

import logging
import time

import numpy as np
import numpy.typing as npt
import taichi as ti

from pathtracer.core.integrator import trace_path
from pathtracer.core.ray import vec3
from pathtracer.core.rng import pixel_seed, random_f64

logger = logging.getLogger(__name__)


def validate_render_args(width: int, height: int, samples_per_pixel: int, max_depth: int) -> None:
    """Check render dimensions and budgets.

    Raises:
        ValueError: If width, height or samples_per_pixel is not positive,
            or max_depth is negative.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if samples_per_pixel <= 0:
        raise ValueError(f"samples_per_pixel must be positive, got {samples_per_pixel}")
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")


@ti.kernel
def accumulate_samples(
    scene: ti.template(),
    camera: ti.template(),
    accum: ti.types.ndarray(dtype=vec3, ndim=2),
    samples_per_pixel: ti.i32,
    first_sample: ti.i32,
    max_depth: ti.i32,
    seed: ti.u32,
):
    """Add radiance samples into a per-pixel running sum.

    Samples first_sample .. first_sample + samples_per_pixel - 1 are
    traced for every pixel, so successive calls extend the same sequence
    of sample indices.

    Args:
        scene: The Scene.
        camera: The Camera.
        accum: (width, height) buffer of per-pixel sums, j = 0 at the bottom.
        samples_per_pixel: Number of samples to add per pixel.
        first_sample: Sample index of the first added sample.
        max_depth: Bounce budget per path.
        seed: Render-wide seed.
    """
    width = accum.shape[0]
    height = accum.shape[1]
    inv_width = 1.0 / ti.cast(width, ti.f64)
    inv_height = 1.0 / ti.cast(height, ti.f64)

    for i, j in ti.ndrange(width, height):
        # Linear index in top-to-bottom row order
        pixel_index = (height - 1 - j) * width + i
        color = vec3(0.0, 0.0, 0.0)

        for k in range(samples_per_pixel):
            state = pixel_seed(pixel_index, first_sample + k, seed)
            jitter_u, state = random_f64(state)
            jitter_v, state = random_f64(state)
            s = (ti.cast(i, ti.f64) + jitter_u) * inv_width
            t = (ti.cast(j, ti.f64) + jitter_v) * inv_height

            ray, state = camera.shoot_ray(s, t, state)
            radiance, state = trace_path(scene, ray, max_depth, state)
            color += radiance

        accum[i, j] += color


def buffer_to_image(accum: npt.NDArray[np.float64], sample_count: int) -> npt.NDArray[np.float64]:
    """Convert a (width, height, 3) sum buffer into a (height, width, 3) image.

    Args:
        accum: Per-pixel radiance sums, j = 0 at the bottom.
        sample_count: Number of samples summed into each pixel.

    Returns:
        Mean radiance with row 0 at the top of the image.
    """
    image = np.transpose(accum, (1, 0, 2))[::-1] / float(sample_count)
    return np.ascontiguousarray(image, dtype=np.float64)


def render(
    scene,
    camera,
    width: int,
    height: int,
    samples_per_pixel: int,
    max_depth: int,
    seed: int = 0,
) -> npt.NDArray[np.float64]:
    """Render an image.

    Args:
        scene: The Scene to render. Read-only during the call.
        camera: The Camera to render from.
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Samples averaged per pixel.
        max_depth: Bounce budget per path.
        seed: Render-wide seed. The same inputs and seed give an identical
            buffer.

    Returns:
        Linear radiance as a float64 array of shape (height, width, 3),
        row 0 at the top, columns left to right.

    Raises:
        ValueError: If any dimension or budget is out of range.
    """
    validate_render_args(width, height, samples_per_pixel, max_depth)

    logger.info(
        "Rendering %dx%d, %d spp, max depth %d, %d primitives",
        width,
        height,
        samples_per_pixel,
        max_depth,
        scene.get_primitive_count(),
    )
    start = time.perf_counter()

    accum = np.zeros((width, height, 3), dtype=np.float64)
    accumulate_samples(scene, camera, accum, samples_per_pixel, 0, max_depth, seed)
    ti.sync()

    logger.info("Render finished in %.2f s", time.perf_counter() - start)
    return buffer_to_image(accum, samples_per_pixel)
