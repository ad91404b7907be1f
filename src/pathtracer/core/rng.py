"""Explicit random streams for Taichi kernels.

Every sampling routine in the renderer takes a ``ti.u32`` stream state and
returns the advanced state alongside its result::

    x, state = random_f64(state)

Nothing draws from an implicit global generator, so a render is a pure
function of its inputs: tests can pin a stream, and each pixel task owns an
independent stream derived from its pixel and sample index with
``pixel_seed``.

The generator advances a 32-bit linear congruential state and permutes it
with the PCG RXS-M-XS output function before handing out values.
"""

import taichi as ti

# Numerical Recipes LCG constants (state transition)
LCG_MULTIPLIER = 1664525
LCG_INCREMENT = 1013904223

# PCG RXS-M-XS output permutation multiplier
PCG_OUTPUT_MULTIPLIER = 277803737

# 1 / 2^32, maps a u32 word into [0, 1)
INV_UINT32_RANGE = 1.0 / 4294967296.0


@ti.func
def _lcg_step(state: ti.u32) -> ti.u32:
    """Advance the raw generator state by one step."""
    return state * ti.u32(LCG_MULTIPLIER) + ti.u32(LCG_INCREMENT)


@ti.func
def _permute(state: ti.u32) -> ti.u32:
    """Apply the PCG RXS-M-XS output permutation to a state word."""
    word = ((state >> ((state >> ti.u32(28)) + ti.u32(4))) ^ state) * ti.u32(
        PCG_OUTPUT_MULTIPLIER
    )
    return (word >> ti.u32(22)) ^ word


@ti.func
def pcg_hash(value: ti.u32) -> ti.u32:
    """Hash a 32-bit value into a well-mixed 32-bit value.

    Used to derive stream seeds; consecutive inputs give unrelated outputs.

    Args:
        value: The value to hash.

    Returns:
        The hashed value.
    """
    return _permute(_lcg_step(value))


@ti.func
def pixel_seed(pixel_index: ti.i32, sample_index: ti.i32, base_seed: ti.u32) -> ti.u32:
    """Derive the stream state for one (pixel, sample) task.

    Args:
        pixel_index: Linear pixel index (row * width + column).
        sample_index: Index of the sample within the pixel.
        base_seed: Render-wide seed. The same seed reproduces a render.

    Returns:
        The initial stream state for the task.
    """
    h = pcg_hash(base_seed)
    h = pcg_hash(h ^ ti.cast(sample_index, ti.u32))
    return pcg_hash(h ^ ti.cast(pixel_index, ti.u32))


@ti.func
def random_f64(state: ti.u32):
    """Draw a uniform double in [0, 1).

    Args:
        state: Current stream state.

    Returns:
        A tuple (value, state) with the drawn value and the advanced state.
    """
    next_state = _lcg_step(state)
    value = ti.cast(_permute(next_state), ti.f64) * INV_UINT32_RANGE
    return value, next_state


@ti.func
def random_range(low: ti.f64, high: ti.f64, state: ti.u32):
    """Draw a uniform double in [low, high).

    Returns:
        A tuple (value, state).
    """
    x, next_state = random_f64(state)
    return low + (high - low) * x, next_state
