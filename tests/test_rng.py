"""Unit tests for the explicit random streams.

Tests cover:
- Uniform draws stay in [0, 1) and look uniform
- Streams are reproducible from their state
- pixel_seed decorrelates pixels and samples
"""

import numpy as np
import taichi as ti


class TestRandomF64:
    """Tests for random_f64 and random_range."""

    def test_values_in_unit_interval(self):
        """Test every draw lies in [0, 1) with a plausible mean."""
        from pathtracer.core.rng import random_f64

        n = 4096
        values = ti.field(dtype=ti.f64, shape=n)

        @ti.kernel
        def test_kernel():
            for _ in range(1):
                state = ti.u32(12345)
                for i in range(n):
                    x, state = random_f64(state)
                    values[i] = x

        test_kernel()
        arr = values.to_numpy()
        assert arr.min() >= 0.0
        assert arr.max() < 1.0
        assert abs(arr.mean() - 0.5) < 0.03

    def test_same_state_same_sequence(self):
        """Test two streams started from the same state agree."""
        from pathtracer.core.rng import random_f64

        first = ti.field(dtype=ti.f64, shape=8)
        second = ti.field(dtype=ti.f64, shape=8)

        @ti.kernel
        def test_kernel():
            for _ in range(1):
                a = ti.u32(99)
                b = ti.u32(99)
                for i in range(8):
                    x, a = random_f64(a)
                    y, b = random_f64(b)
                    first[i] = x
                    second[i] = y

        test_kernel()
        np.testing.assert_array_equal(first.to_numpy(), second.to_numpy())

    def test_state_advances(self):
        """Test consecutive draws from one stream differ."""
        from pathtracer.core.rng import random_f64

        values = ti.field(dtype=ti.f64, shape=2)

        @ti.kernel
        def test_kernel():
            state = ti.u32(7)
            x, state = random_f64(state)
            y, state = random_f64(state)
            values[0] = x
            values[1] = y

        test_kernel()
        assert values[0] != values[1]

    def test_random_range_bounds(self):
        """Test random_range draws in [low, high)."""
        from pathtracer.core.rng import random_range

        n = 1024
        values = ti.field(dtype=ti.f64, shape=n)

        @ti.kernel
        def test_kernel():
            for _ in range(1):
                state = ti.u32(2024)
                for i in range(n):
                    x, state = random_range(-2.0, 3.0, state)
                    values[i] = x

        test_kernel()
        arr = values.to_numpy()
        assert arr.min() >= -2.0
        assert arr.max() < 3.0


class TestPixelSeed:
    """Tests for per-task stream derivation."""

    def test_deterministic(self):
        """Test the same (pixel, sample, seed) gives the same state."""
        from pathtracer.core.rng import pixel_seed

        seeds = ti.field(dtype=ti.u32, shape=2)

        @ti.kernel
        def test_kernel():
            seeds[0] = pixel_seed(17, 3, ti.u32(5))
            seeds[1] = pixel_seed(17, 3, ti.u32(5))

        test_kernel()
        assert seeds[0] == seeds[1]

    def test_distinct_tasks(self):
        """Test neighbouring pixels, samples and seeds get distinct states."""
        from pathtracer.core.rng import pixel_seed

        seeds = ti.field(dtype=ti.u32, shape=4)

        @ti.kernel
        def test_kernel():
            seeds[0] = pixel_seed(0, 0, ti.u32(0))
            seeds[1] = pixel_seed(1, 0, ti.u32(0))
            seeds[2] = pixel_seed(0, 1, ti.u32(0))
            seeds[3] = pixel_seed(0, 0, ti.u32(1))

        test_kernel()
        assert len(set(seeds.to_numpy().tolist())) == 4
