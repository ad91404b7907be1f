"""Unit tests for the progressive renderer."""

import numpy as np
import pytest


@pytest.fixture
def renderer(three_spheres):
    from pathtracer.core.progressive import ProgressiveRenderer

    scene, camera = three_spheres
    return ProgressiveRenderer(scene, camera, 8, 6, max_depth=5, seed=3)


class TestProgressiveRenderer:
    """Tests for ProgressiveRenderer."""

    def test_initial_state(self, renderer):
        """Test a fresh renderer has no samples and a black image."""
        assert renderer.sample_count == 0
        assert renderer.width == 8
        assert renderer.height == 6
        image = renderer.get_image_numpy()
        assert image.shape == (6, 8, 3)
        assert np.all(image == 0.0)

    def test_matches_single_shot_render(self, renderer, three_spheres):
        """Test N single-sample passes equal one render with N samples."""
        from pathtracer.core.render import render

        scene, camera = three_spheres
        renderer.render(4, batch_size=1)
        expected = render(scene, camera, 8, 6, samples_per_pixel=4, max_depth=5, seed=3)
        np.testing.assert_allclose(renderer.get_image_numpy(), expected, rtol=0.0, atol=1e-13)

    def test_batched_matches_closely(self, renderer, three_spheres):
        """Test batching changes only the summation order."""
        from pathtracer.core.render import render

        scene, camera = three_spheres
        renderer.render(4, batch_size=3)
        expected = render(scene, camera, 8, 6, samples_per_pixel=4, max_depth=5, seed=3)
        np.testing.assert_allclose(renderer.get_image_numpy(), expected, atol=1e-12)

    def test_progress_callback(self, renderer):
        """Test the callback sees each batch boundary."""
        calls = []
        renderer.render(5, batch_size=2, callback=lambda cur, tgt: calls.append((cur, tgt)))
        assert calls == [(2, 5), (4, 5), (5, 5)]
        assert renderer.sample_count == 5

    def test_render_progressive_continues(self, renderer):
        """Test a second call continues from the current count."""
        renderer.render(2)
        progress = list(renderer.render_progressive(2, batch_size=1))
        assert progress == [(3, 4), (4, 4)]

    def test_invalid_batch_size(self, renderer):
        """Test a non-positive batch size raises ValueError."""
        with pytest.raises(ValueError):
            list(renderer.render_progressive(2, batch_size=0))

    def test_reset(self, renderer):
        """Test reset clears the sum and count."""
        renderer.render(2)
        renderer.reset()
        assert renderer.sample_count == 0
        assert np.all(renderer.get_image_numpy() == 0.0)

    def test_uint8_and_gamma(self, renderer):
        """Test the 8-bit and gamma encoded outputs."""
        renderer.render(1)
        encoded = renderer.get_image_numpy(gamma=2.0)
        assert encoded.max() <= 0.999
        image = renderer.get_image_uint8()
        assert image.dtype == np.uint8
        assert image.shape == (6, 8, 3)

    def test_save_image(self, renderer, tmp_path):
        """Test save_image writes PNG and PPM files."""
        renderer.render(1)
        renderer.save_image(str(tmp_path / "out.png"))
        renderer.save_image(str(tmp_path / "out.ppm"))
        assert (tmp_path / "out.png").stat().st_size > 0
        assert (tmp_path / "out.ppm").read_text().startswith("P3\n8 6\n255\n")

    def test_invalid_dimensions(self, three_spheres):
        """Test invalid dimensions raise ValueError."""
        from pathtracer.core.progressive import ProgressiveRenderer

        scene, camera = three_spheres
        with pytest.raises(ValueError):
            ProgressiveRenderer(scene, camera, 0, 6)

    def test_repr(self, renderer):
        """Test the repr reports size and sample count."""
        assert repr(renderer) == "ProgressiveRenderer(width=8, height=6, samples=0)"
