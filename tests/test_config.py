"""Unit tests for settings, backend selection and logging setup."""

import logging

import pytest


class TestRenderSettings:
    """Tests for RenderSettings."""

    def test_defaults(self):
        """Test the default settings validate and give a 16:9 image."""
        from pathtracer.config import RenderSettings

        settings = RenderSettings()
        settings.validate()
        assert (settings.width, settings.height) == (320, 180)
        assert settings.aspect_ratio == pytest.approx(16.0 / 9.0)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"width": 0},
            {"samples_per_pixel": 0},
            {"max_depth": -1},
            {"gamma": 0.0},
            {"arch": "tpu"},
        ],
    )
    def test_invalid(self, overrides):
        """Test each out-of-range setting raises ValueError."""
        from pathtracer.config import RenderSettings

        with pytest.raises(ValueError):
            RenderSettings(**overrides).validate()

    def test_from_env(self, monkeypatch):
        """Test PATHTRACER_* variables override the base settings."""
        from pathtracer.config import RenderSettings

        monkeypatch.setenv("PATHTRACER_WIDTH", "64")
        monkeypatch.setenv("PATHTRACER_SAMPLES", "3")
        monkeypatch.setenv("PATHTRACER_GAMMA", "2.2")
        monkeypatch.setenv("PATHTRACER_ARCH", "vulkan")

        settings = RenderSettings.from_env(RenderSettings(height=48))
        assert settings.width == 64
        assert settings.height == 48
        assert settings.samples_per_pixel == 3
        assert settings.gamma == pytest.approx(2.2)
        assert settings.arch == "vulkan"

    def test_from_env_bad_value(self, monkeypatch):
        """Test an unparsable variable raises ValueError naming it."""
        from pathtracer.config import RenderSettings

        monkeypatch.setenv("PATHTRACER_MAX_DEPTH", "deep")
        with pytest.raises(ValueError, match="PATHTRACER_MAX_DEPTH"):
            RenderSettings.from_env()

    def test_explicit_values_beat_environment(self, monkeypatch):
        """Test overrides applied after from_env win over PATHTRACER_* values."""
        from pathtracer.config import RenderSettings

        monkeypatch.setenv("PATHTRACER_WIDTH", "64")
        monkeypatch.setenv("PATHTRACER_SEED", "7")

        settings = RenderSettings.from_env().with_overrides(width=100, seed=None, height=None)
        assert settings.width == 100
        assert settings.seed == 7
        assert settings.height == 180

    def test_overrides_are_validated(self):
        """Test an out-of-range override raises ValueError."""
        from pathtracer.config import RenderSettings

        with pytest.raises(ValueError):
            RenderSettings().with_overrides(samples_per_pixel=0)


class TestInitTaichi:
    """Tests for init_taichi argument checking."""

    def test_unknown_arch(self):
        """Test an unknown backend name is rejected before touching Taichi."""
        from pathtracer.config import init_taichi

        with pytest.raises(ValueError):
            init_taichi("abacus")


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_level_and_single_handler(self):
        """Test repeated calls replace the handler and set the level."""
        from pathtracer.config import setup_logging

        logger = setup_logging("DEBUG")
        logger = setup_logging("WARNING")
        tagged = [h for h in logger.handlers if getattr(h, "_pathtracer_handler", False)]
        assert len(tagged) == 1
        assert logger.level == logging.WARNING
        assert logger.name == "pathtracer"

    def test_level_from_env(self, monkeypatch):
        """Test PATHTRACER_LOG_LEVEL is used when no level is given."""
        from pathtracer.config import setup_logging

        monkeypatch.setenv("PATHTRACER_LOG_LEVEL", "error")
        assert setup_logging().level == logging.ERROR

    def test_child_logger_records_reach_handler(self, capsys):
        """Test INFO records from a pathtracer.* script logger are printed."""
        from pathtracer.config import setup_logging

        setup_logging("INFO")
        logging.getLogger("pathtracer.examples.render_scene").info("rendered 4 rows")
        assert "rendered 4 rows" in capsys.readouterr().err
