"""Process-level configuration: render settings, Taichi setup and logging.

Render settings come from code or command-line arguments and can be
overlaid with environment variables:

    PATHTRACER_WIDTH, PATHTRACER_HEIGHT, PATHTRACER_SAMPLES,
    PATHTRACER_MAX_DEPTH, PATHTRACER_GAMMA, PATHTRACER_SEED,
    PATHTRACER_ARCH, PATHTRACER_LOG_LEVEL

Example:
    >>> from pathtracer.config import RenderSettings, init_taichi, setup_logging
    >>> setup_logging()
    >>> settings = RenderSettings.from_env()
    >>> init_taichi(settings.arch, seed=settings.seed)
"""

import dataclasses
import logging
import os
from dataclasses import dataclass

import taichi as ti

logger = logging.getLogger(__name__)

ENV_PREFIX = "PATHTRACER_"
LOG_LEVEL_ENV = ENV_PREFIX + "LOG_LEVEL"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Backend names accepted by init_taichi
ARCHES = {
    "cpu": ti.cpu,
    "gpu": ti.gpu,
    "cuda": ti.cuda,
    "vulkan": ti.vulkan,
    "metal": ti.metal,
}


@dataclass
class RenderSettings:
    """Settings for a single render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Samples averaged per pixel.
        max_depth: Bounce budget per path.
        gamma: Display gamma used when encoding output.
        seed: Render-wide random seed.
        arch: Taichi backend name (see ARCHES).
    """

    width: int = 320
    height: int = 180
    samples_per_pixel: int = 10
    max_depth: int = 12
    gamma: float = 2.0
    seed: int = 0
    arch: str = "cpu"

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    def validate(self) -> None:
        """Check the settings.

        Raises:
            ValueError: If a dimension, budget or gamma is out of range, or
                the backend name is unknown.
        """
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {self.width}x{self.height}")
        if self.samples_per_pixel <= 0:
            raise ValueError(f"samples_per_pixel must be positive, got {self.samples_per_pixel}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if not self.gamma > 0.0:
            raise ValueError(f"gamma must be positive, got {self.gamma}")
        if self.arch not in ARCHES:
            raise ValueError(f"Unknown arch {self.arch!r}; expected one of {sorted(ARCHES)}")

    @classmethod
    def from_env(cls, base: "RenderSettings | None" = None) -> "RenderSettings":
        """Overlay PATHTRACER_* environment variables on a settings object.

        Args:
            base: Settings to start from (defaults when None).

        Returns:
            A new, validated RenderSettings.

        Raises:
            ValueError: If a variable cannot be parsed or the result is invalid.
        """
        base = base if base is not None else cls()
        overrides = {}
        env_names = {
            "width": "WIDTH",
            "height": "HEIGHT",
            "samples_per_pixel": "SAMPLES",
            "max_depth": "MAX_DEPTH",
            "gamma": "GAMMA",
            "seed": "SEED",
            "arch": "ARCH",
        }
        for field in dataclasses.fields(cls):
            raw = os.environ.get(ENV_PREFIX + env_names[field.name])
            if raw is None:
                continue
            converter = type(getattr(base, field.name))
            try:
                overrides[field.name] = converter(raw)
            except ValueError as e:
                raise ValueError(
                    f"Invalid value for {ENV_PREFIX + env_names[field.name]}: {raw!r}"
                ) from e

        settings = dataclasses.replace(base, **overrides)
        settings.validate()
        return settings

    def with_overrides(self, **values) -> "RenderSettings":
        """Return a validated copy with the given fields replaced.

        None values are skipped, so unset command-line options leave the
        current value in place.
        """
        settings = dataclasses.replace(
            self, **{name: value for name, value in values.items() if value is not None}
        )
        settings.validate()
        return settings


def init_taichi(arch: str = "cpu", seed: int = 0, debug: bool = False) -> str:
    """Initialize Taichi for double-precision rendering.

    Args:
        arch: Backend name (see ARCHES).
        seed: Taichi's own random seed.
        debug: Enable Taichi debug mode (bounds checks).

    Returns:
        The name of the backend actually used.

    Raises:
        ValueError: If arch is not a known backend name.
    """
    if arch not in ARCHES:
        raise ValueError(f"Unknown arch {arch!r}; expected one of {sorted(ARCHES)}")

    try:
        ti.init(arch=ARCHES[arch], default_fp=ti.f64, random_seed=seed, debug=debug)
        logger.info("Taichi initialized on %s", arch)
        return arch
    except Exception:
        if arch == "cpu":
            raise
        logger.warning("Could not initialize Taichi on %s, falling back to cpu", arch, exc_info=True)

    ti.init(arch=ti.cpu, default_fp=ti.f64, random_seed=seed, debug=debug)
    logger.info("Taichi initialized on cpu")
    return "cpu"


def setup_logging(level: str | None = None) -> logging.Logger:
    """Configure the package logger.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL). Defaults
            to PATHTRACER_LOG_LEVEL, or INFO when that is unset.

    Returns:
        The "pathtracer" logger.
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, "INFO")

    package_logger = logging.getLogger("pathtracer")
    package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Replace the handler from an earlier call instead of stacking another
    for handler in list(package_logger.handlers):
        if getattr(handler, "_pathtracer_handler", False):
            package_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    console_handler._pathtracer_handler = True
    package_logger.addHandler(console_handler)

    return package_logger
