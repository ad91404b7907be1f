#!/usr/bin/env python3
"""Render a scene to an image file.

Builds one of the preset scenes (or loads a JSON / OBJ scene), renders it
with the thin-lens camera and writes a PPM or PNG depending on the output
extension.

Usage:
    python -m examples.render_scene [options]

Options:
    --scene NAME        Preset scene: random or three-spheres (default: random)
    --scene-file PATH   Load a JSON scene instead of a preset
    --obj PATH          Load an OBJ mesh (viewed with the preset camera)
    --width WIDTH       Image width in pixels (default: 320)
    --height HEIGHT     Image height in pixels (default: 180)
    --samples SAMPLES   Samples per pixel (default: 10)
    --max-depth DEPTH   Bounce budget per path (default: 12)
    --seed SEED         Render seed (default: 0)
    --output OUTPUT     Output file path (default: image.ppm)
    --arch ARCH         Taichi backend (default: cpu)
    --progressive       Accumulate pass by pass with progress logging

Size, budget, gamma, seed and arch options override the matching
PATHTRACER_* environment variables, which override the built-in defaults.

Example:
    python -m examples.render_scene --width 640 --height 360 --samples 50 --output spheres.png
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

from pathtracer.config import ARCHES, RenderSettings, init_taichi, setup_logging

logger = logging.getLogger("pathtracer.examples.render_scene")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a scene to an image file.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        choices=["random", "three-spheres"],
        default="random",
        help="Preset scene (default: random)",
    )
    parser.add_argument("--scene-file", type=str, help="JSON scene description to load")
    parser.add_argument("--obj", type=str, help="Wavefront OBJ mesh to load")
    parser.add_argument("--width", type=int, default=None)
    parser.add_argument("--height", type=int, default=None)
    parser.add_argument("--samples", type=int, default=None)
    parser.add_argument("--max-depth", type=int, default=None)
    parser.add_argument("--gamma", type=float, default=None)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--scene-seed", type=int, default=None, help="Layout seed for --scene random")
    parser.add_argument("--output", type=str, default="image.ppm")
    parser.add_argument("--arch", choices=sorted(ARCHES), default=None)
    parser.add_argument("--batch-size", type=int, default=10)
    parser.add_argument("--progressive", action="store_true")
    parser.add_argument("--log-level", type=str, default=None)
    return parser.parse_args(argv)


def build_scene(args: argparse.Namespace):
    """Create the scene and camera config selected on the command line."""
    from pathtracer.scene.loader import load_obj, load_scene_json
    from pathtracer.scene.presets import create_random_scene, create_three_spheres_scene

    if args.scene_file:
        scene, camera_config = load_scene_json(args.scene_file)
        if camera_config is None:
            _, camera_config = create_three_spheres_scene()
    elif args.scene == "three-spheres":
        scene, camera_config = create_three_spheres_scene()
    else:
        scene, camera_config = create_random_scene(seed=args.scene_seed)

    if args.obj:
        load_obj(args.obj, scene)

    return scene, camera_config


def render_scene(settings: RenderSettings, args: argparse.Namespace) -> Path:
    """Render the selected scene and save it.

    Returns:
        Path to the saved image file.
    """
    from pathtracer.camera.thin_lens import Camera
    from pathtracer.core.progressive import ProgressiveRenderer
    from pathtracer.core.render import render
    from pathtracer.preview.display import image_to_uint8
    from pathtracer.preview.export import save_image

    scene, camera_config = build_scene(args)
    camera = Camera.from_config(camera_config.with_aspect_ratio(settings.aspect_ratio))

    start_time = time.perf_counter()
    if args.progressive:
        renderer = ProgressiveRenderer(
            scene,
            camera,
            settings.width,
            settings.height,
            max_depth=settings.max_depth,
            seed=settings.seed,
        )

        def progress_callback(current: int, target: int) -> None:
            elapsed = time.perf_counter() - start_time
            logger.info(
                "Progress: %d/%d samples (%.1f%%) - %.1f spp/s",
                current,
                target,
                100.0 * current / target,
                current / elapsed if elapsed > 0 else 0.0,
            )

        renderer.render(settings.samples_per_pixel, args.batch_size, progress_callback)
        image = renderer.get_image_numpy()
    else:
        image = render(
            scene,
            camera,
            settings.width,
            settings.height,
            settings.samples_per_pixel,
            settings.max_depth,
            seed=settings.seed,
        )

    output_file = Path(args.output)
    save_image(image_to_uint8(image, gamma=settings.gamma), output_file)
    logger.info("Saved %s in %.2fs", output_file.absolute(), time.perf_counter() - start_time)
    return output_file


def settings_from_args(args: argparse.Namespace) -> RenderSettings:
    """Defaults, then PATHTRACER_* variables, then explicit command-line values."""
    return RenderSettings.from_env().with_overrides(
        width=args.width,
        height=args.height,
        samples_per_pixel=args.samples,
        max_depth=args.max_depth,
        gamma=args.gamma,
        seed=args.seed,
        arch=args.arch,
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        settings = settings_from_args(args)
    except ValueError as e:
        logger.error("%s", e)
        return 2

    init_taichi(settings.arch, seed=settings.seed)

    try:
        render_scene(settings, args)
        return 0
    except (OSError, ValueError, RuntimeError) as e:
        logger.error("Render failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
