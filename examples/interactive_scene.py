#!/usr/bin/env python3
"""Interactive progressive render of a preset scene.

Opens a Taichi GGUI window and adds one sample per pixel each frame, so the
image refines while you watch. Rendering stops at --samples; press ESC or
close the window to exit.

Usage:
    python -m examples.interactive_scene [--scene random] [--width 600] [--height 400]
"""

from __future__ import annotations

import argparse
import logging
import sys

from pathtracer.config import ARCHES, init_taichi, setup_logging

logger = logging.getLogger("pathtracer.examples.interactive_scene")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Interactive progressive render.")
    parser.add_argument("--scene", choices=["random", "three-spheres"], default="random")
    parser.add_argument("--width", type=int, default=600)
    parser.add_argument("--height", type=int, default=400)
    parser.add_argument("--samples", type=int, default=500)
    parser.add_argument("--max-depth", type=int, default=12)
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--arch", choices=sorted(ARCHES), default="gpu")
    parser.add_argument("--export", type=str, default=None, help="Save the image on exit")
    parser.add_argument("--log-level", type=str, default=None)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the interactive renderer.

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    args = parse_args(argv)
    setup_logging(args.log_level)
    backend = init_taichi(args.arch, seed=args.seed)
    logger.info("Taichi backend: %s", backend)

    from pathtracer.camera.thin_lens import Camera
    from pathtracer.core.progressive import ProgressiveRenderer
    from pathtracer.preview.interactive import InteractivePreview
    from pathtracer.scene.presets import create_random_scene, create_three_spheres_scene

    if not InteractivePreview.is_display_available():
        logger.error("No display available; this script needs a graphical environment")
        return 1

    if args.scene == "three-spheres":
        scene, camera_config = create_three_spheres_scene()
    else:
        scene, camera_config = create_random_scene(seed=args.seed)
    camera = Camera.from_config(camera_config.with_aspect_ratio(args.width / args.height))

    renderer = ProgressiveRenderer(
        scene, camera, args.width, args.height, max_depth=args.max_depth, seed=args.seed
    )
    preview = InteractivePreview(args.width, args.height)

    try:
        samples = preview.run_progressive(renderer, args.samples, export_path=args.export)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        samples = renderer.sample_count
    finally:
        preview.close()

    logger.info("Preview closed after %d samples", samples)
    return 0


if __name__ == "__main__":
    sys.exit(main())
