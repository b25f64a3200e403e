#!/usr/bin/env python3
"""Render one of the preset sphere scenes to a PNG.

The image is rendered progressively on a background thread; this script
folds in the samples as they arrive and prints the pass count.

Usage:
    python examples/render_spheres.py [options]

Options:
    --preset NAME       ground, three_spheres or random (default: random)
    --width WIDTH       Image width in pixels (default: 400)
    --samples SAMPLES   Samples per pixel (default: 100)
    --depth DEPTH       Maximum bounces per path (default: 50)
    --seed SEED         Seed for the random scene and the device (default: 0)
    --arch ARCH         Taichi backend (default: cpu)
    --output OUTPUT     Output file path (default: <preset>.png)
    --quiet             Suppress progress output

Example:
    python examples/render_spheres.py --preset three_spheres --width 300 --samples 50
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

from PIL import Image

from weekend_tracer.config import SUPPORTED_ARCHS, RuntimeSettings, SamplingParams
from weekend_tracer.runtime import init_runtime

PRESET_NAMES = ("ground", "three_spheres", "random")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a preset sphere scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--preset", choices=PRESET_NAMES, default="random", help="Scene to render")
    parser.add_argument("--width", type=int, default=400, help="Image width in pixels (default: 400)")
    parser.add_argument("--samples", type=int, default=100, help="Samples per pixel (default: 100)")
    parser.add_argument("--depth", type=int, default=50, help="Maximum bounces per path (default: 50)")
    parser.add_argument("--seed", type=int, default=0, help="Random seed (default: 0)")
    parser.add_argument("--arch", choices=SUPPORTED_ARCHS, default="cpu", help="Taichi backend (default: cpu)")
    parser.add_argument("--output", type=str, default=None, help="Output file path (default: <preset>.png)")
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    parser.add_argument("--verbose", action="store_true", help="Log render runs")
    return parser.parse_args()


def render_preset(
    preset: str,
    width: int,
    sampling: SamplingParams,
    seed: int,
    output_path: Path,
    quiet: bool = False,
) -> Path:
    """Render a preset and save it as a PNG.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports so Taichi is initialized before fields are declared
    from weekend_tracer.core.orchestrator import ProgressiveRenderer
    from weekend_tracer.scene.presets import PRESETS

    scene_fn, camera_fn = PRESETS[preset]
    scene = scene_fn(seed=seed) if preset == "random" else scene_fn()
    camera_params = camera_fn(image_width=width)

    if not quiet:
        print(
            f"Rendering {preset} ({len(scene)} spheres) at "
            f"{camera_params.image_width}x{camera_params.image_height}, "
            f"{sampling.samples_per_pixel} spp..."
        )

    renderer = ProgressiveRenderer(seed=seed)
    start_time = time.time()
    run = renderer.start(scene, camera_params, sampling)

    while run.is_alive():
        renderer.update()
        if not quiet:
            elapsed = time.time() - start_time
            print(
                f"\r  Progress: {renderer.sample_count}/{sampling.samples_per_pixel} samples "
                f"({elapsed:.1f}s)",
                end="",
                flush=True,
            )
        time.sleep(0.25)

    if not renderer.wait():
        raise RuntimeError("Render did not complete")

    if not quiet:
        print()

    Image.fromarray(renderer.snapshot_uint8()).save(output_path)

    if not quiet:
        print(f"Saved to: {output_path.absolute()}")
        print(f"Total time: {time.time() - start_time:.2f}s")

    return output_path


def main() -> int:
    """Main entry point."""
    args = parse_args()
    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(message)s")

    try:
        init_runtime(
            RuntimeSettings(
                arch=args.arch,
                seed=args.seed,
                log_level=logging.INFO if args.verbose else logging.WARNING,
            )
        )
        render_preset(
            preset=args.preset,
            width=args.width,
            sampling=SamplingParams(samples_per_pixel=args.samples, max_depth=args.depth),
            seed=args.seed,
            output_path=Path(args.output or f"{args.preset}.png"),
            quiet=args.quiet,
        )
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
