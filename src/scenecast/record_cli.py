"""CLI for live capture.

Plays the template once against the source through the live
synchronizer and writes the encoded frames. By default this runs in real
time against the wall clock; --headless steps a manual clock one frame
per tick instead, which is deterministic and usually faster.

Usage:
    scenecast record --manifest render.yaml --output capture.webm
    scenecast record --manifest render.yaml --output-dir captures/ --headless
"""

import argparse
from pathlib import Path

from .live import record_video
from .manifest import load_manifest, validate_source
from .scheduling import ManualClock, ManualScheduler


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="scenecast record",
        description="Capture a template live over a source video.",
    )
    parser.add_argument(
        "--manifest", required=True,
        help="Path to YAML render manifest",
    )
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument(
        "--output",
        help="Output file path",
    )
    group.add_argument(
        "--output-dir",
        help="Directory for the capture, named <prefix>-<unixtime>.webm",
    )
    parser.add_argument(
        "--prefix", default="scenecast",
        help="Filename prefix with --output-dir (default: scenecast)",
    )
    parser.add_argument(
        "--headless", action="store_true",
        help="Step a simulated clock instead of waiting on the wall clock",
    )
    parsed = parser.parse_args(args)

    config = load_manifest(parsed.manifest)
    validate_source(config)
    settings = config["settings"]
    template = config["template"]

    clock = scheduler = None
    if parsed.headless:
        clock = ManualClock()
        scheduler = ManualScheduler(clock, interval=1.0 / settings.fps)

    print(
        f"Recording {template.duration:.1f}s "
        f"({len(template.scenes)} scenes) from {config['source']}"
    )
    artifact = record_video(
        config["source"], template, config["content"], settings,
        clock=clock, scheduler=scheduler,
        prefix=parsed.prefix, aliases=config["aliases"],
    )

    if parsed.output:
        out_path = Path(parsed.output)
    else:
        out_path = Path(parsed.output_dir) / artifact.filename
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(artifact.data)
    print(f"\nDone: {out_path} ({artifact.size} bytes, {artifact.content_type})")


if __name__ == "__main__":
    main()
