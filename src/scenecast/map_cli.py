"""CLI that prints how a template's scenes map onto the source video.

Usage:
    scenecast map --manifest render.yaml
    scenecast map --manifest render.yaml --duration 24
"""

import argparse

from .ffmpeg import probe_duration
from .manifest import load_manifest, validate_source
from .scene_mapper import map_scenes


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="scenecast map",
        description="Print the scene mapping for a manifest.",
    )
    parser.add_argument(
        "--manifest", required=True,
        help="Path to YAML render manifest",
    )
    parser.add_argument(
        "--duration", type=float, default=None,
        help="Source duration in seconds (default: probe the source)",
    )
    parsed = parser.parse_args(args)

    config = load_manifest(parsed.manifest)
    if parsed.duration is None:
        validate_source(config)
        source_duration = probe_duration(config["source"])
    else:
        source_duration = parsed.duration

    template = config["template"]
    mappings = map_scenes(template.scenes, source_duration)

    print(f"Template {template.duration:.2f}s over source {source_duration:.2f}s")
    if not mappings:
        print("  (no scenes: source plays straight through)")
        return
    for m in mappings:
        explicit = "explicit" if m.scene.has_explicit_range else "even split"
        print(
            f"  [{m.scene_index}] out {m.output_start:6.2f}-{m.output_end:6.2f}s  "
            f"<- src {m.video_start:6.2f}-{m.video_end:6.2f}s  ({explicit})"
        )


if __name__ == "__main__":
    main()
