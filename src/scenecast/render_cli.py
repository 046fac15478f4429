"""CLI for offline rendering.

Usage:
    scenecast render --manifest render.yaml --output final.mp4
    scenecast render --manifest render.yaml --output final.mp4 \
        --content other-content.json
    scenecast render --manifest render.yaml --validate
    scenecast render --manifest render.yaml --output final.mp4 \
        --platform tiktok
"""

import argparse
from pathlib import Path

from .ffmpeg import TranscodeCallbacks
from .manifest import load_content, load_manifest, validate_source
from .offline import PLATFORM_PRESETS, OfflineRenderer, optimize_for_platform


def _print_progress(percent: float) -> None:
    print(f"\r  {percent:5.1f}%", end="", flush=True)
    if percent >= 100:
        print()


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="scenecast render",
        description="Render a template over a source video with ffmpeg.",
    )
    parser.add_argument(
        "--manifest", required=True,
        help="Path to YAML render manifest",
    )
    parser.add_argument(
        "--output",
        help="Output video path (required unless --validate)",
    )
    parser.add_argument(
        "--content", default=None,
        help="JSON/YAML content file, overrides the manifest's content",
    )
    parser.add_argument(
        "--platform", choices=sorted(PLATFORM_PRESETS), default=None,
        help="Re-encode the result with a platform preset",
    )
    parser.add_argument(
        "--validate", action="store_true",
        help="Validate manifest only — check paths, don't render",
    )
    parsed = parser.parse_args(args)

    config = load_manifest(parsed.manifest)
    validate_source(config)
    if parsed.content:
        config["content"] = load_content(parsed.content)
    template = config["template"]

    if parsed.validate:
        print(f"Manifest valid: {len(template.scenes)} scenes, {template.duration:.1f}s")
        for i, scene in enumerate(template.scenes):
            print(f"  {i}: {scene.start:.2f}-{scene.end:.2f}s  {scene.text.content!r}")
        if config["segments"]:
            print(f"  {len(config['segments'])} source segments")
        print(f"Source verified: {config['source']}")
        return

    if not parsed.output:
        parser.error("--output is required (unless using --validate)")

    renderer = OfflineRenderer(
        config["settings"],
        TranscodeCallbacks(on_progress=_print_progress),
        aliases=config["aliases"],
    )
    output = Path(parsed.output)
    render_target = output
    if parsed.platform:
        render_target = output.with_name(f"{output.stem}.master{output.suffix}")

    print(f"Rendering {config['source']} -> {render_target}")
    renderer.render(
        template, config["source"], config["content"],
        segments=config["segments"] or None,
        output=render_target,
        source_range=config["source_range"],
    )
    for issue in renderer.issues:
        print(f"  WARNING  {issue.message}")

    if parsed.platform:
        print(f"Optimizing for {parsed.platform}...")
        optimize_for_platform(render_target, parsed.platform, output)
        render_target.unlink()

    print(f"\nDone: {output}")


if __name__ == "__main__":
    main()
