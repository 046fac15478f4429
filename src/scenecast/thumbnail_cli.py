"""CLI for gallery thumbnails and visual stats of a finished video.

Usage:
    scenecast thumbnail --input final.mp4 --output final.jpg
    scenecast thumbnail --input final.mp4 --output final.jpg --at 0.25 --features
"""

import argparse
from pathlib import Path

from .analysis import extract_features, generate_thumbnail


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="scenecast thumbnail",
        description="Grab a JPEG thumbnail from a video.",
    )
    parser.add_argument(
        "--input", required=True,
        help="Video to take the thumbnail from",
    )
    parser.add_argument(
        "--output", required=True,
        help="Output JPEG path",
    )
    parser.add_argument(
        "--at", type=float, default=0.5,
        help="Position as a fraction of the duration (default: 0.5)",
    )
    parser.add_argument(
        "--features", action="store_true",
        help="Also print brightness/contrast/motion/color statistics",
    )
    parsed = parser.parse_args(args)

    source = Path(parsed.input)
    if not source.exists():
        raise FileNotFoundError(f"Input video not found: {source}")

    out = generate_thumbnail(source, parsed.output, at=parsed.at)
    print(f"Thumbnail: {out}")

    if parsed.features:
        for key, value in extract_features(source).items():
            print(f"  {key:<15} {value:6.2f}")


if __name__ == "__main__":
    main()
