#!/usr/bin/env python3
"""Generate a synthetic b-roll clip and a demo manifest for scenecast.

Creates examples/demo/broll.mp4 (a 20s clip built from colored bands,
each labelled with its source time) plus examples/demo/demo.yaml with
three scenes: two explicit source ranges and one even-split scene.
The labels make it obvious which part of the source each scene shows.

Usage:
    python examples/generate_demo.py
    # Then:
    scenecast map --manifest examples/demo/demo.yaml
    scenecast render --manifest examples/demo/demo.yaml \
        --output examples/demo/render.mp4
    scenecast record --manifest examples/demo/demo.yaml \
        --output-dir examples/demo/captures/ --headless
"""

import numpy as np
import yaml
from moviepy import ColorClip, CompositeVideoClip, ImageClip
from pathlib import Path
from PIL import Image, ImageDraw

from scenecast.common import load_font

OUTPUT_DIR = Path(__file__).resolve().parent / "demo"
SIZE = (360, 640)
FPS = 30

# 5 bands of 4s each; colors cycle so scene cuts are easy to spot.
BANDS = [
    ((180, 60, 60), 4.0),    # red
    ((60, 60, 180), 4.0),    # blue
    ((60, 160, 60), 4.0),    # green
    ((200, 130, 40), 4.0),   # orange
    ((130, 60, 180), 4.0),   # purple
]

TEMPLATE = {
    "name": "demo-hook",
    "duration": 9,
    "textStyle": {"fontSize": 56, "color": "#ffffff", "stroke": "#000000", "strokeWidth": 3},
    "scenes": [
        {"start": 0, "end": 3, "videoStart": 2, "videoEnd": 5,
         "text": {"content": "{{hook}}", "position": {"x": 50, "y": 20}}},
        {"start": 3, "end": 6, "videoStart": 12, "videoEnd": 15,
         "text": {"content": "{{body}}", "position": {"x": 50, "y": 50},
                  "style": {"background": True, "backgroundColor": "black@0.5"}}},
        {"start": 6, "end": 9,
         "text": {"content": "{{cta}}", "position": {"x": 50, "y": 85}}},
    ],
}

CONTENT = {
    "hook": "Did you know?",
    "body": "Every scene here pulls from a different part of the source clip",
    "cta": "Follow for more",
}


def _make_label(t0: float, color: tuple[int, int, int]) -> np.ndarray:
    """Create a frame labelled with the band's source start time."""
    img = Image.new("RGB", SIZE, color)
    draw = ImageDraw.Draw(img)
    font = load_font(48, bold=True)
    label = f"src {t0:.0f}s"
    bbox = draw.textbbox((0, 0), label, font=font)
    tw = bbox[2] - bbox[0]
    draw.text(((SIZE[0] - tw) / 2, SIZE[1] - 120), label, fill=(255, 255, 255), font=font)
    return np.array(img)


def _write_source(out: Path) -> float:
    layers = []
    t = 0.0
    for color, duration in BANDS:
        layers.append(ColorClip(size=SIZE, color=color, duration=duration).with_start(t))
        layers.append(ImageClip(_make_label(t, color), duration=duration).with_start(t))
        t += duration
    final = CompositeVideoClip(layers, size=SIZE)
    final.write_videofile(str(out), fps=FPS, logger=None)
    return t


def main():
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    source = OUTPUT_DIR / "broll.mp4"
    if source.exists():
        print(f"  skip {source.name} (exists)")
    else:
        duration = _write_source(source)
        print(f"  wrote {source.name} ({duration:.0f}s)")

    manifest = {
        "video": {"resolution": [720, 1280], "fps": FPS, "format": "mp4", "crf": 23},
        "paths": {"demo": str(OUTPUT_DIR)},
        "source": "${demo}/broll.mp4",
        "template": TEMPLATE,
        "content": CONTENT,
    }
    manifest_path = OUTPUT_DIR / "demo.yaml"
    with open(manifest_path, "w") as f:
        yaml.safe_dump(manifest, f, sort_keys=False)
    print(f"  wrote {manifest_path.name}")

    print(f"\nDone. Demo files in {OUTPUT_DIR}")


if __name__ == "__main__":
    main()
