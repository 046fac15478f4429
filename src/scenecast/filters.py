"""Offline filter graph — one ffmpeg -vf chain for a whole template.

The chain is:
  1. scale=W:H:force_original_aspect_ratio=increase,crop=W:H
     (cover the vertical canvas, center-crop the overflow)
  2. each scene's raw extra filters, time-gated to the scene
  3. one drawtext per scene with text, time-gated to the scene

Scene gating uses `enable='gte(t,start)*lt(t,end)'`, the same half-open
[start, end) interval the live synchronizer uses, so back-to-back scenes
never draw on the same frame.

Overlay text is written to per-scene text files (drawtext `textfile=`,
`expansion=none`) rather than inlined, which sidesteps quoting the text
itself inside the filtergraph. Lines are pre-wrapped with the shared
layout rules, and x/y come from layout.anchor_expressions so the clamp
uses ffmpeg's own measured text size.
"""

import math
from pathlib import Path

from loguru import logger

from .common import find_font_path, to_ffmpeg_color
from .errors import Issue
from .layout import anchor_expressions, layout, line_spacing
from .models import ResolvedStyle, Scene, Template
from .settings import RenderSettings
from .variables import substitute


# ── Escaping ─────────────────────────────────────────────────────


def escape_filter_value(value: str) -> str:
    """Escape a literal (e.g. a file path) for use as a filter option value.

    Two levels: the option parser treats ' \\ : specially, then the
    filtergraph parser treats ' \\ [ ] , ; specially.
    """
    value = str(value)
    for ch in ("\\", "'", ":"):
        value = value.replace(ch, "\\" + ch)
    for ch in ("\\", "'", "[", "]", ",", ";"):
        value = value.replace(ch, "\\" + ch)
    return value


def _fmt(number: float) -> str:
    return f"{number:.3f}".rstrip("0").rstrip(".") or "0"


def enable_expression(start: float, end: float) -> str:
    """Half-open [start, end) timeline gate."""
    return f"enable='gte(t,{_fmt(start)})*lt(t,{_fmt(end)})'"


# ── Pieces ───────────────────────────────────────────────────────


def scale_crop_filter(width: int, height: int) -> str:
    return (
        f"scale={width}:{height}:force_original_aspect_ratio=increase,"
        f"crop={width}:{height}"
    )


def gated_scene_filters(scene: Scene) -> list[str]:
    """The scene's extra filters, each enabled only during the scene."""
    gated = []
    for raw in scene.filters:
        raw = raw.strip()
        if not raw:
            continue
        sep = ":" if "=" in raw else "="
        gated.append(f"{raw}{sep}{enable_expression(scene.start, scene.end)}")
    return gated


def drawtext_filter(
    scene: Scene,
    style: ResolvedStyle,
    text_path: Path,
    font_path: Path | None,
) -> str:
    """drawtext for one scene whose wrapped text is already in *text_path*."""
    # The box border and the glyph outline both draw outside text_w/text_h.
    margin = max(
        round(style.box_border_width) if style.background else 0,
        math.ceil(style.stroke_width) if style.has_stroke else 0,
    )
    x_expr, y_expr = anchor_expressions(scene.text.position, margin)
    options = [
        f"textfile={escape_filter_value(text_path)}",
        "expansion=none",
    ]
    if font_path is not None:
        options.append(f"fontfile={escape_filter_value(font_path)}")
    options += [
        f"fontsize={_fmt(style.font_size)}",
        f"fontcolor={to_ffmpeg_color(style.color)}",
        f"x='{x_expr}'",
        f"y='{y_expr}'",
    ]

    spacing = line_spacing(style.font_size, style.line_height_multiplier)
    if abs(spacing) > 0.01:
        options.append(f"line_spacing={spacing:.2f}")

    if style.background:
        options += [
            "box=1",
            f"boxcolor={to_ffmpeg_color(style.background)}",
            f"boxborderw={round(style.box_border_width)}",
        ]
    else:
        options.append("box=0")

    if style.has_stroke:
        options += [
            f"bordercolor={to_ffmpeg_color(style.stroke)}",
            f"borderw={_fmt(style.stroke_width)}",
        ]

    options.append(enable_expression(scene.start, scene.end))
    return "drawtext=" + ":".join(options)


# ── Graph ────────────────────────────────────────────────────────


def build_filter_graph(
    template: Template,
    content: dict,
    settings: RenderSettings,
    work_dir: str | Path,
    issues: list[Issue] | None = None,
    aliases: dict[str, list[str]] | None = None,
) -> str:
    """Build the -vf chain for *template*.

    Args:
        template: Template to render.
        content: Variable values substituted into overlay text.
        settings: Output canvas size.
        work_dir: Directory for the per-scene text files. Must outlive
            the ffmpeg run.
        issues: Collects missing-variable warnings.
        aliases: Optional variable alias table.

    Returns:
        Comma-joined filter chain.
    """
    work_dir = Path(work_dir)
    chain = [scale_crop_filter(settings.width, settings.height)]

    for scene in template.scenes:
        chain.extend(gated_scene_filters(scene))

    for i, scene in enumerate(template.scenes):
        if not scene.text.content:
            continue
        text = substitute(scene.text.content, content, issues, aliases)
        if not text.strip():
            logger.debug(f"Scene {i + 1}: overlay text is empty, no drawtext")
            continue

        style = template.style_for(scene)
        lines = layout(text, style.max_width_percent, style.font_size, settings.width)
        text_path = work_dir / f"scene_{i:03d}.txt"
        text_path.write_text("\n".join(lines), encoding="utf-8")

        chain.append(drawtext_filter(scene, style, text_path, find_font_path(style.bold)))

    return ",".join(chain)
