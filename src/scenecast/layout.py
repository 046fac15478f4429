"""Text layout shared by the live and offline pipelines.

Wrapping works on an estimated character budget rather than measured
glyph widths so that both pipelines break lines identically: ffmpeg's
drawtext cannot report widths back to us before rendering. A glyph is
taken to be CHAR_WIDTH_FACTOR * font_size pixels wide.

Anchoring: a text overlay's position is a percentage point on the
canvas. The text box is centered on that point, then clamped so the
whole box stays on-canvas, even for positions at 0% or 100%.
"""

import math
from collections.abc import Sequence


CHAR_WIDTH_FACTOR = 0.6
MIN_WRAP_WIDTH_PX = 10


# ── Wrapping ─────────────────────────────────────────────────────


def chars_per_line(max_width_percent: float, font_size: float, canvas_width: int) -> int:
    """Character budget for one line at the given width and font size."""
    max_width_px = max(MIN_WRAP_WIDTH_PX, (max_width_percent / 100) * canvas_width)
    approx_char_width = font_size * CHAR_WIDTH_FACTOR
    if approx_char_width <= 0:
        return 1
    return max(1, math.floor(max_width_px / approx_char_width))


def wrap_text(text: str, max_chars: int) -> list[str]:
    """Greedily pack words into lines of at most *max_chars* characters.

    Words are never split; a single word longer than the budget gets a
    line of its own. Always returns at least one line.
    """
    words = (text or "").split()
    if not words:
        return [""]

    lines = []
    current = words[0]
    for word in words[1:]:
        if len(current) + 1 + len(word) > max_chars:
            lines.append(current)
            current = word
        else:
            current = f"{current} {word}"
    lines.append(current)
    return lines


def layout(
    text: str, max_width_percent: float, font_size: float, canvas_width: int,
) -> list[str]:
    """Wrap overlay text for a canvas *canvas_width* pixels wide."""
    budget = chars_per_line(max_width_percent, font_size, canvas_width)
    return wrap_text(text, budget)


def estimate_text_box(
    lines: Sequence[str], font_size: float, line_height_multiplier: float,
) -> tuple[int, int]:
    """Approximate (width, height) in pixels of a block of wrapped lines."""
    longest = max((len(line) for line in lines), default=0)
    width = math.ceil(longest * font_size * CHAR_WIDTH_FACTOR)
    n = max(1, len(lines))
    spacing = line_spacing(font_size, line_height_multiplier)
    height = math.ceil(n * font_size + (n - 1) * spacing)
    return width, height


def line_spacing(font_size: float, line_height_multiplier: float) -> float:
    """Extra pixels between consecutive lines."""
    return (line_height_multiplier - 1) * font_size


# ── Anchoring ────────────────────────────────────────────────────


def _clamp_percent(value: float) -> float:
    return max(0.0, min(100.0, value)) / 100


def anchor_position(
    position: tuple[float, float],
    box_w: int,
    box_h: int,
    canvas_w: int,
    canvas_h: int,
    margin: int = 0,
) -> tuple[int, int]:
    """Top-left (x, y) of a text box centered on a percentage point.

    Args:
        position: (x, y) in percent of the canvas; clamped into [0, 100].
        box_w, box_h: Rendered text box size in pixels.
        canvas_w, canvas_h: Canvas size in pixels.
        margin: Pixels drawn outside the box on every side (background
            padding); kept on-canvas too.

    Returns:
        Pixel coordinates that keep the full box, margin included,
        on-canvas. A box larger than the canvas is pinned to the
        top/left edge.
    """
    ax, ay = _clamp_percent(position[0]), _clamp_percent(position[1])
    x = canvas_w * ax - box_w / 2
    y = canvas_h * ay - box_h / 2
    x = max(margin, min(canvas_w - box_w - margin, x))
    y = max(margin, min(canvas_h - box_h - margin, y))
    return round(x), round(y)


def anchor_expressions(
    position: tuple[float, float], margin: int = 0,
) -> tuple[str, str]:
    """ffmpeg drawtext x/y expressions equivalent to anchor_position.

    Uses drawtext's own measured text_w/text_h, so the clamp is exact
    in the offline path. text_w/text_h exclude the box border and the
    glyph outline; pass the wider of the two as *margin*.
    """
    ax, ay = _clamp_percent(position[0]), _clamp_percent(position[1])
    low = str(margin)
    inset = f"-{margin}" if margin else ""
    x = f"max({low},min(main_w-text_w{inset},(main_w*{ax:.4f})-(text_w/2)))"
    y = f"max({low},min(main_h-text_h{inset},(main_h*{ay:.4f})-(text_h/2)))"
    return x, y
