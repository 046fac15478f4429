"""Text overlay rendering for the live pipeline.

Draws one scene's text overlay onto a canvas frame with Pillow:
variables substituted, lines wrapped by layout.layout, the block
centered on the overlay's percentage position and clamped on-canvas,
an optional translucent box behind it and an optional stroke.

Line breaks come from the shared character-budget wrapper so a live
recording and an offline render of the same template break the same
words onto the same lines. Only the glyph metrics differ (Pillow
measures, ffmpeg measures), and both clamp against measured boxes.
"""

from PIL import Image, ImageDraw

from .common import load_font, parse_color
from .errors import Issue
from .layout import anchor_position, layout, line_spacing
from .models import ResolvedStyle, Scene
from .variables import substitute


# ── Measurement ──────────────────────────────────────────────────


def measure_lines(
    draw: ImageDraw.ImageDraw, lines: list[str], font, spacing: float,
) -> tuple[list[tuple[int, int]], int, int]:
    """Measure each line and the full block.

    Returns:
        (per-line (w, h) sizes, block width, block height).
    """
    sizes = []
    for line in lines:
        # Measure with a reference glyph so empty lines keep a height.
        bbox = draw.textbbox((0, 0), line or " ", font=font)
        sizes.append((bbox[2] - bbox[0], bbox[3] - bbox[1]))
    block_w = max((w for w, _ in sizes), default=0)
    block_h = sum(h for _, h in sizes) + round(spacing * (len(lines) - 1))
    return sizes, block_w, block_h


# ── Drawing ──────────────────────────────────────────────────────


def draw_text_block(
    canvas: Image.Image,
    lines: list[str],
    position: tuple[float, float],
    style: ResolvedStyle,
) -> tuple[int, int, int, int]:
    """Draw wrapped lines onto *canvas* in place.

    Lines are horizontally centered within the block. The background box
    (if any) extends box_border_width pixels around the text block, and
    the block is placed so that the box stays on-canvas as well.

    Returns:
        (x, y, w, h) of the text block on the canvas.
    """
    canvas_w, canvas_h = canvas.size
    font = load_font(round(style.font_size), bold=style.bold)
    spacing = line_spacing(style.font_size, style.line_height_multiplier)

    layer = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(layer)

    stroke = round(style.stroke_width) if style.has_stroke else 0
    sizes, block_w, block_h = measure_lines(draw, lines, font, spacing)
    block_w += 2 * stroke
    block_h += 2 * stroke
    pad = round(style.box_border_width) if style.background else 0
    x, y = anchor_position(position, block_w, block_h, canvas_w, canvas_h, margin=pad)

    if style.background:
        draw.rectangle(
            [(x - pad, y - pad), (x + block_w + pad, y + block_h + pad)],
            fill=parse_color(style.background),
        )

    fill = parse_color(style.color)
    stroke_fill = parse_color(style.stroke) if stroke else None
    ty = y + stroke
    for line, (line_w, line_h) in zip(lines, sizes):
        tx = x + stroke + (block_w - 2 * stroke - line_w) // 2
        draw.text(
            (tx, ty), line, font=font, fill=fill,
            stroke_width=stroke, stroke_fill=stroke_fill,
        )
        ty += line_h + round(spacing)

    composed = Image.alpha_composite(canvas.convert("RGBA"), layer)
    canvas.paste(composed.convert(canvas.mode))
    return x, y, block_w, block_h


def draw_scene_text(
    canvas: Image.Image,
    scene: Scene,
    style: ResolvedStyle,
    content: dict,
    issues: list[Issue] | None = None,
    aliases: dict[str, list[str]] | None = None,
) -> bool:
    """Render *scene*'s overlay text onto *canvas* in place.

    Returns:
        True if anything was drawn, False for empty text.
    """
    text = substitute(scene.text.content, content, issues, aliases)
    if not text.strip():
        return False

    lines = layout(text, style.max_width_percent, style.font_size, canvas.size[0])
    draw_text_block(canvas, lines, scene.text.position, style)
    return True
