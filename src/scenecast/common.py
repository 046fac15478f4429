"""scenecast.common — shared utilities.

Contains: color parsing (hex, CSS names, ffmpeg `color@alpha`), path
variable resolution, and font lookup/loading for both pipelines.
"""

import re
from pathlib import Path

from PIL import ImageColor, ImageFont


# ── Font paths ─────────────────────────────────────────────────────
# Inter preferred, DejaVu Sans as fallback. The offline path hands the
# same file to ffmpeg's drawtext so both pipelines use one face.

FONT_PATHS = [
    Path.home() / ".local/share/fonts/Inter.ttc",
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
]

BOLD_FONT_PATHS = [
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"),
]


# ── Color utilities ────────────────────────────────────────────────

def parse_color(value: str) -> tuple[int, int, int, int]:
    """Parse a color into an (R, G, B, A) tuple.

    Accepts '#RGB', '#RRGGBB', '0xRRGGBB', CSS names and rgb()/rgba()
    forms, each optionally followed by ffmpeg's '@alpha' suffix
    (e.g. 'black@0.5').

    Raises:
        ValueError: The value is not a recognizable color.
    """
    text = str(value).strip()
    alpha = 1.0
    if "@" in text:
        text, alpha_str = text.rsplit("@", 1)
        try:
            alpha = float(alpha_str)
        except ValueError:
            raise ValueError(f"Unknown color: '{value}'. Bad alpha suffix.") from None
        alpha = max(0.0, min(1.0, alpha))

    if text.lower().startswith("0x"):
        text = "#" + text[2:]
    if len(text) == 6 and all(c in "0123456789abcdefABCDEF" for c in text):
        text = "#" + text

    try:
        rgba = ImageColor.getcolor(text, "RGBA")
    except ValueError:
        raise ValueError(f"Unknown color: '{value}'.") from None

    r, g, b, a = rgba
    return (r, g, b, round(a * alpha))


def to_ffmpeg_color(value: str) -> str:
    """Normalize any parse_color input to ffmpeg's '0xRRGGBB@a' syntax."""
    r, g, b, a = parse_color(value)
    return f"0x{r:02X}{g:02X}{b:02X}@{a / 255:.2f}"


# ── Path utilities ─────────────────────────────────────────────────

def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise ValueError(f"Unknown path variable: ${{{key}}}")
        return paths[key]
    return re.sub(r"\$\{(\w+)\}", _replace, text)


# ── Font loading ───────────────────────────────────────────────────

def find_font_path(bold: bool = False) -> Path | None:
    """First existing font file, preferring a bold face when asked."""
    candidates = (BOLD_FONT_PATHS + FONT_PATHS) if bold else FONT_PATHS
    for font_path in candidates:
        if font_path.exists():
            return font_path
    return None


def load_font(size: int, bold: bool = False) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load Inter (or fallback) at the given size.

    When no bold face is installed, bold text gets a slight size bump
    instead, since Inter.ttc has no bold face accessible by index.
    """
    font_path = find_font_path(bold=bold)
    if font_path is not None:
        if bold and font_path not in BOLD_FONT_PATHS:
            size += 2
        try:
            return ImageFont.truetype(str(font_path), size=size, index=0)
        except (OSError, IndexError):
            pass
    # Last resort: Pillow default font (scalable on Pillow >= 10.1).
    try:
        return ImageFont.load_default(size=size)
    except TypeError:
        return ImageFont.load_default()
