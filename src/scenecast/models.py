"""Data model for templates, scenes, mappings and artifacts.

Templates arrive as JSON from the upstream content generator, so keys are
camelCase there (textStyle, videoStart, maxWidth, ...). from_dict accepts
both camelCase and snake_case; everything inside the package uses the
snake_case attribute names.

TextStyle fields are all optional. A scene's style inherits field by field
from the template's default style (merged_with), and anything still unset
falls back to the engine defaults at resolve() time.
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any


# ── Engine defaults ─────────────────────────────────────────────

DEFAULT_FONT_SIZE = 48
DEFAULT_FONT_WEIGHT = "bold"
DEFAULT_COLOR = "#ffffff"
DEFAULT_MAX_WIDTH_PERCENT = 100.0
DEFAULT_LINE_HEIGHT_MULTIPLIER = 1.35
DEFAULT_BOX_BORDER_WIDTH = 5
DEFAULT_BACKGROUND = "black@0.5"
DEFAULT_POSITION = (50.0, 50.0)


# camelCase (upstream JSON) -> snake_case (attribute) for style keys.
_STYLE_ALIASES = {
    "fontSize": "font_size",
    "fontWeight": "font_weight",
    "strokeWidth": "stroke_width",
    "maxWidth": "max_width_percent",
    "maxWidthPercent": "max_width_percent",
    "max_width": "max_width_percent",
    "backgroundColor": "background_color",
    "lineHeightMultiplier": "line_height_multiplier",
    "boxBorderWidth": "box_border_width",
    "fontFamily": "font_family",
}


def _pick(raw: dict, *keys: str, default: Any = None) -> Any:
    """Return the first present key among camelCase/snake_case spellings."""
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return default


# ── Text ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TextStyle:
    font_size: float | None = None
    font_weight: str | None = None
    color: str | None = None
    stroke: str | None = None
    stroke_width: float | None = None
    max_width_percent: float | None = None
    background: bool | str | None = None
    background_color: str | None = None
    line_height_multiplier: float | None = None
    box_border_width: float | None = None
    font_family: str | None = None

    @classmethod
    def from_dict(cls, raw: dict | None) -> "TextStyle":
        if not raw:
            return cls()
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in raw.items():
            name = _STYLE_ALIASES.get(key, key)
            if name in known:
                values[name] = value
        return cls(**values)

    def merged_with(self, base: "TextStyle") -> "TextStyle":
        """Fill unset fields of this style from *base*."""
        overrides = {
            f.name: getattr(base, f.name)
            for f in fields(self)
            if getattr(self, f.name) is None
        }
        return replace(self, **overrides)

    def resolve(self) -> "ResolvedStyle":
        """Apply engine defaults to every unset field."""
        return ResolvedStyle(
            font_size=self.font_size if self.font_size is not None else DEFAULT_FONT_SIZE,
            font_weight=self.font_weight or DEFAULT_FONT_WEIGHT,
            color=self.color or DEFAULT_COLOR,
            stroke=self.stroke,
            stroke_width=self.stroke_width or 0,
            max_width_percent=(
                self.max_width_percent
                if self.max_width_percent is not None
                else DEFAULT_MAX_WIDTH_PERCENT
            ),
            background=self._resolve_background(),
            line_height_multiplier=(
                self.line_height_multiplier
                if self.line_height_multiplier is not None
                else DEFAULT_LINE_HEIGHT_MULTIPLIER
            ),
            box_border_width=(
                self.box_border_width
                if self.box_border_width is not None
                else DEFAULT_BOX_BORDER_WIDTH
            ),
            font_family=self.font_family,
        )

    def _resolve_background(self) -> str | None:
        # false -> no box; a string -> that color; else background_color;
        # else the default translucent black box.
        if self.background is False:
            return None
        if isinstance(self.background, str):
            return self.background
        if self.background_color:
            return self.background_color
        return DEFAULT_BACKGROUND


@dataclass(frozen=True)
class ResolvedStyle:
    """A TextStyle with every default applied. background None = no box."""

    font_size: float
    font_weight: str
    color: str
    stroke: str | None
    stroke_width: float
    max_width_percent: float
    background: str | None
    line_height_multiplier: float
    box_border_width: float
    font_family: str | None

    @property
    def bold(self) -> bool:
        return str(self.font_weight).lower() in ("bold", "bolder", "700", "800", "900")

    @property
    def has_stroke(self) -> bool:
        return bool(self.stroke) and self.stroke_width > 0


@dataclass(frozen=True)
class TextOverlay:
    content: str = ""
    position: tuple[float, float] = DEFAULT_POSITION
    style: TextStyle = field(default_factory=TextStyle)

    @classmethod
    def from_dict(cls, raw: dict | None) -> "TextOverlay":
        if not raw:
            return cls()
        pos = raw.get("position") or {}
        return cls(
            content=str(raw.get("content") or ""),
            position=(
                float(pos.get("x", DEFAULT_POSITION[0])),
                float(pos.get("y", DEFAULT_POSITION[1])),
            ),
            style=TextStyle.from_dict(raw.get("style")),
        )


# ── Timeline ────────────────────────────────────────────────────


@dataclass(frozen=True)
class Scene:
    start: float
    end: float
    text: TextOverlay = field(default_factory=TextOverlay)
    video_start: float | None = None
    video_end: float | None = None
    filters: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, raw: dict) -> "Scene":
        video_start = _pick(raw, "videoStart", "video_start")
        video_end = _pick(raw, "videoEnd", "video_end")
        return cls(
            start=float(raw["start"]),
            end=float(raw["end"]),
            text=TextOverlay.from_dict(raw.get("text")),
            video_start=float(video_start) if video_start is not None else None,
            video_end=float(video_end) if video_end is not None else None,
            filters=tuple(raw.get("filters") or ()),
        )

    @property
    def duration(self) -> float:
        return self.end - self.start

    @property
    def has_explicit_range(self) -> bool:
        return self.video_start is not None and self.video_end is not None


@dataclass(frozen=True)
class Template:
    duration: float
    scenes: tuple[Scene, ...] = ()
    default_text_style: TextStyle = field(default_factory=TextStyle)
    name: str | None = None

    @classmethod
    def from_dict(cls, raw: dict) -> "Template":
        return cls(
            duration=float(raw["duration"]),
            scenes=tuple(Scene.from_dict(s) for s in raw.get("scenes") or ()),
            default_text_style=TextStyle.from_dict(
                _pick(raw, "textStyle", "defaultTextStyle", "default_text_style", "text_style")
            ),
            name=raw.get("name"),
        )

    def style_for(self, scene: Scene) -> ResolvedStyle:
        """Scene style, inheriting from the template default, with defaults applied."""
        return scene.text.style.merged_with(self.default_text_style).resolve()


@dataclass(frozen=True)
class SceneMapping:
    """Output time range of one scene and the source range it plays."""

    output_start: float
    output_end: float
    video_start: float
    video_end: float
    scene_index: int
    scene: Scene | None = None

    @property
    def output_duration(self) -> float:
        return self.output_end - self.output_start

    def contains(self, output_time: float) -> bool:
        return self.output_start <= output_time < self.output_end

    def source_time_at(self, output_time: float) -> float:
        """Linear map from output time to source time inside this scene."""
        span = self.output_duration
        progress = (output_time - self.output_start) / span if span > 0 else 0.0
        return self.video_start + progress * (self.video_end - self.video_start)


@dataclass(frozen=True)
class SourceRange:
    start: float
    end: float

    @classmethod
    def from_dict(cls, raw: dict) -> "SourceRange":
        return cls(
            start=float(_pick(raw, "start", "sourceStart", "source_start")),
            end=float(_pick(raw, "end", "sourceEnd", "source_end")),
        )

    @property
    def duration(self) -> float:
        return max(0.0, self.end - max(0.0, self.start))


# ── Output ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class Artifact:
    """An in-memory encoded video, ready to download or upload."""

    data: bytes
    filename: str
    content_type: str

    @property
    def size(self) -> int:
        return len(self.data)
