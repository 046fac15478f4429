"""Render manifest loader — template, content, source and settings from YAML.

Manifest schema:
  video:
    resolution: [1080, 1920]      # 9:16 only
    fps: 30
    format: mp4                   # mp4 | webm
    crf: 20
    drift_threshold: 0.2          # optional, live modes
  paths:
    media: "/data/broll"
  source: "${media}/city.mp4"
  source_range: {start: 2, end: 14}     # optional sub-range, single segment
  segments:                             # optional, multi segment
    - {start: 0, end: 4}
    - {start: 30, end: 38}
  template: "${media}/templates/hook.json"   # or an inline mapping
  content:                                   # or a path to JSON/YAML
    hook: "Did you know?"
  variables:
    aliases: true                 # resolve {{body}} from "content" etc.

Templates and content may live in separate JSON or YAML files (the
upstream generator emits JSON with camelCase keys). ${var} path
variables are resolved in source, template and content when those are
paths; inline content values and template text are never touched.
"""

import json
from pathlib import Path

import yaml

from .common import resolve_path_vars
from .models import SourceRange, Template
from .settings import VALID_FORMATS, VALID_RESOLUTIONS, RenderSettings
from .variables import DEFAULT_ALIASES

# Manifest fields that may hold a file path (with ${var} references).
PATH_FIELDS = ("source", "template", "content")


# ── File loading ──────────────────────────────────────────────────


def _load_structured(path: str | Path):
    """Parse a JSON (.json) or YAML file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    with open(path, encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            return json.load(f)
        return yaml.safe_load(f)


def load_content(source) -> dict[str, str]:
    """Content dictionary from an inline mapping or a JSON/YAML file."""
    raw = _load_structured(source) if isinstance(source, (str, Path)) else source
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"Content must be a mapping, got {type(raw).__name__}")
    return {str(k): "" if v is None else str(v) for k, v in raw.items()}


def load_template(source) -> Template:
    """Template from an inline mapping or a JSON/YAML file."""
    raw = _load_structured(source) if isinstance(source, (str, Path)) else source
    return parse_template(raw)


# ── Validation ────────────────────────────────────────────────────


def _validate_position(scene: dict, index: int) -> None:
    text = scene.get("text") or {}
    position = text.get("position") or {}
    for axis in ("x", "y"):
        if axis not in position:
            continue
        value = position[axis]
        if not isinstance(value, (int, float)) or not 0 <= value <= 100:
            raise ValueError(
                f"Scene {index}: text.position.{axis} must be a number in "
                f"[0, 100], got {value!r}"
            )


def _validate_scene(scene: dict, index: int) -> None:
    if not isinstance(scene, dict):
        raise ValueError(f"Scene {index}: must be a mapping")
    for key in ("start", "end"):
        if key not in scene:
            raise ValueError(f"Scene {index}: missing required field '{key}'")
    start, end = float(scene["start"]), float(scene["end"])
    if start < 0:
        raise ValueError(f"Scene {index}: start must be >= 0, got {start}")
    if end <= start:
        raise ValueError(f"Scene {index}: end ({end}) must be > start ({start})")

    video_start = scene.get("videoStart", scene.get("video_start"))
    video_end = scene.get("videoEnd", scene.get("video_end"))
    if video_start is not None and video_end is not None:
        if float(video_start) < 0 or float(video_end) < float(video_start):
            raise ValueError(
                f"Scene {index}: video range {video_start}-{video_end} is invalid"
            )

    filters = scene.get("filters")
    if filters is not None and (
        not isinstance(filters, list) or not all(isinstance(f, str) for f in filters)
    ):
        raise ValueError(f"Scene {index}: 'filters' must be a list of strings")

    _validate_position(scene, index)


def parse_template(raw: dict) -> Template:
    """Validate a raw template mapping and build a Template.

    Raises:
        ValueError: Missing/invalid duration or scene fields.
    """
    if not isinstance(raw, dict):
        raise ValueError("Template must be a mapping")
    if "duration" not in raw:
        raise ValueError("Template: missing required field 'duration'")
    duration = float(raw["duration"])
    if duration <= 0:
        raise ValueError(f"Template: duration must be > 0, got {duration}")

    scenes = raw.get("scenes") or []
    if not isinstance(scenes, list):
        raise ValueError("Template: 'scenes' must be a list")
    for i, scene in enumerate(scenes):
        _validate_scene(scene, i)

    return Template.from_dict(raw)


def _validate_video(video: dict) -> dict:
    video = dict(video or {})
    if "resolution" in video:
        resolution = tuple(video["resolution"])
        if resolution not in VALID_RESOLUTIONS:
            raise ValueError(
                f"video.resolution {list(resolution)} not supported. "
                f"Valid: {sorted(list(r) for r in VALID_RESOLUTIONS)}"
            )
        video["resolution"] = resolution
    fmt = video.get("format", "mp4")
    if fmt not in VALID_FORMATS:
        raise ValueError(f"video.format '{fmt}' not supported. Valid: {sorted(VALID_FORMATS)}")
    if "fps" in video and int(video["fps"]) <= 0:
        raise ValueError(f"video.fps must be > 0, got {video['fps']}")
    drift = video.get("drift_threshold")
    if drift is not None and float(drift) <= 0:
        raise ValueError(f"video.drift_threshold must be > 0, got {drift}")
    return video


def _parse_ranges(raw_ranges, what: str) -> list[SourceRange]:
    ranges = []
    for i, raw in enumerate(raw_ranges or []):
        try:
            rng = SourceRange.from_dict(raw)
        except (TypeError, ValueError, KeyError):
            raise ValueError(f"{what} {i}: needs numeric 'start' and 'end'") from None
        if rng.end <= rng.start:
            raise ValueError(f"{what} {i}: end ({rng.end}) must be > start ({rng.start})")
        ranges.append(rng)
    return ranges


# ── Manifest loading ──────────────────────────────────────────────


def load_manifest(manifest_path: str | Path) -> dict:
    """Load, validate, and normalize a render manifest.

    Processing pipeline:
      1. Parse YAML.
      2. Validate the video section, build RenderSettings.
      3. Resolve ${path} variables in the path-valued fields.
      4. Load template and content (inline or from files).
      5. Parse optional source_range / segments.

    Args:
        manifest_path: Path to the YAML manifest file.

    Returns:
        Dict with settings, source, template, content, segments,
        source_range and aliases.

    Raises:
        ValueError: Invalid or missing fields.
        FileNotFoundError: Missing manifest, template or content file.
    """
    with open(manifest_path) as f:
        raw = yaml.safe_load(f) or {}

    video = _validate_video(raw.get("video"))
    paths = raw.get("paths", {})

    if "source" not in raw:
        raise ValueError("Manifest: missing required 'source' field")
    if "template" not in raw:
        raise ValueError("Manifest: missing required 'template' field")

    # Only path-valued fields get ${var} resolution. Content values and
    # inline template text are passed through untouched.
    resolved = dict(raw)
    for key in PATH_FIELDS:
        if isinstance(resolved.get(key), str):
            resolved[key] = resolve_path_vars(resolved[key], paths)

    segments = _parse_ranges(resolved.get("segments"), "Segment")
    source_range = None
    if resolved.get("source_range") is not None:
        source_range = _parse_ranges([resolved["source_range"]], "source_range")[0]
    if segments and source_range is not None:
        raise ValueError("Manifest: use either 'segments' or 'source_range', not both")

    variables = resolved.get("variables") or {}
    aliases = DEFAULT_ALIASES if variables.get("aliases") else None

    return {
        "video": video,
        "settings": RenderSettings.from_dict(video),
        "source": str(resolved["source"]),
        "template": load_template(resolved["template"]),
        "content": load_content(resolved.get("content") or {}),
        "segments": segments,
        "source_range": source_range,
        "aliases": aliases,
    }


def validate_source(config: dict) -> None:
    """Check that the source video path exists on disk.

    Raises:
        FileNotFoundError: If the source file is missing.
    """
    p = Path(config["source"])
    if not p.exists():
        raise FileNotFoundError(f"Source video not found: {config['source']}")
