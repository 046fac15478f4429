"""Offline pipeline — render a template over a source video with ffmpeg.

Uses native ffmpeg instead of a Python frame loop: the whole template
becomes one -vf chain (filters.build_filter_graph) and ffmpeg handles
demuxing, scaling, text drawing and encoding internally.

Two entry shapes:
  - single segment: the whole source (optionally a start/end sub-range)
    goes through one encode.
  - multi segment: each SourceRange is trimmed copy-only (concurrently),
    the pieces are concatenated copy-only, and the merged clip goes
    through the single-segment encode.

Everything intermediate (trimmed pieces, concat list, overlay text
files, the encode target) lives in one TemporaryDirectory that is
removed on every exit path. The caller's output path is only written
once the encode has succeeded, so a failure never leaves a partial file.
"""

import shutil
import tempfile
import uuid
from collections.abc import Sequence
from pathlib import Path

from loguru import logger

from .errors import EmptyOutputError, Issue
from .ffmpeg import TranscodeCallbacks, run_ffmpeg
from .filters import build_filter_graph, scale_crop_filter
from .models import SourceRange, Template
from .settings import RenderSettings
from .storage import Storage
from .trim import concat_segments, trim_segments


# ── Platform presets ─────────────────────────────────────────────

PLATFORM_PRESETS = {
    "tiktok": {"resolution": (1080, 1920), "bitrate": "2500k", "fps": 30, "format": "mp4"},
    "instagram": {"resolution": (1080, 1920), "bitrate": "3500k", "fps": 30, "format": "mp4"},
    "youtube": {"resolution": (1080, 1920), "bitrate": "4000k", "fps": 30, "format": "mp4"},
}


class OfflineRenderer:
    """Render templates to files, bytes or storage URLs.

    Args:
        settings: Output resolution, fps, format and crf.
        callbacks: ffmpeg lifecycle hooks shared by every stage.
        aliases: Optional variable alias table.
    """

    def __init__(
        self,
        settings: RenderSettings | None = None,
        callbacks: TranscodeCallbacks | None = None,
        aliases: dict[str, list[str]] | None = None,
    ):
        self.settings = settings or RenderSettings()
        self.callbacks = callbacks or TranscodeCallbacks()
        self.aliases = aliases
        self.issues: list[Issue] = []

    # ── Encode ──────────────────────────────────────────────────

    def _encode(
        self,
        template: Template,
        source: Path,
        content: dict,
        work_dir: Path,
        source_range: SourceRange | None = None,
    ) -> Path:
        settings = self.settings
        target = work_dir / f"render.{settings.format}"
        vf = build_filter_graph(
            template, content, settings, work_dir, self.issues, self.aliases,
        )

        duration = template.duration
        seek = []
        if source_range is not None:
            seek = ["-ss", f"{max(0.0, source_range.start):.3f}"]
            duration = max(0.1, source_range.end - source_range.start)

        args = [
            *seek,
            "-i", str(source),
            "-vf", vf,
            "-t", f"{duration:.3f}",
            "-r", str(settings.fps),
            *settings.codec_args(),
            "-an",
            "-f", settings.format,
            str(target),
        ]
        logger.info(
            f"Rendering {len(template.scenes)} scenes from {source.name} "
            f"({settings.width}x{settings.height} {settings.format}, {duration:.2f}s)"
        )
        run_ffmpeg(args, self.callbacks, duration=duration)

        if not target.exists() or target.stat().st_size == 0:
            raise EmptyOutputError(f"ffmpeg produced no output for {source}")
        return target

    def _render_in(
        self,
        work_dir: Path,
        template: Template,
        source: Path,
        content: dict,
        segments: Sequence[SourceRange] | None,
        source_range: SourceRange | None,
    ) -> Path:
        if not segments:
            return self._encode(template, source, content, work_dir, source_range)

        pieces = trim_segments(source, segments, work_dir, self.callbacks)
        merged = concat_segments(
            pieces,
            work_dir / "concat.txt",
            work_dir / f"merged{source.suffix or '.mp4'}",
            self.callbacks,
        )
        return self._encode(template, merged, content, work_dir)

    # ── Public API ──────────────────────────────────────────────

    def render_to_file(
        self,
        template: Template,
        source: str | Path,
        content: dict,
        output: str | Path,
        segments: Sequence[SourceRange] | None = None,
        source_range: SourceRange | None = None,
    ) -> Path:
        """Render to *output*. The file appears only after a successful encode."""
        source = Path(source)
        if not source.exists():
            raise FileNotFoundError(f"Source video not found: {source}")
        output = Path(output)

        with tempfile.TemporaryDirectory(prefix="scenecast-render-") as tmp:
            rendered = self._render_in(
                Path(tmp), template, source, content, segments, source_range,
            )
            output.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(rendered), str(output))

        logger.info(f"Done: {output}")
        return output

    def render_bytes(
        self,
        template: Template,
        source: str | Path,
        content: dict,
        segments: Sequence[SourceRange] | None = None,
        source_range: SourceRange | None = None,
    ) -> bytes:
        """Render and return the encoded video; nothing is left on disk."""
        source = Path(source)
        if not source.exists():
            raise FileNotFoundError(f"Source video not found: {source}")

        with tempfile.TemporaryDirectory(prefix="scenecast-render-") as tmp:
            rendered = self._render_in(
                Path(tmp), template, source, content, segments, source_range,
            )
            return rendered.read_bytes()

    def render_and_upload(
        self,
        template: Template,
        source: str | Path,
        content: dict,
        storage: Storage,
        segments: Sequence[SourceRange] | None = None,
        source_range: SourceRange | None = None,
    ) -> str:
        """Render and upload to videos/<uuid>.<format>; returns the URL."""
        data = self.render_bytes(template, source, content, segments, source_range)
        fmt = self.settings.format
        return storage.put(
            f"videos/{uuid.uuid4()}.{fmt}",
            data,
            access="public",
            content_type=f"video/{fmt}",
        )

    def render(
        self,
        template: Template,
        source: str | Path,
        content: dict,
        segments: Sequence[SourceRange] | None = None,
        output: str | Path | None = None,
        storage: Storage | None = None,
        source_range: SourceRange | None = None,
    ) -> Path | str | bytes:
        """Render and return a Path (output), a URL (storage) or bytes."""
        if output is not None:
            return self.render_to_file(
                template, source, content, output, segments, source_range,
            )
        if storage is not None:
            return self.render_and_upload(
                template, source, content, storage, segments, source_range,
            )
        return self.render_bytes(template, source, content, segments, source_range)


def optimize_for_platform(
    source: str | Path,
    platform: str,
    output: str | Path,
    callbacks: TranscodeCallbacks | None = None,
) -> Path:
    """Re-encode a finished video with a platform's size/bitrate/fps preset."""
    if platform not in PLATFORM_PRESETS:
        raise ValueError(
            f"Unknown platform '{platform}'. Valid: {sorted(PLATFORM_PRESETS)}"
        )
    preset = PLATFORM_PRESETS[platform]
    width, height = preset["resolution"]
    output = Path(output)

    with tempfile.TemporaryDirectory(prefix="scenecast-optimize-") as tmp:
        target = Path(tmp) / f"optimized.{preset['format']}"
        run_ffmpeg(
            [
                "-i", str(source),
                "-vf", scale_crop_filter(width, height),
                "-c:v", "libx264",
                "-b:v", preset["bitrate"],
                "-r", str(preset["fps"]),
                "-pix_fmt", "yuv420p",
                "-an",
                str(target),
            ],
            callbacks,
        )
        output.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(target), str(output))
    logger.info(f"Optimized for {platform}: {output}")
    return output
