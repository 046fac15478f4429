"""Segment trimming and concatenation — copy-only ffmpeg operations.

Both operations stream-copy (no re-encode), so they are fast but cut on
keyframes and assume every input shares one codec/container layout.
Audio is dropped at the trim stage.
"""

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from loguru import logger

from .ffmpeg import TranscodeCallbacks, run_ffmpeg
from .models import SourceRange
from .settings import MAX_TRIM_WORKERS, MIN_SEGMENT_DURATION


def trim_segment(
    source: str | Path,
    start: float,
    end: float,
    output: str | Path,
    callbacks: TranscodeCallbacks | None = None,
) -> Path:
    """Cut [start, end) out of *source* into *output* without re-encoding.

    Args:
        source: Path to source video.
        start: Start time in seconds (negative values clamp to 0).
        end: End time in seconds.
        output: Output file path.
    """
    output = Path(output)
    output.parent.mkdir(parents=True, exist_ok=True)
    start = max(0.0, start)
    run_ffmpeg(
        [
            "-ss", f"{start:.3f}",
            "-to", f"{end:.3f}",
            "-i", str(source),
            "-c", "copy",
            "-an",
            str(output),
        ],
        callbacks,
        duration=end - start,
    )
    return output


def usable_ranges(ranges: Sequence[SourceRange]) -> list[SourceRange]:
    """Ranges longer than MIN_SEGMENT_DURATION; shorter ones are skipped."""
    kept = []
    for i, rng in enumerate(ranges):
        if rng.duration <= MIN_SEGMENT_DURATION:
            logger.warning(
                f"Segment {i}: {rng.start:.3f}s-{rng.end:.3f}s is too short, skipping"
            )
            continue
        kept.append(rng)
    return kept


def trim_segments(
    source: str | Path,
    ranges: Sequence[SourceRange],
    work_dir: str | Path,
    callbacks: TranscodeCallbacks | None = None,
    max_workers: int = MAX_TRIM_WORKERS,
) -> list[Path]:
    """Trim every range concurrently into *work_dir*, preserving order.

    Raises:
        ValueError: No range survives the minimum-duration filter.
        TranscodeError: Any trim failed.
    """
    kept = usable_ranges(ranges)
    if not kept:
        raise ValueError("No valid segments to render")

    work_dir = Path(work_dir)
    suffix = Path(source).suffix or ".mp4"
    outputs = [work_dir / f"segment_{i:03d}{suffix}" for i in range(len(kept))]

    summary = ", ".join(f"{r.start:.1f}-{r.end:.1f}s" for r in kept)
    logger.info(f"Trimming {len(kept)} segments: {summary}")

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(kept)))) as pool:
        futures = [
            pool.submit(trim_segment, source, rng.start, rng.end, out, callbacks)
            for rng, out in zip(kept, outputs)
        ]
        # result() re-raises the first failure in segment order.
        return [future.result() for future in futures]


def write_concat_list(paths: Sequence[str | Path], list_path: str | Path) -> Path:
    """Write an ffmpeg concat-demuxer list file."""
    list_path = Path(list_path)
    lines = []
    for path in paths:
        escaped = str(Path(path).resolve()).replace("'", "'\\''")
        lines.append(f"file '{escaped}'")
    list_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return list_path


def concat_segments(
    paths: Sequence[str | Path],
    list_path: str | Path,
    output: str | Path,
    callbacks: TranscodeCallbacks | None = None,
) -> Path:
    """Join *paths* end to end into *output* without re-encoding."""
    write_concat_list(paths, list_path)
    run_ffmpeg(
        [
            "-f", "concat",
            "-safe", "0",
            "-i", str(list_path),
            "-c", "copy",
            str(output),
        ],
        callbacks,
    )
    return Path(output)
