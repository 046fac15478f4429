"""Thumbnail and visual feature extraction for rendered videos.

Neither is part of rendering; both are consumers of a finished video
(gallery thumbnails, inputs to performance analysis). Features are cheap
statistics over a handful of evenly spaced frames, each scaled to 0-100.
"""

import tempfile
import uuid
from pathlib import Path

import numpy as np
from moviepy import VideoFileClip

from .ffmpeg import TranscodeCallbacks, probe_duration, run_ffmpeg
from .storage import Storage


def generate_thumbnail(
    source: str | Path,
    output: str | Path | None = None,
    at: float = 0.5,
    storage: Storage | None = None,
    callbacks: TranscodeCallbacks | None = None,
) -> Path | str:
    """Grab one JPEG frame at fraction *at* of the video's duration.

    Args:
        source: Video file.
        output: Where to write the JPEG. Ignored when *storage* is given.
        at: Position as a fraction of the duration (0.5 = midpoint).
        storage: Upload to thumbnails/<uuid>.jpg and return the URL.

    Returns:
        The output Path, or the storage URL.
    """
    if not 0.0 <= at <= 1.0:
        raise ValueError(f"Thumbnail position must be within [0, 1], got {at}")
    if output is None and storage is None:
        raise ValueError("Either output or storage is required")

    timestamp = probe_duration(source) * at

    with tempfile.TemporaryDirectory(prefix="scenecast-thumb-") as tmp:
        target = Path(tmp) / "thumb.jpg"
        run_ffmpeg(
            [
                "-ss", f"{timestamp:.3f}",
                "-i", str(source),
                "-frames:v", "1",
                "-q:v", "2",
                str(target),
            ],
            callbacks,
        )
        data = target.read_bytes()

    if storage is not None:
        return storage.put(
            f"thumbnails/{uuid.uuid4()}.jpg", data,
            access="public", content_type="image/jpeg",
        )
    output = Path(output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(data)
    return output


def _gray(frame: np.ndarray) -> np.ndarray:
    rgb = frame[:, :, :3].astype(np.float32)
    return rgb @ np.array([0.299, 0.587, 0.114], dtype=np.float32)


def extract_features(source: str | Path, samples: int = 8) -> dict[str, float]:
    """Visual statistics of a video, sampled at *samples* evenly spaced frames.

    Returns:
        Dict with avg_brightness, avg_contrast, motion_level and
        color_variance (0-100), and text_coverage (always 0.0; overlay
        text is not detected).
    """
    if samples < 1:
        raise ValueError(f"samples must be >= 1, got {samples}")

    clip = VideoFileClip(str(source), audio=False)
    try:
        last = max(0.0, clip.duration - 1.0 / (clip.fps or 30))
        times = np.linspace(0.0, last, samples)
        frames = [clip.get_frame(float(t)) for t in times]
    finally:
        clip.close()

    grays = [_gray(f) for f in frames]
    brightness = float(np.mean([g.mean() for g in grays])) / 255 * 100
    contrast = float(np.mean([g.std() for g in grays])) / 255 * 100
    color_variance = float(np.mean([
        f[:, :, :3].reshape(-1, 3).astype(np.float32).std(axis=0).mean()
        for f in frames
    ])) / 255 * 100
    if len(grays) > 1:
        motion = float(np.mean([
            np.abs(b - a).mean() for a, b in zip(grays, grays[1:])
        ])) / 255 * 100
    else:
        motion = 0.0

    return {
        "avg_brightness": round(brightness, 2),
        "avg_contrast": round(contrast, 2),
        "motion_level": round(motion, 2),
        "color_variance": round(color_variance, 2),
        "text_coverage": 0.0,
    }
