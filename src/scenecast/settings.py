"""Render settings and engine-wide constants.

Settings come from the `video:` section of a manifest (see manifest.py);
anything left out falls back to the defaults here. The ffmpeg executable
is taken from SCENECAST_FFMPEG when set, otherwise from the binary
bundled with imageio-ffmpeg.
"""

import os
from dataclasses import dataclass

import imageio_ffmpeg


# ── Output canvas ────────────────────────────────────────────────
# Output is always vertical 9:16.

TARGET_ASPECT = 9 / 16
DEFAULT_RESOLUTION = (1080, 1920)
VALID_RESOLUTIONS = {(1080, 1920), (720, 1280)}

# ── Live synchronization ─────────────────────────────────────────
# Preview tolerates more drift than a final recording because it need
# not be frame-exact and extra seeks show up as jitter.

RECORD_DRIFT_THRESHOLD = 0.15
PREVIEW_DRIFT_THRESHOLD = 0.20

# ── Offline pipeline ────────────────────────────────────────────

MIN_SEGMENT_DURATION = 0.05   # trims at or below this are skipped
MAX_TRIM_WORKERS = 4

VALID_FORMATS = {"mp4", "webm"}

CODECS = {
    "mp4": ("libx264", ["-crf", "{crf}", "-preset", "medium", "-pix_fmt", "yuv420p"]),
    "webm": ("libvpx-vp9", ["-crf", "{crf}", "-b:v", "0", "-pix_fmt", "yuv420p"]),
}


def ffmpeg_exe() -> str:
    """Path of the ffmpeg binary to run."""
    return os.environ.get("SCENECAST_FFMPEG") or imageio_ffmpeg.get_ffmpeg_exe()


@dataclass(frozen=True)
class RenderSettings:
    resolution: tuple[int, int] = DEFAULT_RESOLUTION
    fps: int = 30
    format: str = "mp4"
    crf: int = 20
    record_drift_threshold: float = RECORD_DRIFT_THRESHOLD
    preview_drift_threshold: float = PREVIEW_DRIFT_THRESHOLD

    @property
    def width(self) -> int:
        return self.resolution[0]

    @property
    def height(self) -> int:
        return self.resolution[1]

    @property
    def content_type(self) -> str:
        return f"video/{self.format}"

    def codec_args(self) -> list[str]:
        """ffmpeg encoder arguments for the configured output format."""
        codec, params = CODECS[self.format]
        return ["-c:v", codec, *(p.format(crf=self.crf) for p in params)]

    @classmethod
    def from_dict(cls, video: dict | None) -> "RenderSettings":
        """Build settings from a manifest `video:` section (already validated)."""
        video = video or {}
        drift = video.get("drift_threshold")
        return cls(
            resolution=tuple(video.get("resolution", DEFAULT_RESOLUTION)),
            fps=int(video.get("fps", 30)),
            format=video.get("format", "mp4"),
            crf=int(video.get("crf", 20)),
            record_drift_threshold=float(drift) if drift is not None else RECORD_DRIFT_THRESHOLD,
            preview_drift_threshold=float(drift) if drift is not None else PREVIEW_DRIFT_THRESHOLD,
        )
