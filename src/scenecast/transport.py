"""Video transport — one source video with play/pause/seek semantics.

A transport behaves like a media element: once playing, its current
time advances with the clock on its own, independently of whoever is
watching it. The live synchronizer only nudges it (seek, play, pause)
and reads frames at whatever position it has reached.

Ownership is exclusive. A driver must claim() a transport before
steering it and release() it afterwards; a second claim while another
driver holds it raises TransportBusyError. Preview and final capture
therefore can never fight over the same transport.

Time is clamped to [0, duration]. A transport that plays past the end
stops there (like a media element reaching "ended"), so every frame read
comes from an in-bounds source time.
"""

from collections.abc import Callable
from pathlib import Path

import numpy as np
from loguru import logger
from moviepy import VideoFileClip

from .errors import MediaNotReadyError, TransportBusyError
from .scheduling import Clock, MonotonicClock


class Transport:
    """Clock-driven playback position over a frame source.

    Args:
        frame_source: Callable t -> RGB frame (h, w, 3) uint8.
        duration: Source length in seconds.
        size: (width, height) of source frames.
        fps: Source frame rate (used to keep reads off the last boundary).
        clock: Shared clock; the synchronizer must use the same one.
    """

    def __init__(
        self,
        frame_source: Callable[[float], np.ndarray] | None,
        duration: float,
        size: tuple[int, int],
        fps: float = 30,
        clock: Clock | None = None,
    ):
        self._frame_source = frame_source
        self.duration = float(duration)
        self.size = size
        self.fps = fps
        self.clock = clock or MonotonicClock()
        self._position = 0.0
        self._playing_since: float | None = None
        self._owner = None

    # ── Readiness ───────────────────────────────────────────────

    @property
    def ready(self) -> bool:
        return self._frame_source is not None

    def load(self) -> None:
        """Make the source readable. Base transports are ready on creation."""
        if not self.ready:
            raise MediaNotReadyError("Transport has no frame source")

    def close(self) -> None:
        self._frame_source = None

    # ── Ownership ───────────────────────────────────────────────

    @property
    def owner(self):
        return self._owner

    def claim(self, owner) -> None:
        if self._owner is not None and self._owner is not owner:
            raise TransportBusyError(
                f"Transport already driven by {self._owner!r}"
            )
        self._owner = owner

    def release(self, owner) -> None:
        if self._owner is owner:
            self._owner = None

    # ── Playback ────────────────────────────────────────────────

    def _clamp(self, t: float) -> float:
        return max(0.0, min(self.duration, t))

    @property
    def current_time(self) -> float:
        if self._playing_since is None:
            return self._position
        elapsed = self.clock.now() - self._playing_since
        return self._clamp(self._position + elapsed)

    @property
    def paused(self) -> bool:
        if self._playing_since is None:
            return True
        # Reaching the end pauses playback, as a media element does.
        if self.current_time >= self.duration:
            self.pause()
            return True
        return False

    def play(self) -> None:
        if self._playing_since is None and self._position < self.duration:
            self._playing_since = self.clock.now()

    def pause(self) -> None:
        if self._playing_since is not None:
            self._position = self.current_time
            self._playing_since = None

    def seek(self, t: float) -> None:
        self._position = self._clamp(t)
        if self._playing_since is not None:
            self._playing_since = self.clock.now()

    # ── Frames ──────────────────────────────────────────────────

    def read_frame(self) -> np.ndarray:
        """Frame at the current position."""
        if not self.ready:
            raise MediaNotReadyError("Transport is not loaded")
        # Decoders have no frame exactly at t == duration.
        last = max(0.0, self.duration - 1.0 / max(self.fps, 1))
        return self._frame_source(min(self.current_time, last))


class ClipTransport(Transport):
    """Transport backed by a video file decoded with moviepy.

    Metadata (duration, size, fps) is read once in load(); the render
    loop never waits on the decoder beyond the per-tick frame read.
    Audio is never opened.
    """

    def __init__(self, path: str | Path, clock: Clock | None = None):
        super().__init__(None, 0.0, (0, 0), clock=clock)
        self.path = Path(path)
        self._clip: VideoFileClip | None = None

    def load(self) -> None:
        if self._clip is not None:
            return
        if not self.path.exists():
            raise MediaNotReadyError(f"Source video not found: {self.path}")
        try:
            clip = VideoFileClip(str(self.path), audio=False)
        except (OSError, KeyError, IndexError, ValueError) as exc:
            raise MediaNotReadyError(
                f"Could not load source video {self.path}: {exc}"
            ) from exc
        if not clip.duration or clip.duration <= 0:
            clip.close()
            raise MediaNotReadyError(f"Source video has no duration: {self.path}")

        self._clip = clip
        self._frame_source = clip.get_frame
        self.duration = float(clip.duration)
        self.size = tuple(clip.size)
        self.fps = clip.fps or 30
        logger.info(
            f"Loaded source {self.path.name}: {self.size[0]}x{self.size[1]}, "
            f"{self.duration:.2f}s @ {self.fps:g}fps"
        )

    def close(self) -> None:
        if self._clip is not None:
            self._clip.close()
            self._clip = None
        super().close()

    def __enter__(self):
        self.load()
        return self

    def __exit__(self, *exc_info):
        self.close()
