"""Frame sinks — where the live synchronizer delivers composed frames.

A sink accepts frames (submit) and turns them into a result (finalize).
The synchronizer does not care which: FrameBufferSink keeps frames in
memory (preview surfaces, tests), EncoderSink pipes them into an ffmpeg
encoder and finalizes to an in-memory Artifact named
"<prefix>-<unixtime>.<ext>". Audio is never written.

Each frame comes with the output time it was composed for. EncoderSink
uses it to place frames on a fixed-rate timeline, so slow ticks do not
shorten the encoded video.
"""

import math
import tempfile
import time
from collections import deque
from pathlib import Path

import imageio_ffmpeg
import numpy as np
from loguru import logger

from .errors import EmptyOutputError
from .models import Artifact
from .settings import CODECS


class FrameSink:
    def submit(self, frame: np.ndarray, output_time: float | None = None) -> None:
        raise NotImplementedError

    def finalize(self):
        raise NotImplementedError


class FrameBufferSink(FrameSink):
    """Keep submitted frames in memory.

    Args:
        maxlen: Keep only the newest *maxlen* frames (1 = latest frame
            for a preview surface). None keeps everything.
    """

    def __init__(self, maxlen: int | None = None):
        self.frames: deque[np.ndarray] = deque(maxlen=maxlen)
        self.submitted = 0
        self.finalized = False

    def submit(self, frame: np.ndarray, output_time: float | None = None) -> None:
        self.frames.append(frame)
        self.submitted += 1

    @property
    def latest(self) -> np.ndarray | None:
        return self.frames[-1] if self.frames else None

    def finalize(self) -> list[np.ndarray]:
        self.finalized = True
        if self.submitted == 0:
            raise EmptyOutputError("No frames were captured")
        return list(self.frames)


def artifact_filename(prefix: str, ext: str, now: float | None = None) -> str:
    """Download name for a capture: <prefix>-<unixtime>.<ext>."""
    stamp = int(now if now is not None else time.time())
    return f"{prefix}-{stamp}.{ext}"


class EncoderSink(FrameSink):
    """Encode frames with ffmpeg at a fixed rate, finalize to an Artifact.

    Frames submitted with an output time are placed on the fps timeline:
    a frame for time t fills every slot up to floor(t * fps), repeating
    itself over slots a slow tick skipped. With *duration* set, finalize
    repeats the last frame until duration * fps slots are written, so the
    encoded video always lasts as long as the capture it records. Frames
    without an output time take exactly one slot each.

    Frames are written to a temporary file that is removed once its
    bytes have been read back (or on failure).

    Args:
        size: (width, height) of submitted frames.
        fps: Frame rate of the encoded video.
        format: "webm" (VP9) or "mp4" (H.264).
        prefix: Artifact filename prefix.
        duration: Output length in seconds to pad to on finalize.
    """

    def __init__(
        self,
        size: tuple[int, int],
        fps: int = 30,
        format: str = "webm",
        prefix: str = "scenecast",
        crf: int = 32,
        duration: float | None = None,
    ):
        self.size = size
        self.fps = fps
        self.format = format
        self.prefix = prefix
        self.crf = crf
        self.duration = duration
        self._tmpdir: tempfile.TemporaryDirectory | None = None
        self._writer = None
        self._path: Path | None = None
        self._last: np.ndarray | None = None
        self.submitted = 0
        self.frames_written = 0

    @property
    def total_slots(self) -> int | None:
        if self.duration is None:
            return None
        return max(1, round(self.duration * self.fps))

    def _open(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory(prefix="scenecast-capture-")
        self._path = Path(self._tmpdir.name) / f"capture.{self.format}"
        codec, params = CODECS[self.format]
        # write_frames sets the pixel format itself.
        params = [p for p in params if p not in ("-pix_fmt", "yuv420p")]
        self._writer = imageio_ffmpeg.write_frames(
            str(self._path),
            self.size,
            fps=self.fps,
            codec=codec,
            quality=None,
            macro_block_size=1,
            ffmpeg_log_level="error",
            output_params=[p.format(crf=self.crf) for p in params] + ["-an"],
        )
        self._writer.send(None)  # prime the generator

    def _write(self, frame: np.ndarray, count: int) -> None:
        if count <= 0:
            return
        if self._writer is None:
            self._open()
        for _ in range(count):
            self._writer.send(frame)
        self.frames_written += count

    def submit(self, frame: np.ndarray, output_time: float | None = None) -> None:
        frame = np.ascontiguousarray(frame)
        self._last = frame
        self.submitted += 1
        if output_time is None:
            self._write(frame, 1)
            return

        # Slots 0..floor(t * fps) are due once time t has been reached.
        due = math.floor(max(0.0, output_time) * self.fps + 1e-6) + 1
        if self.total_slots is not None:
            due = min(due, self.total_slots)
        self._write(frame, due - self.frames_written)

    def finalize(self) -> Artifact:
        try:
            if self._last is not None and self.total_slots is not None:
                self._write(self._last, self.total_slots - self.frames_written)
            if self._writer is not None:
                self._writer.close()
                self._writer = None
            data = self._path.read_bytes() if self._path and self._path.exists() else b""
        finally:
            self.discard()

        if not data:
            raise EmptyOutputError("Capture produced an empty video")

        artifact = Artifact(
            data=data,
            filename=artifact_filename(self.prefix, self.format),
            content_type=f"video/{self.format}",
        )
        logger.info(
            f"Capture complete: {artifact.filename} ({artifact.size} bytes, "
            f"{self.frames_written} frames from {self.submitted} submitted)"
        )
        return artifact

    def discard(self) -> None:
        """Drop the encoder and its temp file without producing output."""
        if self._writer is not None:
            self._writer.close()
            self._writer = None
        if self._tmpdir is not None:
            self._tmpdir.cleanup()
            self._tmpdir = None
