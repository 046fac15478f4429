"""External transcoding — run ffmpeg with progress reporting.

Every offline stage (trim, concat, encode, thumbnail, platform
optimization) goes through run_ffmpeg(). The child is started with
`-progress pipe:1 -nostats`, so stdout carries key=value progress blocks
that are turned into percentages against an expected duration. stderr
goes to a temp file and becomes the TranscodeError message on failure.

If the caller is interrupted (KeyboardInterrupt) or anything else goes
wrong while ffmpeg runs, the child is terminated before the exception
propagates. No ffmpeg process outlives the call.
"""

import shlex
import subprocess
import tempfile
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger
from moviepy import VideoFileClip

from .errors import TranscodeError
from .settings import ffmpeg_exe


# ── Callbacks ────────────────────────────────────────────────────


def _log_start(cmdline: str) -> None:
    logger.info(f"ffmpeg started: {cmdline}")


def _log_progress(percent: float) -> None:
    logger.debug(f"ffmpeg progress: {percent:.1f}%")


def _log_end() -> None:
    logger.info("ffmpeg finished")


def _log_error(exc: Exception) -> None:
    logger.error(f"ffmpeg failed: {exc}")


@dataclass
class TranscodeCallbacks:
    """Lifecycle hooks for one ffmpeg run. Defaults log through loguru."""

    on_start: Callable[[str], None] = field(default=_log_start)
    on_progress: Callable[[float], None] = field(default=_log_progress)
    on_end: Callable[[], None] = field(default=_log_end)
    on_error: Callable[[Exception], None] = field(default=_log_error)


# ── Runner ───────────────────────────────────────────────────────


def _parse_out_time(key: str, value: str) -> float | None:
    # ffmpeg reports out_time_ms in microseconds (historic misnomer);
    # out_time_us is the same number.
    if key in ("out_time_us", "out_time_ms"):
        try:
            return int(value) / 1_000_000
        except ValueError:
            return None
    return None


def _terminate(proc: subprocess.Popen) -> None:
    if proc.poll() is not None:
        return
    proc.terminate()
    try:
        proc.wait(timeout=5)
    except subprocess.TimeoutExpired:
        proc.kill()
        proc.wait()


def run_ffmpeg(
    args: list[str],
    callbacks: TranscodeCallbacks | None = None,
    duration: float | None = None,
) -> None:
    """Run ffmpeg with *args* (everything after the executable).

    Args:
        args: ffmpeg arguments; `-y`, `-progress pipe:1` and `-nostats`
            are added here.
        callbacks: Lifecycle hooks.
        duration: Expected output duration in seconds, for percentages.
            Without it no progress is reported.

    Raises:
        TranscodeError: ffmpeg exited non-zero or could not be started.
    """
    callbacks = callbacks or TranscodeCallbacks()
    cmd = [ffmpeg_exe(), "-y", "-hide_banner", "-progress", "pipe:1", "-nostats", *args]
    callbacks.on_start(shlex.join(cmd))

    with tempfile.TemporaryFile() as err:
        try:
            proc = subprocess.Popen(
                cmd, stdout=subprocess.PIPE, stderr=err, text=True,
            )
        except OSError as exc:
            error = TranscodeError(f"Could not start ffmpeg: {exc}")
            callbacks.on_error(error)
            raise error from exc

        last_percent = -1.0
        try:
            for line in proc.stdout:
                key, _, value = line.strip().partition("=")
                seconds = _parse_out_time(key, value)
                if seconds is None or not duration:
                    continue
                percent = max(0.0, min(100.0, seconds / duration * 100))
                if percent > last_percent:
                    last_percent = percent
                    callbacks.on_progress(percent)
            returncode = proc.wait()
        except BaseException:
            _terminate(proc)
            raise
        finally:
            proc.stdout.close()

        if returncode != 0:
            err.seek(0)
            stderr = err.read().decode("utf-8", errors="replace").strip()
            tail = "\n".join(stderr.splitlines()[-20:])
            error = TranscodeError(
                tail or f"ffmpeg exited with status {returncode}",
                returncode=returncode,
                stderr=stderr,
            )
            callbacks.on_error(error)
            raise error

    if duration and last_percent < 100:
        callbacks.on_progress(100.0)
    callbacks.on_end()


def probe_duration(path: str | Path) -> float:
    """Duration of a media file in seconds."""
    clip = VideoFileClip(str(path), audio=False)
    try:
        return float(clip.duration)
    finally:
        clip.close()
