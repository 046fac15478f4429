"""Shared test fixtures for scenecast tests."""

import subprocess

import numpy as np
import pytest
import imageio_ffmpeg

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()


def _make_clip(out, duration, size="320x240", fps=10, audio=False):
    cmd = [
        _FFMPEG, "-y",
        "-f", "lavfi", "-i", f"testsrc=s={size}:d={duration}:r={fps}",
    ]
    if audio:
        cmd += ["-f", "lavfi", "-i", "anullsrc=r=44100:cl=mono", "-shortest"]
    cmd += ["-c:v", "libx264", "-crf", "28", "-pix_fmt", "yuv420p", "-g", str(fps)]
    if audio:
        cmd += ["-c:a", "aac", "-b:a", "32k"]
    cmd.append(str(out))
    subprocess.run(cmd, check=True, capture_output=True)
    return out


@pytest.fixture
def source_video(tmp_path):
    """A 5-second test video (320x240, 10fps) with an audio track."""
    return _make_clip(tmp_path / "source.mp4", 5, audio=True)


@pytest.fixture
def long_source_video(tmp_path):
    """A 24-second test video (320x240, 10fps), keyframe every second."""
    return _make_clip(tmp_path / "long.mp4", 24)


@pytest.fixture(scope="session")
def has_drawtext():
    result = subprocess.run(
        [_FFMPEG, "-hide_banner", "-filters"],
        capture_output=True, text=True,
    )
    return " drawtext " in result.stdout


@pytest.fixture
def require_drawtext(has_drawtext):
    """Skip when the bundled ffmpeg was built without libfreetype."""
    if not has_drawtext:
        pytest.skip("ffmpeg has no drawtext filter")


@pytest.fixture
def time_coded_source():
    """Frame source whose pixel value encodes the requested time.

    Frame at t has every pixel = round(t * 10) % 256, so tests can tell
    which source time a frame was read from.
    """
    def _frame(t):
        return np.full((240, 320, 3), round(t * 10) % 256, dtype=np.uint8)
    return _frame
