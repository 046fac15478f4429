"""Tests for frame sinks."""

import numpy as np
import pytest
from moviepy import VideoFileClip

from scenecast.errors import EmptyOutputError
from scenecast.sinks import EncoderSink, FrameBufferSink, artifact_filename


def _frame(value=128, size=(64, 48)):
    w, h = size
    return np.full((h, w, 3), value, dtype=np.uint8)


class TestFrameBufferSink:
    def test_keeps_frames(self):
        sink = FrameBufferSink()
        for v in (1, 2, 3):
            sink.submit(_frame(v))
        frames = sink.finalize()
        assert [int(f[0, 0, 0]) for f in frames] == [1, 2, 3]

    def test_maxlen_keeps_latest(self):
        sink = FrameBufferSink(maxlen=1)
        sink.submit(_frame(1))
        sink.submit(_frame(2))
        assert sink.submitted == 2
        assert int(sink.latest[0, 0, 0]) == 2

    def test_empty_finalize_raises(self):
        with pytest.raises(EmptyOutputError):
            FrameBufferSink().finalize()


class TestArtifactFilename:
    def test_format(self):
        assert artifact_filename("scenecast", "webm", now=1700000000.7) == "scenecast-1700000000.webm"


class TestEncoderSink:
    def test_mp4_artifact(self, tmp_path):
        sink = EncoderSink((64, 48), fps=10, format="mp4", prefix="cap")
        for v in range(20):
            sink.submit(_frame(v * 10))
        artifact = sink.finalize()
        assert artifact.content_type == "video/mp4"
        assert artifact.filename.startswith("cap-")

        out = tmp_path / artifact.filename
        out.write_bytes(artifact.data)
        with VideoFileClip(str(out)) as clip:
            assert tuple(clip.size) == (64, 48)
            assert clip.duration == pytest.approx(2.0, abs=0.2)
            assert clip.audio is None

    def test_webm_artifact(self):
        sink = EncoderSink((64, 48), fps=10, format="webm")
        for _ in range(5):
            sink.submit(_frame())
        artifact = sink.finalize()
        assert artifact.content_type == "video/webm"
        # EBML magic
        assert artifact.data[:4] == b"\x1a\x45\xdf\xa3"

    def test_no_frames_raises(self):
        with pytest.raises(EmptyOutputError):
            EncoderSink((64, 48)).finalize()

    def test_discard_cleans_up(self):
        sink = EncoderSink((64, 48), fps=10, format="mp4")
        sink.submit(_frame())
        path = sink._path
        sink.discard()
        assert not path.exists()

    def test_timed_frames_fill_skipped_slots(self):
        sink = EncoderSink((64, 48), fps=10, format="mp4")
        sink.submit(_frame(), 0.0)
        sink.submit(_frame(), 0.5)
        sink.submit(_frame(), 0.9)
        assert sink.submitted == 3
        assert sink.frames_written == 10
        sink.discard()

    def test_frames_faster_than_rate_share_a_slot(self):
        sink = EncoderSink((64, 48), fps=10, format="mp4")
        for t in (0.0, 0.02, 0.05):
            sink.submit(_frame(), t)
        assert sink.frames_written == 1
        sink.discard()

    def test_slots_capped_at_duration(self):
        sink = EncoderSink((64, 48), fps=10, format="mp4", duration=1.0)
        sink.submit(_frame(), 0.0)
        sink.submit(_frame(), 3.0)
        assert sink.frames_written == 10
        sink.discard()

    def test_finalize_pads_to_duration(self, tmp_path):
        sink = EncoderSink((64, 48), fps=10, format="mp4", duration=2.0)
        sink.submit(_frame(10), 0.0)
        sink.submit(_frame(200), 0.4)
        artifact = sink.finalize()
        assert sink.frames_written == 20

        out = tmp_path / artifact.filename
        out.write_bytes(artifact.data)
        with VideoFileClip(str(out)) as clip:
            assert clip.duration == pytest.approx(2.0, abs=0.2)
