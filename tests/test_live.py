"""Tests for the record/preview drivers."""

import time

import pytest

from scenecast.errors import TransportBusyError
from scenecast.ffmpeg import probe_duration
from scenecast.live import record_video, start_preview
from scenecast.models import Scene, Template, TextOverlay
from scenecast.scheduling import ManualClock, ManualScheduler
from scenecast.settings import RenderSettings
from scenecast.sinks import EncoderSink, FrameBufferSink
from scenecast.transport import Transport

SMALL = RenderSettings(resolution=(180, 320), fps=10, format="webm")


def _template():
    return Template(2, (
        Scene(0, 1, TextOverlay("{{hook}}")),
        Scene(1, 2, TextOverlay("{{cta}}")),
    ))


class TestRecordVideo:
    def test_headless_capture_to_artifact(self, source_video):
        clock = ManualClock()
        artifact = record_video(
            source_video, _template(), {"hook": "Wow", "cta": "Follow"}, SMALL,
            clock=clock, scheduler=ManualScheduler(clock, interval=0.1),
            prefix="test",
        )
        assert artifact.size > 0
        assert artifact.content_type == "video/webm"
        assert artifact.filename.startswith("test-")
        assert artifact.filename.endswith(".webm")

    def test_mp4_sink(self, source_video):
        clock = ManualClock()
        sink = EncoderSink((180, 320), fps=10, format="mp4")
        artifact = record_video(
            source_video, _template(), {}, SMALL,
            clock=clock, scheduler=ManualScheduler(clock, interval=0.1), sink=sink,
        )
        assert artifact.content_type == "video/mp4"
        assert artifact.data[4:8] == b"ftyp"

    def test_injected_transport_and_buffer(self, time_coded_source):
        clock = ManualClock()
        transport = Transport(time_coded_source, 10, (320, 240), fps=10, clock=clock)
        frames = record_video(
            transport, _template(), {}, SMALL,
            clock=clock, scheduler=ManualScheduler(clock, interval=0.1),
            sink=FrameBufferSink(),
        )
        assert 19 <= len(frames) <= 21
        assert frames[0].shape == (320, 180, 3)
        assert transport.owner is None

    def test_realtime_capture_with_slow_frames_keeps_duration(
        self, time_coded_source, tmp_path,
    ):
        def slow_source(t):
            time.sleep(0.2)
            return time_coded_source(t)

        template = Template(1.5, (
            Scene(0, 0.75, TextOverlay("{{hook}}")),
            Scene(0.75, 1.5, TextOverlay("{{cta}}")),
        ))
        transport = Transport(slow_source, 10, (320, 240), fps=10)
        sink = EncoderSink((180, 320), fps=10, format="mp4")
        artifact = record_video(
            transport, template, {"hook": "Wow", "cta": "Follow"}, SMALL, sink=sink,
        )
        assert sink.submitted < 15
        assert sink.frames_written == 15

        out = tmp_path / artifact.filename
        out.write_bytes(artifact.data)
        assert probe_duration(out) == pytest.approx(1.5, abs=0.2)


class TestStartPreview:
    def test_preview_then_record_same_transport(self, time_coded_source):
        clock = ManualClock()
        scheduler = ManualScheduler(clock, interval=0.1)
        transport = Transport(time_coded_source, 10, (320, 240), fps=10, clock=clock)
        sink = FrameBufferSink(maxlen=1)

        preview = start_preview(
            transport, _template(), {}, sink, SMALL, scheduler=scheduler,
        )
        scheduler.run(max_ticks=30)
        assert sink.submitted == 30
        assert len(sink.frames) == 1

        with pytest.raises(TransportBusyError):
            record_video(
                transport, _template(), {}, SMALL, clock=clock,
                scheduler=ManualScheduler(clock, interval=0.1), sink=FrameBufferSink(),
            )

        preview.stop()
        frames = record_video(
            transport, _template(), {}, SMALL, clock=clock,
            scheduler=ManualScheduler(clock, interval=0.1), sink=FrameBufferSink(),
        )
        assert len(frames) >= 19
