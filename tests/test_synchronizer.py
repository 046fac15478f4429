"""Tests for the live synchronizer, driven by a manual clock."""

import numpy as np
import pytest

from scenecast.errors import MediaNotReadyError, Severity, TransportBusyError
from scenecast.models import Scene, Template, TextOverlay, TextStyle
from scenecast.scheduling import ManualClock, ManualScheduler
from scenecast.sinks import FrameBufferSink
from scenecast.synchronizer import LiveSynchronizer, compute_cover_rect, cover_frame
from scenecast.transport import Transport

CANVAS = (108, 192)


class RecordingTransport(Transport):
    """Transport that remembers every seek target."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.seeks = []

    def seek(self, t):
        self.seeks.append(t)
        super().seek(t)


def _rig(time_coded_source, template, source_duration=24.0, mode="record", **kwargs):
    clock = ManualClock()
    scheduler = ManualScheduler(clock, interval=0.1)
    transport = RecordingTransport(
        time_coded_source, source_duration, (320, 240), fps=10, clock=clock,
    )
    sink = FrameBufferSink()
    sync = LiveSynchronizer(
        template, transport, sink, kwargs.pop("content", {}), clock, scheduler,
        mode=mode, canvas_size=CANVAS, **kwargs,
    )
    return sync, transport, scheduler, sink


def _corner_values(frames):
    return [int(f[0, 0, 0]) for f in frames]


class TestRecordMode:
    def test_hard_seeks_at_scene_boundaries(self, time_coded_source):
        template = Template(12, (Scene(0, 3), Scene(3, 12)))
        sync, transport, scheduler, _ = _rig(time_coded_source, template)
        sync.start()
        scheduler.run()
        assert transport.seeks == pytest.approx([0.0, 0.0, 12.0])

    def test_stops_at_duration_and_finalizes(self, time_coded_source):
        template = Template(12, (Scene(0, 3), Scene(3, 12)))
        sync, transport, scheduler, sink = _rig(time_coded_source, template)
        sync.start()
        scheduler.run()
        assert sync.finished
        assert not sync.running
        assert sink.finalized
        assert sync.result is not None
        assert 119 <= sync.frames_emitted <= 121
        assert sync.last_output_time < 12
        assert transport.paused
        assert transport.owner is None
        assert scheduler.idle

    def test_frames_follow_mapped_source_time(self, time_coded_source):
        template = Template(12, (Scene(0, 3), Scene(3, 12)))
        sync, _, scheduler, sink = _rig(time_coded_source, template)
        sync.start()
        scheduler.run()
        values = _corner_values(sink.frames)
        # Scene 1 plays source 0-3s, scene 2 source 12-21s (value = t * 10).
        assert values[0] == 0
        assert values[29] == pytest.approx(29, abs=1)
        assert values[31] == pytest.approx(121, abs=1)
        assert values[-1] == pytest.approx(209, abs=2)

    def test_scene_range_capped_to_source(self, time_coded_source):
        template = Template(6, (Scene(0, 3), Scene(3, 6)))
        sync, transport, scheduler, _ = _rig(time_coded_source, template, source_duration=4.0)
        sync.start()
        scheduler.run()
        assert all(0 <= s <= 4.0 for s in transport.seeks)

    def test_no_scenes_plays_straight_through(self, time_coded_source):
        template = Template(2)
        sync, transport, scheduler, sink = _rig(time_coded_source, template)
        sync.start()
        scheduler.run()
        values = _corner_values(sink.frames)
        assert values[:3] == [0, 1, 2]
        assert sync.finished
        assert transport.seeks == [0.0]

    def test_explicit_video_range(self, time_coded_source):
        template = Template(4, (Scene(0, 4, video_start=10.0, video_end=14.0),))
        sync, transport, scheduler, sink = _rig(time_coded_source, template)
        sync.start()
        scheduler.run()
        assert transport.seeks[0] == 10.0
        assert _corner_values(sink.frames)[0] == 100


class TestDriftCorrection:
    def _started(self, time_coded_source):
        template = Template(10, (Scene(0, 10, video_start=0.0, video_end=10.0),))
        sync, transport, scheduler, _ = _rig(time_coded_source, template, source_duration=20.0)
        sync.start()
        for _ in range(5):
            scheduler.run_next()
        return sync, transport, scheduler

    def test_large_drift_soft_seeks_to_target(self, time_coded_source):
        sync, transport, scheduler = self._started(time_coded_source)
        transport.seek(5.0)
        scheduler.run_next()
        assert transport.seeks[-1] == pytest.approx(0.5)

    def test_small_drift_left_alone(self, time_coded_source):
        sync, transport, scheduler = self._started(time_coded_source)
        transport.seek(0.6)  # target at the next tick is 0.5
        scheduler.run_next()
        assert transport.seeks[-1] == 0.6

    def test_paused_transport_resumed(self, time_coded_source):
        sync, transport, scheduler = self._started(time_coded_source)
        transport.pause()
        scheduler.run_next()
        assert not transport.paused

    def test_threshold_defaults_and_override(self, time_coded_source):
        template = Template(2)
        record, *_ = _rig(time_coded_source, template)
        preview, *_ = _rig(time_coded_source, template, mode="preview")
        custom, *_ = _rig(time_coded_source, template, drift_threshold=0.05)
        assert record.drift_threshold == 0.15
        assert preview.drift_threshold == 0.20
        assert custom.drift_threshold == 0.05


class TestPreviewMode:
    def test_loops_and_reseeks_each_pass(self, time_coded_source):
        template = Template(4, (Scene(0, 2), Scene(2, 4)))
        sync, transport, scheduler, sink = _rig(
            time_coded_source, template, source_duration=10.0, mode="preview",
        )
        sync.start()
        scheduler.run(max_ticks=100)
        assert sync.running
        assert not sink.finalized
        assert sink.submitted == 100
        # start + first tick, then alternate scene 2 / scene 1 every 2s.
        assert transport.seeks[:6] == pytest.approx([0.0, 0.0, 5.0, 0.0, 5.0, 0.0])

    def test_stop_cancels_and_releases(self, time_coded_source):
        template = Template(4, (Scene(0, 4),))
        sync, transport, scheduler, sink = _rig(
            time_coded_source, template, mode="preview",
        )
        sync.start()
        scheduler.run(max_ticks=3)
        sync.stop()
        assert scheduler.idle
        assert transport.owner is None
        assert transport.paused
        assert scheduler.run() == 0
        assert sink.submitted == 3


class TestStartFailures:
    def test_media_not_ready(self):
        clock = ManualClock()
        transport = Transport(None, 10, (320, 240), clock=clock)
        sync = LiveSynchronizer(
            Template(2), transport, FrameBufferSink(), {}, clock,
            ManualScheduler(clock), canvas_size=CANVAS,
        )
        with pytest.raises(MediaNotReadyError):
            sync.start()
        assert transport.owner is None

    def test_transport_busy(self, time_coded_source):
        sync, transport, scheduler, _ = _rig(time_coded_source, Template(2))
        transport.claim("someone else")
        with pytest.raises(TransportBusyError):
            sync.start()
        assert scheduler.idle

    def test_unknown_mode(self, time_coded_source):
        with pytest.raises(ValueError, match="Unknown mode"):
            _rig(time_coded_source, Template(2), mode="rewind")


class TestOverlays:
    def test_overlay_drawn_on_frames(self, time_coded_source):
        scene = Scene(0, 1, TextOverlay("Hi", (50, 50), TextStyle(background="#ff0000")))
        sync, _, scheduler, sink = _rig(time_coded_source, Template(1, (scene,)))
        sync.start()
        scheduler.run()
        center = sink.frames[0][96, 54]
        assert tuple(center) != (0, 0, 0)

    def test_overlay_failure_is_warning_not_fatal(self, time_coded_source):
        scene = Scene(0, 1, TextOverlay("Hi", style=TextStyle(color="not-a-color")))
        sync, _, scheduler, sink = _rig(time_coded_source, Template(1, (scene,)))
        sync.start()
        scheduler.run()
        assert sync.finished
        assert sink.submitted == sync.frames_emitted > 0
        assert sync.issues
        assert all(i.severity == Severity.WARNING for i in sync.issues)

    def test_missing_variable_reported_once(self, time_coded_source):
        scene = Scene(0, 1, TextOverlay("{{hook}}"))
        sync, _, scheduler, _ = _rig(time_coded_source, Template(1, (scene,)))
        sync.start()
        scheduler.run()
        assert len(sync.issues) == 1
        assert sync.issues[0].context == {"variable": "hook"}


class TestCoverRect:
    def test_wide_source_crops_sides(self):
        x, y, w, h = compute_cover_rect(1920, 1080, 1080, 1920)
        assert h == 1920
        assert w == pytest.approx(3413.33, abs=0.01)
        assert x == pytest.approx(-1166.67, abs=0.01)
        assert y == 0

    def test_tall_source_crops_top_bottom(self):
        x, y, w, h = compute_cover_rect(1080, 3840, 1080, 1920)
        assert (x, w, h) == (0, 1080, 3840)
        assert y == -960

    def test_matching_aspect_fills_exactly(self):
        assert compute_cover_rect(540, 960, 1080, 1920) == (0, 0, 1080, 1920)

    def test_cover_frame_center_crop(self):
        frame = np.zeros((100, 200, 3), dtype=np.uint8)
        frame[:, :100] = (255, 0, 0)
        frame[:, 100:] = (0, 0, 255)
        img = cover_frame(frame, (90, 160))
        assert img.size == (90, 160)
        assert img.getpixel((10, 80))[0] > 200
        assert img.getpixel((80, 80))[2] > 200
