"""Live drivers — final capture and looping preview.

record_video() plays a template against a source once, in real time by
default, and returns the encoded Artifact. start_preview() starts a
looping synchronizer and hands it back; the caller pumps its scheduler
and calls stop() when done.

Both accept an injected clock, scheduler, transport and sink so the same
code path can run headless and deterministic (ManualClock +
ManualScheduler) instead of against the wall clock.
"""

from pathlib import Path

from loguru import logger

from .errors import CompositionError
from .models import Artifact, Template
from .scheduling import (
    Clock,
    ManualScheduler,
    MonotonicClock,
    RealtimeScheduler,
    Scheduler,
)
from .settings import RenderSettings
from .sinks import EncoderSink, FrameSink
from .synchronizer import PREVIEW, RECORD, LiveSynchronizer
from .transport import ClipTransport, Transport


def _run(scheduler: Scheduler) -> int:
    if isinstance(scheduler, (ManualScheduler, RealtimeScheduler)):
        return scheduler.run()
    raise TypeError(f"Cannot drive scheduler of type {type(scheduler).__name__}")


def record_video(
    source: str | Path | Transport,
    template: Template,
    content: dict,
    settings: RenderSettings | None = None,
    *,
    clock: Clock | None = None,
    scheduler: Scheduler | None = None,
    sink: FrameSink | None = None,
    prefix: str = "scenecast",
    aliases: dict[str, list[str]] | None = None,
) -> Artifact:
    """Capture one pass of *template* over *source*.

    Args:
        source: Video path, or an already-built Transport.
        template: Template to record.
        content: Template variable values.
        settings: Canvas size, fps and drift threshold. Live captures
            default to webm when no sink is given.
        clock, scheduler: Default to the wall clock and a realtime
            scheduler at settings.fps.
        sink: Defaults to a webm EncoderSink. An EncoderSink is padded to
            the template duration however slowly frames arrive.
        prefix: Artifact filename prefix.

    Returns:
        Whatever the sink finalizes to; an Artifact for EncoderSink.

    Raises:
        MediaNotReadyError: The source could not be loaded.
        EmptyOutputError: The capture produced no data.
    """
    settings = settings or RenderSettings(format="webm")
    clock = clock or MonotonicClock()
    scheduler = scheduler or RealtimeScheduler(settings.fps)
    if sink is None:
        sink = EncoderSink(
            settings.resolution, fps=settings.fps, format="webm", prefix=prefix,
            duration=template.duration,
        )
    elif isinstance(sink, EncoderSink) and sink.duration is None:
        sink.duration = template.duration

    owns_transport = not isinstance(source, Transport)
    transport = ClipTransport(source, clock=clock) if owns_transport else source

    sync = LiveSynchronizer(
        template, transport, sink, content, clock, scheduler,
        mode=RECORD,
        canvas_size=settings.resolution,
        drift_threshold=settings.record_drift_threshold,
        aliases=aliases,
    )
    try:
        sync.start()
        ticks = _run(scheduler)
        if not sync.finished:
            raise CompositionError(
                f"Recording stopped early after {ticks} ticks "
                f"at {sync.last_output_time}s"
            )
    except BaseException:
        sync.stop()
        if isinstance(sink, EncoderSink):
            sink.discard()
        raise
    finally:
        if owns_transport:
            transport.close()

    for issue in sync.issues:
        logger.warning(f"{issue.message} {issue.context}")
    return sync.result


def start_preview(
    transport: Transport,
    template: Template,
    content: dict,
    sink: FrameSink,
    settings: RenderSettings | None = None,
    *,
    scheduler: Scheduler | None = None,
    aliases: dict[str, list[str]] | None = None,
) -> LiveSynchronizer:
    """Start a looping preview of *template* and return its synchronizer.

    The transport's clock drives the preview. Stopping the returned
    synchronizer releases the transport so a recording can claim it.
    """
    settings = settings or RenderSettings()
    scheduler = scheduler or RealtimeScheduler(settings.fps)
    sync = LiveSynchronizer(
        template, transport, sink, content, transport.clock, scheduler,
        mode=PREVIEW,
        canvas_size=settings.resolution,
        drift_threshold=settings.preview_drift_threshold,
        aliases=aliases,
    )
    sync.start()
    return sync
