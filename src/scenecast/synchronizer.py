"""Live synchronizer — keeps a playing transport locked to the output timeline.

The transport plays on its own. Once per tick the synchronizer works out
where on the output timeline we are, which scene is active and which
source time that scene wants right now, corrects the transport if
needed, then composes one frame (source frame cropped to cover the 9:16
canvas, scene text on top) and hands it to the sink.

Correction rules, per tick:
  - Scene changed since the previous tick: hard seek to the new scene's
    video_start. Scene boundaries always reset the source position.
  - Same scene, |current - target| > drift threshold: soft seek to the
    target source time.
  - Otherwise leave the transport alone so playback stays smooth.

Modes:
  record   output time = elapsed; stops (pause, finalize sink) once the
           template duration is reached. Drift threshold 0.15s.
  preview  output time = elapsed mod duration; loops until stop().
           Drift threshold 0.20s.
"""

import math

import numpy as np
from loguru import logger
from PIL import Image

from .errors import Issue
from .models import SceneMapping, Template
from .overlays import draw_scene_text
from .scene_mapper import find_active_mapping, map_scenes
from .scheduling import Clock, Scheduler, TickHandle
from .settings import (
    DEFAULT_RESOLUTION,
    PREVIEW_DRIFT_THRESHOLD,
    RECORD_DRIFT_THRESHOLD,
)
from .sinks import FrameSink
from .transport import Transport


RECORD = "record"
PREVIEW = "preview"
VALID_MODES = {RECORD, PREVIEW}


# ── Crop-to-cover ────────────────────────────────────────────────


def compute_cover_rect(
    src_w: int, src_h: int, dst_w: int, dst_h: int,
) -> tuple[float, float, float, float]:
    """Placement (x, y, w, h) of a source frame scaled to cover the target.

    A source wider than the target aspect fills the height and is cropped
    left/right; a taller one fills the width and is cropped top/bottom.
    The target is always completely covered.
    """
    src_aspect = src_w / src_h
    dst_aspect = dst_w / dst_h
    if src_aspect > dst_aspect:
        draw_h = dst_h
        draw_w = draw_h * src_aspect
        return (dst_w - draw_w) / 2, 0.0, draw_w, draw_h
    draw_w = dst_w
    draw_h = draw_w / src_aspect
    return 0.0, (dst_h - draw_h) / 2, draw_w, draw_h


def cover_frame(frame: np.ndarray, size: tuple[int, int]) -> Image.Image:
    """Scale *frame* to cover *size* and center-crop it."""
    dst_w, dst_h = size
    src_h, src_w = frame.shape[:2]
    x, y, draw_w, draw_h = compute_cover_rect(src_w, src_h, dst_w, dst_h)
    scaled_w = max(dst_w, math.ceil(draw_w))
    scaled_h = max(dst_h, math.ceil(draw_h))

    img = Image.fromarray(frame[:, :, :3]).resize((scaled_w, scaled_h), Image.BILINEAR)
    left = min(scaled_w - dst_w, max(0, round(-x)))
    top = min(scaled_h - dst_h, max(0, round(-y)))
    return img.crop((left, top, left + dst_w, top + dst_h))


# ── Synchronizer ─────────────────────────────────────────────────


class LiveSynchronizer:
    """Drive one transport in lock-step with a template's output timeline.

    Args:
        template: Template to play.
        transport: Source transport; claimed for the lifetime of the run.
        sink: Receives composed frames. Finalized when a recording ends.
        content: Template variable values.
        clock: Clock shared with the transport.
        scheduler: Schedules ticks; the synchronizer never blocks in one.
        mode: "record" or "preview".
        canvas_size: Output (width, height); 9:16.
        drift_threshold: Override the mode's default drift threshold.
        aliases: Optional variable alias table (see variables.py).
    """

    def __init__(
        self,
        template: Template,
        transport: Transport,
        sink: FrameSink,
        content: dict,
        clock: Clock,
        scheduler: Scheduler,
        mode: str = RECORD,
        canvas_size: tuple[int, int] = DEFAULT_RESOLUTION,
        drift_threshold: float | None = None,
        aliases: dict[str, list[str]] | None = None,
    ):
        if mode not in VALID_MODES:
            raise ValueError(f"Unknown mode '{mode}'. Valid: {sorted(VALID_MODES)}")
        self.template = template
        self.transport = transport
        self.sink = sink
        self.content = content
        self.clock = clock
        self.scheduler = scheduler
        self.mode = mode
        self.canvas_size = canvas_size
        if drift_threshold is None:
            drift_threshold = (
                RECORD_DRIFT_THRESHOLD if mode == RECORD else PREVIEW_DRIFT_THRESHOLD
            )
        self.drift_threshold = drift_threshold
        self.aliases = aliases

        self.mappings: list[SceneMapping] = []
        self.issues: list[Issue] = []
        self.result = None
        self.frames_emitted = 0
        self.last_output_time: float | None = None

        self._start_time: float | None = None
        self._handle: TickHandle | None = None
        self._current: SceneMapping | None = None
        self._last_scene_index = -1
        self._warned_scenes: set[int] = set()
        self._running = False
        self._finished = False

    # ── Lifecycle ───────────────────────────────────────────────

    @property
    def running(self) -> bool:
        return self._running

    @property
    def finished(self) -> bool:
        return self._finished

    def start(self) -> None:
        """Claim the transport, wait for it once, and schedule the first tick.

        Raises:
            MediaNotReadyError: The transport cannot load its source.
            TransportBusyError: Another driver owns the transport.
        """
        self.transport.claim(self)
        try:
            self.transport.load()
            self.mappings = map_scenes(self.template.scenes, self.transport.duration)
            if not self.mappings:
                self.mappings = [self._implicit_mapping()]
            logger.debug(f"Scene mapping ({self.mode}): {self.mappings}")

            self.transport.seek(self.mappings[0].video_start)
            self.transport.play()
        except Exception:
            self.transport.release(self)
            raise

        self._start_time = self.clock.now()
        self._last_scene_index = -1
        self._current = None
        self._running = True
        self._handle = self.scheduler.schedule(self.tick)

    def stop(self) -> None:
        """Cancel future ticks, pause and release the transport."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self._running:
            self.transport.pause()
            self.transport.release(self)
        self._running = False

    def _implicit_mapping(self) -> SceneMapping:
        # No scenes: play the source straight through, no overlay.
        duration = self.template.duration
        return SceneMapping(
            output_start=0.0,
            output_end=duration,
            video_start=0.0,
            video_end=min(duration, self.transport.duration),
            scene_index=-1,
            scene=None,
        )

    # ── Per-tick ────────────────────────────────────────────────

    def elapsed(self) -> float:
        return self.clock.now() - self._start_time

    def output_time(self, elapsed: float | None = None) -> float:
        if elapsed is None:
            elapsed = self.elapsed()
        if self.mode == PREVIEW:
            return elapsed % self.template.duration
        return elapsed

    def _active_mapping(self, output_time: float) -> SceneMapping:
        current = self._current
        if current is None or not current.contains(output_time):
            current = find_active_mapping(self.mappings, output_time)
            self._current = current
        return current

    def _target_source_time(self, mapping: SceneMapping, output_time: float) -> float:
        target = mapping.source_time_at(output_time)
        return max(0.0, min(target, self.transport.duration))

    def tick(self) -> None:
        """One synchronization step; reschedules itself until stopped."""
        if not self._running:
            return
        self._handle = None

        elapsed = self.elapsed()
        output_time = self.output_time(elapsed)
        if self.mode == RECORD and output_time >= self.template.duration:
            self._finish()
            return

        mapping = self._active_mapping(output_time)
        target = self._target_source_time(mapping, output_time)

        if mapping.scene_index != self._last_scene_index:
            seek_to = max(0.0, min(mapping.video_start, self.transport.duration))
            logger.info(
                f"Scene {mapping.scene_index + 1}: seeking source to {seek_to:.2f}s "
                f"(output {mapping.output_start:.2f}-{mapping.output_end:.2f}s)"
            )
            self.transport.seek(seek_to)
            self._last_scene_index = mapping.scene_index
        else:
            drift = abs(self.transport.current_time - target)
            if drift > self.drift_threshold:
                logger.debug(
                    f"Drift {drift:.3f}s at output {output_time:.2f}s, "
                    f"correcting to {target:.2f}s"
                )
                self.transport.seek(target)

        if self.transport.paused:
            self.transport.play()

        self._emit_frame(mapping, output_time, elapsed)
        self._handle = self.scheduler.schedule(self.tick)

    def _emit_frame(
        self, mapping: SceneMapping, output_time: float, elapsed: float,
    ) -> None:
        canvas = cover_frame(self.transport.read_frame(), self.canvas_size)

        scene = mapping.scene
        if scene is not None and scene.text.content:
            try:
                draw_scene_text(
                    canvas, scene, self.template.style_for(scene), self.content,
                    self._scene_issues(mapping.scene_index), self.aliases,
                )
            except Exception as exc:
                logger.error(
                    f"Overlay failed for scene {mapping.scene_index + 1} "
                    f"at {output_time:.2f}s: {exc}"
                )
                self.issues.append(Issue.warning(
                    f"Overlay render failed: {exc}",
                    scene_index=mapping.scene_index,
                    output_time=round(output_time, 3),
                ))

        # Sinks get capture time, which keeps increasing across preview loops.
        self.sink.submit(np.asarray(canvas), elapsed)
        self.frames_emitted += 1
        self.last_output_time = output_time

    def _scene_issues(self, scene_index: int) -> list[Issue] | None:
        # Missing-variable warnings are collected once per scene, not per frame.
        if scene_index in self._warned_scenes:
            return None
        self._warned_scenes.add(scene_index)
        return self.issues

    def _finish(self) -> None:
        logger.info(
            f"Recording reached {self.template.duration:.2f}s "
            f"after {self.frames_emitted} frames"
        )
        self.stop()
        self._finished = True
        self.result = self.sink.finalize()
