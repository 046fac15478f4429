"""Scene mapper — output timeline to source-video time ranges.

Scenes that name an explicit source range (video_start/video_end) keep
it verbatim. The rest are spread evenly across the source: scene i of N
starts at i * (D / N) and runs for the scene's own output duration,
capped at the end of the source. Short footage therefore gets reused
across many scenes, and no mapping ever points past the physical end of
the source.
"""

from collections.abc import Sequence

from .models import Scene, SceneMapping


def map_scenes(scenes: Sequence[Scene], source_duration: float) -> list[SceneMapping]:
    """Map every scene to a source-video time range.

    Args:
        scenes: Template scenes, in template order.
        source_duration: Length of the source video in seconds.

    Returns:
        One SceneMapping per scene, same order. Empty for no scenes.
    """
    count = len(scenes)
    if count == 0:
        return []

    slot = source_duration / count
    mappings = []
    for index, scene in enumerate(scenes):
        if scene.has_explicit_range:
            video_start, video_end = scene.video_start, scene.video_end
        else:
            video_start = index * slot
            video_end = min(video_start + scene.duration, source_duration)

        mappings.append(SceneMapping(
            output_start=scene.start,
            output_end=scene.end,
            video_start=video_start,
            video_end=video_end,
            scene_index=index,
            scene=scene,
        ))
    return mappings


def find_active_mapping(
    mappings: Sequence[SceneMapping], output_time: float,
) -> SceneMapping | None:
    """Mapping whose [output_start, output_end) holds *output_time*.

    Falls back to the first mapping so playback never stalls in a gap
    between scenes. None only when there are no mappings at all.
    """
    for mapping in mappings:
        if mapping.contains(output_time):
            return mapping
    return mappings[0] if mappings else None
