"""scenecast — template-driven video composition.

Compose one source video with a timeline of text-overlay scenes, either
live (a resynchronizing preview/record loop feeding a frame sink) or
offline (a frame-accurate ffmpeg filter graph, optionally stitched from
several source ranges).
"""
