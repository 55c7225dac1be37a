"""Timeline compiler: turns the scene cycle into a serializable camera plan.

The compiler runs once, wherever the scene catalog lives, and emits a
Timeline made of plain values. Random approach poses are sampled here and
baked into the segments, so replaying the same Timeline always produces
the same camera moves.

Per scene:
  - no focus targets: one random -> center move
  - zoom mode: random -> center, wait, then (focus, hold) per target, return to center
  - cut mode: N+1 equal slices, each a random approach (to a target, then
    to the center) followed by a hold
"""

import logging

import numpy as np

from src.playback.easing import POWER2_INOUT, POWER3_OUT
from src.timeline.budget import (
    cut_segment_durations,
    transition_duration,
    zoom_phase_durations,
)
from src.timeline.classifier import find_focus_targets, index_sources, is_high_motion_scene
from src.timeline.config import TARGET_BEHAVIORS
from src.timeline.geometry import center_pose, framing_pose
from src.timeline.models import (
    FROM_CURRENT_POSE,
    AnimateSegment,
    CameraPose,
    SceneEntry,
    Timeline,
    Vec3,
    WaitSegment,
)

logger = logging.getLogger(__name__)

# Random approach box for the camera position (world units)
RANDOM_POSITION_X = (-2.0, 2.0)
RANDOM_POSITION_Y = (-1.0, 1.0)
RANDOM_POSITION_Z = (1.5, 2.5)
# Random look-at points stay within this fraction of the plane's half extents
RANDOM_TARGET_SPREAD = 0.8

# Allowed overshoot of a scene's segment total over its duration
DURATION_TOLERANCE_MS = 1.0


def random_start_pose(rng, plane_w, plane_h):
    """Sample an approach pose: somewhere in front of the plane, looking at a random point on it.

    Args:
        rng: numpy.random.Generator.
        plane_w: Plane width in world units.
        plane_h: Plane height in world units.

    Returns:
        CameraPose with literal values.
    """
    half_w = plane_w / 2 * RANDOM_TARGET_SPREAD
    half_h = plane_h / 2 * RANDOM_TARGET_SPREAD
    position = Vec3(
        x=float(rng.uniform(*RANDOM_POSITION_X)),
        y=float(rng.uniform(*RANDOM_POSITION_Y)),
        z=float(rng.uniform(*RANDOM_POSITION_Z)),
    )
    target = Vec3(
        x=float(rng.uniform(-half_w, half_w)),
        y=float(rng.uniform(-half_h, half_h)),
        z=0.0,
    )
    return CameraPose(position=position, target=target)


def scene_nodes(scene_id, scene_data, display_channel):
    """Visible, non-group nodes of a scene for one display channel.

    Args:
        scene_id: Scene to look up.
        scene_data: Scenes (list or id -> Scene dict).
        display_channel: e.g. "horizontal".

    Returns:
        List of SceneNodes; empty if the scene is unknown.
    """
    if isinstance(scene_data, dict):
        scene = scene_data.get(scene_id)
    else:
        scene = next((s for s in scene_data if s.id == scene_id), None)
    if scene is None:
        return []
    return [
        n for n in scene.nodes
        if n.display == display_channel and not n.is_group and n.visible
    ]


def _no_target_segments(rng, scene_duration_ms, plane_w, plane_h, center):
    return [
        AnimateSegment(
            duration_ms=transition_duration(scene_duration_ms),
            start=random_start_pose(rng, plane_w, plane_h),
            end=center,
            easing=POWER3_OUT,
        )
    ]


def _zoom_segments(rng, scene_duration_ms, target_poses, plane_w, plane_h, center):
    durations = zoom_phase_durations(scene_duration_ms, len(target_poses))
    segments = [
        AnimateSegment(
            duration_ms=durations.first_anim_duration,
            start=random_start_pose(rng, plane_w, plane_h),
            end=center,
            easing=POWER3_OUT,
        ),
        WaitSegment(duration_ms=durations.focus_delay),
    ]
    for pose in target_poses:
        segments.append(AnimateSegment(
            duration_ms=durations.focus_anim_duration,
            start=FROM_CURRENT_POSE,
            end=pose,
            easing=POWER2_INOUT,
        ))
        segments.append(WaitSegment(duration_ms=durations.focus_hold_time))
    segments.append(AnimateSegment(
        duration_ms=durations.return_anim_duration,
        start=FROM_CURRENT_POSE,
        end=center,
        easing=POWER2_INOUT,
    ))
    return segments


def _cut_segments(rng, scene_duration_ms, target_poses, plane_w, plane_h, center):
    anim_ms, hold_ms = cut_segment_durations(scene_duration_ms, len(target_poses))
    segments = []
    for pose in list(target_poses) + [center]:
        segments.append(AnimateSegment(
            duration_ms=anim_ms,
            start=random_start_pose(rng, plane_w, plane_h),
            end=pose,
            easing=POWER3_OUT,
        ))
        segments.append(WaitSegment(duration_ms=hold_ms))
    return segments


def build_timeline(scenes, scene_data, sources, display_channel, scene_duration_ms,
                   transition_ms, start_delay_ms, canvas_w, canvas_h, plane_w, plane_h,
                   center_distance=2.25, target_behavior="zoom", overrides=None,
                   rng=None, focus_base_distance=2.0):
    """Compile the camera timeline for one cycle of scenes.

    Args:
        scenes: Scenes to cycle through, in order. Only `id` and `name` are used.
        scene_data: Full scene catalog (list or id -> Scene dict) holding the nodes.
        sources: Source catalog (list or id -> Source dict).
        display_channel: Which display's nodes to use (e.g. "horizontal").
        scene_duration_ms: On-screen time per scene.
        transition_ms: Gap between consecutive scenes.
        start_delay_ms: Delay before the first scene.
        canvas_w: Layout canvas width in pixels.
        canvas_h: Layout canvas height in pixels.
        plane_w: Viewing plane width in world units.
        plane_h: Viewing plane height in world units.
        center_distance: Camera distance for the whole-plane view.
        target_behavior: "zoom" or "cut".
        overrides: Optional source id -> bool focus overrides.
        rng: numpy.random.Generator for approach poses. A fresh unseeded
            generator is used when omitted.
        focus_base_distance: Base distance for framing a focus target.

    Returns:
        Timeline.
    """
    if target_behavior not in TARGET_BEHAVIORS:
        logger.warning(f"[Timeline] Unknown target behavior {target_behavior!r}, using zoom")
        target_behavior = "zoom"
    if rng is None:
        rng = np.random.default_rng()

    source_index = index_sources(sources)
    center = center_pose(center_distance)
    entries = []
    current_ms = start_delay_ms

    for i, scene in enumerate(scenes):
        nodes = scene_nodes(scene.id, scene_data, display_channel)
        high_motion = is_high_motion_scene(nodes, source_index)
        targets = find_focus_targets(nodes, source_index, overrides)
        target_poses = [
            framing_pose(t.node, t.source, canvas_w, canvas_h, plane_w, plane_h, focus_base_distance)
            for t in targets
        ]

        if not targets:
            segments = _no_target_segments(rng, scene_duration_ms, plane_w, plane_h, center)
        elif target_behavior == "cut":
            segments = _cut_segments(rng, scene_duration_ms, target_poses, plane_w, plane_h, center)
        else:
            segments = _zoom_segments(rng, scene_duration_ms, target_poses, plane_w, plane_h, center)

        entries.append(SceneEntry(
            name=scene.name,
            start_time_ms=current_ms,
            is_high_motion=high_motion,
            has_focus_target=bool(targets),
            target_behavior=target_behavior,
            segments=tuple(segments),
        ))
        logger.debug(
            f"[Timeline] Scene '{scene.name}' at {current_ms:.0f}ms: "
            f"{len(targets)} target(s), {len(segments)} segment(s)"
        )

        current_ms += scene_duration_ms
        if i < len(scenes) - 1:
            current_ms += transition_ms

    logger.info(f"[Timeline] Built timeline with {len(entries)} scene(s), mode={target_behavior}")
    return Timeline(
        plane_width=plane_w,
        plane_height=plane_h,
        center_distance=center_distance,
        target_behavior=target_behavior,
        scenes=tuple(entries),
    )


def build_timeline_from_config(config, scenes, scene_data, sources, rng=None):
    """build_timeline with every setting taken from a TimelineConfig."""
    return build_timeline(
        scenes,
        scene_data,
        sources,
        display_channel=config.display_channel,
        scene_duration_ms=config.scene_duration_ms,
        transition_ms=config.transition_ms,
        start_delay_ms=config.start_delay_ms,
        canvas_w=config.canvas_width,
        canvas_h=config.canvas_height,
        plane_w=config.plane_width,
        plane_h=config.plane_height,
        center_distance=config.center_distance,
        target_behavior=config.target_behavior,
        overrides=config.overrides,
        rng=rng,
        focus_base_distance=config.focus_base_distance,
    )


def validate_timeline(timeline, scene_duration_ms, tolerance_ms=DURATION_TOLERANCE_MS):
    """Check a timeline against its timing and shape invariants.

    Args:
        timeline: Timeline to check.
        scene_duration_ms: Duration every scene was budgeted with.
        tolerance_ms: Allowed overshoot of a scene's segment total.

    Returns:
        (is_valid, errors): tuple of bool and list of error strings.
    """
    errors = []
    previous_start = None

    for i, entry in enumerate(timeline.scenes):
        label = f"Scene {i + 1} ({entry.name})"

        for j, segment in enumerate(entry.segments):
            if segment.type not in ("animate", "wait"):
                errors.append(f"{label}, segment {j + 1}: unknown type '{segment.type}'")
                continue
            if segment.duration_ms < 0:
                errors.append(f"{label}, segment {j + 1}: negative duration {segment.duration_ms}")
            if segment.type == "animate" and (segment.start is None or segment.end is None):
                errors.append(f"{label}, segment {j + 1}: animate without start or end pose")

        total = entry.total_duration_ms
        if total > scene_duration_ms + tolerance_ms:
            errors.append(
                f"{label}: segments total {total:.1f}ms, over the {scene_duration_ms}ms budget"
            )

        if previous_start is not None and entry.start_time_ms < previous_start:
            errors.append(f"{label}: starts before the previous scene")
        previous_start = entry.start_time_ms

    return len(errors) == 0, errors
