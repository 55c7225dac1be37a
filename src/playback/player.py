"""Timeline player: replays compiled segments against a camera controller.

Playback is cooperative and single-threaded. Every animate segment runs
a frame loop on the clock; each frame applies one eased interpolation
step through the controller's lerp_look_at. Waits sleep in frame-sized
slices. Cancellation is checked after each frame or slice and before each
segment, so a cancelled camera stays wherever its last applied frame left
it.

A call notes the token generation it started under and stops on any later
cancellation, even one whose quiescence window has already ended.

The player never raises into its host for bad input: a missing
controller or an unknown segment kind is logged and skipped.
"""

import logging

from src.playback.cancellation import CancellationToken
from src.playback.clock import FrameClock
from src.playback.easing import apply_easing
from src.timeline.models import CameraPose, AnimateSegment, WaitSegment

logger = logging.getLogger(__name__)


def _live_pose(controller):
    return CameraPose(position=controller.get_position(), target=controller.get_target())


async def _wait(duration_ms, token, clock, generation):
    """Sleep for duration_ms in frame-sized slices. Returns False if cancelled."""
    deadline = clock.now_ms() + max(0.0, duration_ms)
    while True:
        remaining = deadline - clock.now_ms()
        if remaining <= 0:
            return True
        await clock.sleep(min(clock.frame_ms, remaining))
        if token.cancelled_since(generation):
            logger.info("[Timeline Player] Wait cancelled")
            return False


async def _play_animate(controller, segment, token, clock, generation):
    duration = segment.duration_ms
    end = segment.end
    start = None
    start_ms = None

    while True:
        now = await clock.next_frame()
        if token.cancelled_since(generation):
            logger.info("[Timeline Player] Animation cancelled")
            return False

        if start_ms is None:
            start_ms = now
            # Deferred poses are sampled once, on the segment's first frame
            start = _live_pose(controller) if segment.from_current else segment.start

        elapsed = now - start_ms
        t = 1.0 if duration <= 0 else max(0.0, min(1.0, elapsed / duration))
        controller.lerp_look_at(
            start.position, start.target,
            end.position, end.target,
            apply_easing(t, segment.easing),
            False,
        )
        if t >= 1.0:
            return True


async def _play_segment(controller, segment, token, clock, generation):
    if isinstance(segment, WaitSegment):
        return await _wait(segment.duration_ms, token, clock, generation)
    if isinstance(segment, AnimateSegment):
        return await _play_animate(controller, segment, token, clock, generation)

    logger.warning(f"[Timeline Player] Unknown segment type: {getattr(segment, 'type', segment)!r}")
    return False


async def _play_scene(controller, entry, token, clock, generation):
    for segment in entry.segments:
        if token.cancelled_since(generation):
            logger.info(f"[Timeline Player] Scene '{entry.name}' stopped by cancellation")
            return False
        await _play_segment(controller, segment, token, clock, generation)
    return not token.cancelled_since(generation)


async def play_segment(controller, segment, token=None, clock=None):
    """Play one timeline segment.

    Args:
        controller: Camera controller to drive.
        segment: AnimateSegment, WaitSegment, or anything else (skipped).
        token: CancellationToken to watch. Defaults to a private token.
        clock: Frame clock. Defaults to a 60 fps FrameClock.

    Returns:
        True if the segment ran to completion, False if it was cancelled
        or skipped.
    """
    if controller is None:
        logger.warning("[Timeline Player] play_segment: missing camera controller")
        return False
    token = token or CancellationToken()
    clock = clock or FrameClock()
    return await _play_segment(controller, segment, token, clock, token.generation)


async def play_scene(controller, entry, token=None, clock=None):
    """Play every segment of a scene in order.

    Args:
        controller: Camera controller to drive.
        entry: SceneEntry from a Timeline.
        token: CancellationToken to watch.
        clock: Frame clock shared by all segments.

    Returns:
        False if playback stopped early (cancellation or missing input),
        True otherwise.
    """
    if controller is None or entry is None:
        logger.warning("[Timeline Player] play_scene: missing controller or scene entry")
        return False
    token = token or CancellationToken()
    clock = clock or FrameClock()
    return await _play_scene(controller, entry, token, clock, token.generation)


async def play_timeline(controller, timeline, token=None, clock=None, follow_schedule=False):
    """Play all scenes of a timeline back to back.

    Args:
        controller: Camera controller to drive.
        timeline: Compiled Timeline.
        token: CancellationToken to watch.
        clock: Frame clock.
        follow_schedule: If True, wait until each scene's start_time_ms
            (relative to the start of this call) before playing it. Late
            scenes start immediately; the schedule is best-effort.

    Returns:
        Number of scenes played to completion.
    """
    if controller is None or timeline is None:
        logger.warning("[Timeline Player] play_timeline: missing controller or timeline")
        return 0
    token = token or CancellationToken()
    clock = clock or FrameClock()
    generation = token.generation

    origin_ms = clock.now_ms()
    completed = 0
    for entry in timeline.scenes:
        if token.cancelled_since(generation):
            break
        if follow_schedule:
            lead_ms = entry.start_time_ms - (clock.now_ms() - origin_ms)
            if lead_ms > 0 and not await _wait(lead_ms, token, clock, generation):
                break
        if not await _play_scene(controller, entry, token, clock, generation):
            break
        completed += 1

    logger.info(f"[Timeline Player] Played {completed}/{len(timeline.scenes)} scene(s)")
    return completed
