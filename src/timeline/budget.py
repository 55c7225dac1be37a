"""Duration budgeter: splits a scene's time across camera phases.

Zoom mode with N targets:

    intro | delay | (focus | hold) x N | return

Intro and delay take fixed shares (25% / 5%). The remaining 70% is split
across the per-target focus/hold pairs and one return move. A duration
multiplier speeds up the intro, delay and focus moves for short scenes and
slows them down for long ones; the hold absorbs the difference so the
uncapped phases add up to exactly the scene duration. A fixed hold share
(D * 15% * scale) would overrun the scene once the multiplier exceeds 1,
i.e. for scenes longer than 5 seconds. Per-phase caps can only shorten the
total.
"""

from dataclasses import dataclass

FIRST_ANIM_SHARE = 0.25
FOCUS_DELAY_SHARE = 0.05
REMAINING_SHARE = 1.0 - FIRST_ANIM_SHARE - FOCUS_DELAY_SHARE

FOCUS_ANIM_SHARE = 0.20
FOCUS_HOLD_SHARE = 0.15
RETURN_ANIM_SHARE = 0.20

# Reference scene length for the duration multipliers
REFERENCE_SCENE_MS = 5000

ZOOM_FACTOR_RANGE = (0.8, 1.2)
TRANSITION_FACTOR_RANGE = (0.6, 1.5)

FIRST_ANIM_CAP_MS = 2500
FOCUS_DELAY_CAP_MS = 500
FOCUS_ANIM_CAP_MS = 2000
RETURN_ANIM_CAP_MS = 2000

TRANSITION_BASE_MS = 2500
TRANSITION_MAX_SHARE = 0.5

CUT_ANIM_SHARE = 0.5


@dataclass(frozen=True)
class ZoomDurations:
    first_anim_duration: float
    focus_delay: float
    focus_anim_duration: float
    focus_hold_time: float
    return_anim_duration: float
    num_targets: int

    @property
    def total(self):
        return (
            self.first_anim_duration
            + self.focus_delay
            + self.num_targets * (self.focus_anim_duration + self.focus_hold_time)
            + self.return_anim_duration
        )


def _clamp(value, low, high):
    return max(low, min(high, value))


def duration_factor(scene_duration_ms, low, high):
    """Scene-length multiplier relative to a 5 second scene."""
    return _clamp(scene_duration_ms / REFERENCE_SCENE_MS, low, high)


def zoom_phase_durations(scene_duration_ms, num_targets):
    """Compute zoom-mode phase durations for one scene.

    Args:
        scene_duration_ms: Total on-screen time of the scene.
        num_targets: Number of focus targets (clamped to at least 1).

    Returns:
        ZoomDurations. Every value is >= 0 and the total never exceeds
        scene_duration_ms.
    """
    n = max(1, int(num_targets))
    d = scene_duration_ms

    focus_share = FOCUS_ANIM_SHARE / n
    hold_share = FOCUS_HOLD_SHARE / n
    scale = REMAINING_SHARE / (n * (focus_share + hold_share) + RETURN_ANIM_SHARE)
    factor = duration_factor(d, *ZOOM_FACTOR_RANGE)

    first_anim = d * FIRST_ANIM_SHARE * factor
    focus_delay = d * FOCUS_DELAY_SHARE * factor
    focus_anim = d * focus_share * scale * factor
    return_anim = d * RETURN_ANIM_SHARE * scale

    # Hold takes whatever the uncapped moves leave, so the uncapped sum is exactly d
    moving = first_anim + focus_delay + n * focus_anim + return_anim
    focus_hold = max(0.0, (d - moving) / n)

    return ZoomDurations(
        first_anim_duration=min(first_anim, FIRST_ANIM_CAP_MS),
        focus_delay=min(focus_delay, FOCUS_DELAY_CAP_MS),
        focus_anim_duration=min(focus_anim, FOCUS_ANIM_CAP_MS),
        focus_hold_time=focus_hold,
        return_anim_duration=min(return_anim, RETURN_ANIM_CAP_MS),
        num_targets=n,
    )


def zoom_total_duration(scene_duration_ms, num_targets):
    """Total zoom-mode camera time for a scene; the scene duration when there are no targets."""
    if num_targets == 0:
        return scene_duration_ms
    return zoom_phase_durations(scene_duration_ms, num_targets).total


def transition_duration(scene_duration_ms):
    """Length of the single random-to-center move used for scenes without targets."""
    factor = duration_factor(scene_duration_ms, *TRANSITION_FACTOR_RANGE)
    return min(TRANSITION_BASE_MS * factor, scene_duration_ms * TRANSITION_MAX_SHARE)


def cut_segment_durations(scene_duration_ms, num_targets):
    """Cut mode: N targets plus the final center view get equal slices.

    Returns:
        (anim_ms, hold_ms) for every slice.
    """
    slice_ms = scene_duration_ms / (max(0, int(num_targets)) + 1)
    anim_ms = slice_ms * CUT_ANIM_SHARE
    return anim_ms, slice_ms - anim_ms


def expected_cycle_duration(num_scenes, scene_duration_ms, transition_ms, start_delay_ms=0):
    """Expected recording length for one full cycle through the scenes.

    Camera segments never run past their scene's slot, so the cycle length
    depends only on the scene count and the schedule settings.

    Args:
        num_scenes: Number of scenes in the cycle.
        scene_duration_ms: Per-scene duration.
        transition_ms: Gap between consecutive scenes.
        start_delay_ms: Delay before the first scene.

    Returns:
        Milliseconds from cycle start to the end of the last scene.
    """
    if num_scenes <= 0:
        return start_delay_ms
    return start_delay_ms + num_scenes * scene_duration_ms + (num_scenes - 1) * transition_ms
