"""Tests for timeline playback (src/playback/).

Tests cover:
- Easing curves
- CancellationToken generation tie-breaking and scheduled release
- play_segment: wait, literal/deferred animate, zero duration, unknown kinds
- play_scene / play_timeline ordering, cancellation and recovery
- Cancelling during waits, including after the release window has passed
- Token and clock built from TimelineConfig
- safe_task exception logging
"""

import asyncio
import time

import pytest

from src.playback.cancellation import CancellationToken
from src.playback.clock import FrameClock, ManualClock
from src.playback.controller import InMemoryCameraController, lerp_pose
from src.playback.easing import (
    POWER2_INOUT,
    POWER3_OUT,
    POWER4_OUT,
    apply_easing,
)
from src.playback.player import play_scene, play_segment, play_timeline
from src.playback.tasks import (
    playback_from_config,
    safe_task,
    start_playback,
    start_playback_from_config,
)
from src.timeline.config import config_from_dict
from src.timeline.models import (
    FROM_CURRENT_POSE,
    AnimateSegment,
    CameraPose,
    SceneEntry,
    Timeline,
    UnknownSegment,
    Vec3,
    WaitSegment,
)

START = CameraPose(Vec3(1.0, 1.0, 2.0), Vec3(0.5, 0.5, 0.0))
END = CameraPose(Vec3(0.0, 0.0, 2.25), Vec3(0.0, 0.0, 0.0))


class FakeScheduler:
    """Captures call_later requests so tests decide when releases fire."""

    def __init__(self):
        self.calls = []

    def __call__(self, delay_s, callback, *args):
        self.calls.append((delay_s, callback, args))

    def fire(self, index):
        _, callback, args = self.calls[index]
        return callback(*args)


class CancellingController(InMemoryCameraController):
    """Requests cancellation after a given number of applied frames."""

    def __init__(self, token, cancel_after_frames):
        super().__init__()
        self.token = token
        self.cancel_after_frames = cancel_after_frames

    def lerp_look_at(self, pos_a, target_a, pos_b, target_b, t, immediate=False):
        super().lerp_look_at(pos_a, target_a, pos_b, target_b, t, immediate)
        if len(self.history) == self.cancel_after_frames:
            self.token.cancel_all()


def _assert_pose(actual, expected):
    for got, want in ((actual.position, expected.position), (actual.target, expected.target)):
        assert got.x == pytest.approx(want.x)
        assert got.y == pytest.approx(want.y)
        assert got.z == pytest.approx(want.z)


@pytest.fixture
def clock():
    return ManualClock(frame_ms=10)


@pytest.fixture
def token():
    return CancellationToken(call_later=FakeScheduler())


# ---------------------------------------------------------------------------
# Easing
# ---------------------------------------------------------------------------


class TestEasing:

    @pytest.mark.parametrize("easing", [POWER2_INOUT, POWER3_OUT, POWER4_OUT, "unknown"])
    def test_endpoints(self, easing):
        assert apply_easing(0.0, easing) == pytest.approx(0.0)
        assert apply_easing(1.0, easing) == pytest.approx(1.0)

    def test_power2_inout(self):
        assert apply_easing(0.25, POWER2_INOUT) == pytest.approx(0.125)
        assert apply_easing(0.5, POWER2_INOUT) == pytest.approx(0.5)
        assert apply_easing(0.75, POWER2_INOUT) == pytest.approx(0.875)

    def test_power3_out(self):
        assert apply_easing(0.5, POWER3_OUT) == pytest.approx(0.875)

    def test_power4_out(self):
        assert apply_easing(0.5, POWER4_OUT) == pytest.approx(0.9375)

    def test_unknown_defaults_to_power3_out(self):
        assert apply_easing(0.3, "elastic") == apply_easing(0.3, POWER3_OUT)

    def test_clamps_input(self):
        assert apply_easing(1.7, POWER3_OUT) == 1.0
        assert apply_easing(-0.2, POWER3_OUT) == 0.0


# ---------------------------------------------------------------------------
# CancellationToken
# ---------------------------------------------------------------------------


class TestCancellationToken:

    def test_cancel_sets_flag_and_generation(self, token):
        assert token.cancelled is False
        assert token.cancel_all() == 1
        assert token.cancelled is True
        assert token.generation == 1

    def test_release_schedules_after_window(self):
        scheduler = FakeScheduler()
        token = CancellationToken(reset_after_ms=100, call_later=scheduler)
        token.cancel_all()
        assert scheduler.calls[0][0] == pytest.approx(0.1)
        assert scheduler.fire(0) is True
        assert token.cancelled is False

    def test_cancelled_since_survives_release(self):
        scheduler = FakeScheduler()
        token = CancellationToken(call_later=scheduler)
        started = token.generation
        token.cancel_all()
        scheduler.fire(0)
        assert token.cancelled is False
        assert token.cancelled_since(started) is True
        assert token.cancelled_since(token.generation) is False

    def test_stale_release_does_not_clear_newer_cancel(self):
        scheduler = FakeScheduler()
        token = CancellationToken(call_later=scheduler)
        token.cancel_all()
        token.cancel_all()
        assert scheduler.fire(0) is False
        assert token.cancelled is True
        assert scheduler.fire(1) is True
        assert token.cancelled is False

    @pytest.mark.asyncio
    async def test_default_scheduler_uses_event_loop(self):
        token = CancellationToken(reset_after_ms=10)
        token.cancel_all()
        assert token.cancelled
        await asyncio.sleep(0.1)
        assert not token.cancelled

    def test_default_scheduler_without_loop(self):
        token = CancellationToken(reset_after_ms=10)
        token.cancel_all()
        assert token.cancelled
        deadline = time.monotonic() + 2.0
        while token.cancelled and time.monotonic() < deadline:
            time.sleep(0.01)
        assert not token.cancelled


# ---------------------------------------------------------------------------
# play_segment
# ---------------------------------------------------------------------------


class TestPlaySegment:

    @pytest.mark.asyncio
    async def test_wait_advances_clock(self, clock):
        camera = InMemoryCameraController()
        assert await play_segment(camera, WaitSegment(750), clock=clock) is True
        assert clock.now_ms() == 750
        assert camera.history == []

    @pytest.mark.asyncio
    async def test_animate_literal_start(self, clock):
        camera = InMemoryCameraController()
        segment = AnimateSegment(100, START, END, POWER3_OUT)
        assert await play_segment(camera, segment, clock=clock) is True

        # Frames at elapsed 0, 10, ..., 100
        assert len(camera.history) == 11
        first_t, first_pose = camera.history[0]
        assert first_t == 0.0
        _assert_pose(first_pose, START)
        assert camera.history[5][0] == pytest.approx(0.875)
        assert camera.history[-1][0] == 1.0
        _assert_pose(camera.pose, END)

    @pytest.mark.asyncio
    async def test_deferred_start_uses_live_pose(self, clock):
        live = CameraPose(Vec3(-1.0, 0.5, 3.0), Vec3(-0.2, 0.1, 0.0))
        camera = InMemoryCameraController(position=live.position, target=live.target)
        segment = AnimateSegment(50, FROM_CURRENT_POSE, END, POWER2_INOUT)
        await play_segment(camera, segment, clock=clock)
        _assert_pose(camera.history[0][1], live)
        _assert_pose(camera.pose, END)

    @pytest.mark.asyncio
    async def test_zero_duration_finishes_in_one_frame(self, clock):
        camera = InMemoryCameraController()
        await play_segment(camera, AnimateSegment(0, START, END, POWER3_OUT), clock=clock)
        assert len(camera.history) == 1
        _assert_pose(camera.pose, END)

    @pytest.mark.asyncio
    async def test_unknown_segment_warns(self, clock, caplog):
        camera = InMemoryCameraController()
        assert await play_segment(camera, UnknownSegment("shake"), clock=clock) is False
        assert "Unknown segment type" in caplog.text
        assert clock.frames == 0

    @pytest.mark.asyncio
    async def test_missing_controller_is_noop(self, clock, caplog):
        assert await play_segment(None, WaitSegment(100), clock=clock) is False
        assert "missing camera controller" in caplog.text
        assert clock.now_ms() == 0

    @pytest.mark.asyncio
    async def test_cancelled_token_stops_before_applying(self, clock, token):
        camera = InMemoryCameraController()
        token.cancel_all()
        assert await play_segment(camera, AnimateSegment(100, START, END, POWER3_OUT), token, clock) is False
        assert camera.history == []


# ---------------------------------------------------------------------------
# play_scene / play_timeline
# ---------------------------------------------------------------------------


def _entry(name="Scene", start_ms=0.0, segments=None):
    if segments is None:
        segments = (
            AnimateSegment(100, START, END, POWER3_OUT),
            WaitSegment(200),
            AnimateSegment(100, FROM_CURRENT_POSE, START, POWER2_INOUT),
        )
    return SceneEntry(name, start_ms, False, True, "zoom", segments=tuple(segments))


class TestPlayScene:

    @pytest.mark.asyncio
    async def test_plays_segments_in_order(self, clock):
        camera = InMemoryCameraController()
        assert await play_scene(camera, _entry(), clock=clock) is True
        # 11 frames per animate, plus the 200ms wait
        assert len(camera.history) == 22
        assert clock.now_ms() == pytest.approx(11 * 10 + 200 + 11 * 10)
        _assert_pose(camera.history[11][1], END)
        _assert_pose(camera.pose, START)

    @pytest.mark.asyncio
    async def test_unknown_segment_does_not_abort_scene(self, clock):
        camera = InMemoryCameraController()
        entry = _entry(segments=[UnknownSegment("shake"), AnimateSegment(20, START, END, POWER3_OUT)])
        assert await play_scene(camera, entry, clock=clock) is True
        _assert_pose(camera.pose, END)

    @pytest.mark.asyncio
    async def test_missing_entry(self, clock):
        assert await play_scene(InMemoryCameraController(), None, clock=clock) is False

    @pytest.mark.asyncio
    async def test_cancel_mid_animate_stops_scene(self, clock):
        scheduler = FakeScheduler()
        token = CancellationToken(call_later=scheduler)
        camera = CancellingController(token, cancel_after_frames=4)

        assert await play_scene(camera, _entry(), token, clock) is False
        # The frame that requested the cancel was applied; nothing after it
        assert len(camera.history) == 4
        held_pose = camera.pose
        _assert_pose(held_pose, camera.history[-1][1])
        # Wait and second animate never ran
        assert clock.now_ms() < 200

        # After the quiescence window fires, playback works again
        scheduler.fire(0)
        camera.cancel_after_frames = -1
        assert await play_scene(camera, _entry(), token, clock) is True
        _assert_pose(camera.pose, START)

    @pytest.mark.asyncio
    async def test_cancel_from_another_task(self):
        token = CancellationToken(reset_after_ms=50)
        camera = InMemoryCameraController()
        clock = ManualClock(frame_ms=10)
        entry = _entry(segments=[AnimateSegment(10_000, START, END, POWER3_OUT), WaitSegment(500)])

        async def cancel_soon():
            for _ in range(5):
                await asyncio.sleep(0)
            token.cancel_all()

        results = await asyncio.gather(play_scene(camera, entry, token, clock), cancel_soon())
        assert results[0] is False
        assert 0 < len(camera.history) < 1000
        await asyncio.sleep(0.2)
        assert not token.cancelled


class TestPlayTimeline:

    def _timeline(self):
        return Timeline(3.555, 2.0, 2.25, "zoom", scenes=(
            _entry("One", 500.0),
            _entry("Two", 2000.0),
        ))

    @pytest.mark.asyncio
    async def test_plays_all_scenes(self, clock):
        camera = InMemoryCameraController()
        assert await play_timeline(camera, self._timeline(), clock=clock) == 2
        assert len(camera.history) == 44

    @pytest.mark.asyncio
    async def test_follow_schedule_waits_for_start_times(self, clock):
        camera = InMemoryCameraController()
        await play_timeline(camera, self._timeline(), clock=clock, follow_schedule=True)
        # Second scene starts at 2000ms and runs 420ms
        assert clock.now_ms() == pytest.approx(2000 + 420)

    @pytest.mark.asyncio
    async def test_stops_at_cancellation(self, clock):
        token = CancellationToken(call_later=FakeScheduler())
        camera = CancellingController(token, cancel_after_frames=15)
        assert await play_timeline(camera, self._timeline(), token, clock) == 0
        assert len(camera.history) == 15

    @pytest.mark.asyncio
    async def test_missing_timeline(self, clock):
        assert await play_timeline(InMemoryCameraController(), None, clock=clock) == 0


# ---------------------------------------------------------------------------
# Clocks, controller, tasks
# ---------------------------------------------------------------------------


class TestFrameClock:

    @pytest.mark.asyncio
    async def test_frames_move_forward(self):
        clock = FrameClock(fps=200)
        a = await clock.next_frame()
        b = await clock.next_frame()
        assert b > a

    @pytest.mark.asyncio
    async def test_real_playback_completes(self):
        camera = InMemoryCameraController()
        segment = AnimateSegment(30, START, END, POWER4_OUT)
        assert await play_segment(camera, segment, clock=FrameClock(fps=200)) is True
        _assert_pose(camera.pose, END)


class TestController:

    def test_lerp_pose_midpoint(self):
        mid = lerp_pose(START, END, 0.5)
        assert mid.position.x == pytest.approx(0.5)
        assert mid.position.z == pytest.approx(2.125)
        assert mid.target.y == pytest.approx(0.25)

    def test_set_position(self):
        camera = InMemoryCameraController()
        camera.set_position(1, 2, 3)
        assert camera.get_position() == Vec3(1.0, 2.0, 3.0)


class TestSafeTask:

    @pytest.mark.asyncio
    async def test_exception_is_logged_not_raised(self, caplog):
        async def boom():
            raise RuntimeError("controller exploded")

        result = await safe_task(boom(), stage="Playback")
        assert result is None
        assert "controller exploded" in caplog.text

    @pytest.mark.asyncio
    async def test_start_playback_runs_timeline(self):
        camera = InMemoryCameraController()
        timeline = Timeline(3.555, 2.0, 2.25, "zoom", scenes=(_entry("Only", 0.0),))
        played = await start_playback(camera, timeline, clock=ManualClock(frame_ms=10))
        assert played == 1


# ---------------------------------------------------------------------------
# Cancelling while waiting
# ---------------------------------------------------------------------------


def _wait_then_move():
    return _entry(segments=[WaitSegment(400), AnimateSegment(50, START, END, POWER3_OUT)])


class TestCancelDuringWait:

    @pytest.mark.asyncio
    async def test_cancel_during_long_wait_on_real_clock(self):
        token = CancellationToken()
        camera = InMemoryCameraController()

        async def cancel_later():
            await asyncio.sleep(0.05)
            token.cancel_all()

        results = await asyncio.gather(
            play_scene(camera, _wait_then_move(), token, FrameClock(fps=100)),
            cancel_later(),
        )
        assert results[0] is False
        assert camera.history == []

    @pytest.mark.asyncio
    async def test_wait_stops_early(self, clock):
        token = CancellationToken(call_later=FakeScheduler())
        camera = InMemoryCameraController()

        async def cancel_soon():
            for _ in range(3):
                await asyncio.sleep(0)
            token.cancel_all()

        results = await asyncio.gather(play_scene(camera, _wait_then_move(), token, clock), cancel_soon())
        assert results[0] is False
        assert clock.now_ms() < 400
        assert camera.history == []

    @pytest.mark.asyncio
    async def test_cancel_released_before_wait_ends_still_stops(self, clock):
        scheduler = FakeScheduler()
        token = CancellationToken(call_later=scheduler)
        camera = InMemoryCameraController()

        async def cancel_and_release():
            for _ in range(3):
                await asyncio.sleep(0)
            token.cancel_all()
            scheduler.fire(0)

        results = await asyncio.gather(
            play_scene(camera, _wait_then_move(), token, clock),
            cancel_and_release(),
        )
        assert results[0] is False
        assert token.cancelled is False
        assert camera.history == []

    @pytest.mark.asyncio
    async def test_release_between_slow_frames_still_stops_animate(self, clock):
        scheduler = FakeScheduler()
        token = CancellationToken(call_later=scheduler)

        class CancelAndRelease(InMemoryCameraController):
            def lerp_look_at(self, *args, **kwargs):
                super().lerp_look_at(*args, **kwargs)
                if len(self.history) == 2:
                    token.cancel_all()
                    scheduler.fire(-1)

        camera = CancelAndRelease()
        segment = AnimateSegment(100, START, END, POWER3_OUT)
        assert await play_segment(camera, segment, token, clock) is False
        assert len(camera.history) == 2

    @pytest.mark.asyncio
    async def test_schedule_wait_is_cancellable(self, clock):
        token = CancellationToken(call_later=FakeScheduler())
        timeline = Timeline(3.555, 2.0, 2.25, "zoom", scenes=(_entry("Late", 5000.0),))

        async def cancel_soon():
            for _ in range(3):
                await asyncio.sleep(0)
            token.cancel_all()

        results = await asyncio.gather(
            play_timeline(InMemoryCameraController(), timeline, token, clock, follow_schedule=True),
            cancel_soon(),
        )
        assert results[0] == 0
        assert clock.now_ms() < 5000


# ---------------------------------------------------------------------------
# Playback settings from config
# ---------------------------------------------------------------------------


class TestPlaybackFromConfig:

    def test_real_clock_and_reset_window(self):
        config = config_from_dict({"fps": 30, "cancel_reset_ms": 250})
        token, clock = playback_from_config(config)
        assert token.reset_after_ms == 250
        assert isinstance(clock, FrameClock)
        assert clock.fps == 30

    def test_simulated_clock(self):
        token, clock = playback_from_config(config_from_dict({"fps": 50}), simulated=True)
        assert isinstance(clock, ManualClock)
        assert clock.frame_ms == pytest.approx(20)

    @pytest.mark.asyncio
    async def test_start_playback_from_config(self):
        config = config_from_dict({"fps": 200, "cancel_reset_ms": 40})
        short = _entry("Short", 0.0, segments=[AnimateSegment(20, START, END, POWER3_OUT)])
        timeline = Timeline(3.555, 2.0, 2.25, "zoom", scenes=(short,))
        camera = InMemoryCameraController()

        task, token = start_playback_from_config(camera, timeline, config)
        assert token.reset_after_ms == 40
        assert await task == 1
        _assert_pose(camera.pose, END)
