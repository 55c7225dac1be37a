"""Safe async task wrapper: background playback without silently lost exceptions."""

import asyncio
import logging

from src.playback.cancellation import CancellationToken
from src.playback.clock import FrameClock, ManualClock
from src.playback.player import play_timeline

logger = logging.getLogger(__name__)


async def _run_safe(coro, stage="Background Task"):
    """Run a coroutine, logging any exception it raises instead of propagating it."""
    try:
        return await coro
    except asyncio.CancelledError:
        raise
    except Exception as e:
        logger.exception(f"[safe_task] Exception in {stage}: {e}")
        return None


def safe_task(coro, stage="Background Task"):
    """Create an asyncio task with exception catching.

    Drop-in replacement for asyncio.create_task for fire-and-forget
    playback: a controller that blows up mid-scene gets logged, and the
    host keeps running.

    Args:
        coro: The coroutine to run.
        stage: Human-readable stage name for log messages.

    Returns:
        asyncio.Task
    """
    return asyncio.ensure_future(_run_safe(coro, stage))


def playback_from_config(config, simulated=False):
    """Build the cancellation token and frame clock a TimelineConfig asks for.

    Args:
        config: TimelineConfig (uses fps and cancel_reset_ms).
        simulated: If True, return a ManualClock stepping one frame per tick
            instead of a real-time FrameClock.

    Returns:
        (token, clock)
    """
    token = CancellationToken(reset_after_ms=config.cancel_reset_ms)
    clock = ManualClock(frame_ms=1000 / config.fps) if simulated else FrameClock(config.fps)
    return token, clock


def start_playback(controller, timeline, token=None, clock=None, follow_schedule=True):
    """Play a timeline in the background. Must be called with a running event loop."""
    return safe_task(
        play_timeline(controller, timeline, token, clock, follow_schedule),
        stage="Camera Timeline Playback",
    )


def start_playback_from_config(controller, timeline, config, follow_schedule=True):
    """start_playback with the token and clock built from a TimelineConfig.

    Returns:
        (task, token). Call token.cancel_all() to stop the camera in place.
    """
    token, clock = playback_from_config(config)
    task = start_playback(controller, timeline, token, clock, follow_schedule)
    return task, token
