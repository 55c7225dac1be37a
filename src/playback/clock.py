"""Frame clocks: the awaitable "next display refresh" and timer primitives.

FrameClock paces real playback at a fixed refresh rate on the asyncio
loop. ManualClock advances simulated time instead of sleeping, for tests
and offline previews.
"""

import asyncio


class FrameClock:
    """Real-time clock ticking at `fps` frames per second."""

    def __init__(self, fps=60):
        self.fps = fps
        self.frame_interval_s = 1.0 / fps
        self.frame_ms = 1000.0 / fps

    def now_ms(self):
        return asyncio.get_running_loop().time() * 1000

    async def next_frame(self):
        """Wait for the next refresh and return its timestamp in ms."""
        await asyncio.sleep(self.frame_interval_s)
        return self.now_ms()

    async def sleep(self, duration_ms):
        await asyncio.sleep(max(0.0, duration_ms) / 1000)


class ManualClock:
    """Simulated clock: each frame advances time by a fixed step.

    Still yields to the event loop on every frame so other tasks (such as a
    test cancelling playback) get to run between frames.
    """

    def __init__(self, frame_ms=1000 / 60, start_ms=0.0):
        self.frame_ms = frame_ms
        self.current_ms = start_ms
        self.frames = 0

    def now_ms(self):
        return self.current_ms

    async def next_frame(self):
        await asyncio.sleep(0)
        self.current_ms += self.frame_ms
        self.frames += 1
        return self.current_ms

    async def sleep(self, duration_ms):
        await asyncio.sleep(0)
        self.current_ms += max(0.0, duration_ms)
