"""Cooperative cancellation for camera playback.

A CancellationToken is shared by every player call that should stop
together. cancel_all() raises the flag and schedules it to drop again
after a short quiescence window, so in-flight frames get a chance to see
it. Overlapping cancellations are tie-broken by generation: a scheduled
release only clears the flag if no newer cancel_all() happened since.
"""

import asyncio
import logging
import threading

logger = logging.getLogger(__name__)

DEFAULT_RESET_MS = 100


def _default_call_later(delay_s, callback, *args):
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        timer = threading.Timer(delay_s, callback, args=args)
        timer.daemon = True
        timer.start()
        return timer
    return loop.call_later(delay_s, callback, *args)


class CancellationToken:
    """Cancellation flag plus a monotonically increasing generation counter."""

    def __init__(self, reset_after_ms=DEFAULT_RESET_MS, call_later=None):
        """
        Args:
            reset_after_ms: Quiescence window before the flag clears.
            call_later: Scheduler with asyncio's call_later signature
                (delay_seconds, callback, *args). Defaults to the running
                event loop, or a daemon timer thread when none is running.
        """
        self.reset_after_ms = reset_after_ms
        self._call_later = call_later or _default_call_later
        self._cancelled = False
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def cancelled(self):
        return self._cancelled

    @property
    def generation(self):
        return self._generation

    def cancelled_since(self, generation):
        """True if the flag is up or any cancellation happened after `generation`.

        Long running steps compare against the generation they started
        under, so a cancel still counts after its release has fired.
        """
        return self._cancelled or self._generation != generation

    def cancel_all(self):
        """Stop every player step watching this token, at its current pose.

        Returns:
            The generation number of this cancellation.
        """
        with self._lock:
            self._cancelled = True
            self._generation += 1
            generation = self._generation
        logger.info(f"[Cancellation] Cancel requested (generation {generation})")
        self._call_later(self.reset_after_ms / 1000, self.release, generation)
        return generation

    def release(self, generation):
        """Clear the flag if `generation` is still the latest cancellation.

        Returns:
            True if the flag was cleared.
        """
        with self._lock:
            if generation != self._generation:
                return False
            self._cancelled = False
        logger.debug(f"[Cancellation] Released generation {generation}")
        return True
