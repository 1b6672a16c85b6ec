"""Trailing-edge debounce for draft saves.

arm() restarts the quiet window; only the arguments of the last arm()
reach the callback. flush() runs a pending call immediately (teardown),
cancel() drops it and waits for a call already running, so nothing the
task started can land after cancel() returns.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class DebouncedTask:
    def __init__(self, delay: float, callback: Callable[..., Any]):
        self.delay = delay
        self._callback = callback
        self._lock = threading.Lock()
        # Held for the whole callback; always taken while holding _lock.
        self._running = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._args: tuple = ()
        self._kwargs: dict = {}
        self._generation = 0

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def arm(self, *args, **kwargs) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            self._args, self._kwargs = args, kwargs
            timer = threading.Timer(self.delay, self._fire, args=(self._generation,))
            timer.daemon = True
            self._timer = timer
            timer.start()

    def cancel(self) -> None:
        with self._lock:
            self._drop()
        with self._running:
            pass

    def flush(self) -> bool:
        """Run the pending call now. Returns False when nothing was pending."""
        with self._lock:
            if self._timer is None:
                return False
            args, kwargs = self._args, self._kwargs
            self._drop()
            self._running.acquire()
        self._run(args, kwargs)
        return True

    def _drop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._generation += 1
        self._args, self._kwargs = (), {}

    def _fire(self, generation: int) -> None:
        with self._lock:
            # A later arm/cancel/flush superseded this timer.
            if generation != self._generation or self._timer is None:
                return
            args, kwargs = self._args, self._kwargs
            self._timer = None
            self._args, self._kwargs = (), {}
            self._running.acquire()
        self._run(args, kwargs)

    def _run(self, args: tuple, kwargs: dict) -> None:
        """Call the callback; the caller holds _running."""
        try:
            self._callback(*args, **kwargs)
        except Exception:
            logger.exception("Debounced callback failed")
        finally:
            self._running.release()
