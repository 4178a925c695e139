"""Countdown timers for matches.

A timer driver runs ``on_tick`` once per tick for ``duration`` ticks and then
``on_complete``, unless it is cancelled first. ``BackgroundTimer`` runs each
countdown as a Socket.IO background task; ``ManualTimer`` only moves when a test
calls ``advance``. ``CountdownScheduler`` layers the single-slot, per-match
countdown on top of either driver.
"""

import logging
import threading
from typing import Callable, List, Optional

from .state import GameStateStore


logger = logging.getLogger(__name__)


class TimerHandle:
    def __init__(self, duration: int, on_tick: Callable[[], None], on_complete: Callable[[], None]):
        self.remaining = duration
        self.on_tick = on_tick
        self.on_complete = on_complete
        self.cancelled = False
        self.done = False

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.done)


class BackgroundTimer:
    def __init__(self, socketio, tick_sec: float = 1.0):
        self.socketio = socketio
        self.tick_sec = tick_sec

    def start(self, duration: int, on_tick, on_complete) -> TimerHandle:
        handle = TimerHandle(duration, on_tick, on_complete)
        self.socketio.start_background_task(self._worker, handle)
        return handle

    def cancel(self, handle: Optional[TimerHandle]) -> None:
        if handle is not None:
            handle.cancelled = True

    def _worker(self, handle: TimerHandle) -> None:
        while True:
            self.socketio.sleep(self.tick_sec)
            if handle.cancelled:
                return
            handle.remaining -= 1
            handle.on_tick()
            if handle.remaining <= 0:
                break
        if handle.cancelled:
            return
        handle.done = True
        handle.on_complete()


class ManualTimer:
    """Virtual clock: every active countdown moves one tick per ``advance`` step."""

    def __init__(self):
        self.handles: List[TimerHandle] = []

    def start(self, duration: int, on_tick, on_complete) -> TimerHandle:
        handle = TimerHandle(duration, on_tick, on_complete)
        self.handles.append(handle)
        return handle

    def cancel(self, handle: Optional[TimerHandle]) -> None:
        if handle is not None:
            handle.cancelled = True

    @property
    def active(self) -> List[TimerHandle]:
        return [h for h in self.handles if h.active]

    def advance(self, ticks: int = 1) -> None:
        for _ in range(ticks):
            # countdowns started during this step begin on the next one
            for handle in self.active:
                if not handle.active:
                    continue
                handle.remaining -= 1
                handle.on_tick()
                if handle.active and handle.remaining <= 0:
                    handle.done = True
                    handle.on_complete()
            self.handles = self.active


class CountdownScheduler:
    """Single active countdown for one match.

    Starting a countdown cancels the previous one. Each tick decrements the
    store's ``current_timer_duration`` and broadcasts; at zero the completion
    callback runs once. Callbacks run under the match lock, and ticks from a
    superseded countdown are dropped by comparing generations.
    """

    def __init__(self, store: GameStateStore, timer, broadcast: Callable[[], None], lock=None):
        self.store = store
        self.timer = timer
        self.broadcast = broadcast
        self.lock = lock or threading.RLock()
        self._handle: Optional[TimerHandle] = None
        self._generation = 0

    @property
    def running(self) -> bool:
        return self._handle is not None and self._handle.active

    def start_countdown(self, callback: Callable[[], None], duration: Optional[int] = None) -> None:
        self.cancel()
        seconds = int(duration or self.store.rules.timer_durations.default)
        self.store.set_timer(seconds)
        self._generation += 1
        generation = self._generation
        logger.info(f"[timer-set] room={self.store.room_id} duration={seconds}s generation={generation}")
        self._handle = self.timer.start(
            seconds,
            lambda: self._tick(generation),
            lambda: self._complete(generation, callback),
        )

    def cancel(self) -> None:
        if self._handle is not None:
            self.timer.cancel(self._handle)
            self._handle = None
        self._generation += 1

    def _tick(self, generation: int) -> None:
        with self.lock:
            if generation != self._generation:
                return
            remaining = self.store.decrement_timer()
            logger.debug(f"[timer-tick] room={self.store.room_id} remaining={remaining}s")
            self.broadcast()

    def _complete(self, generation: int, callback: Callable[[], None]) -> None:
        with self.lock:
            if generation != self._generation:
                logger.debug(f"[timer-abort] room={self.store.room_id} superseded generation={generation}")
                return
            self._handle = None
            self._generation += 1
            logger.info(f"[timer-fire] room={self.store.room_id}")
            callback()
