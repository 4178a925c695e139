from roundhub.services.games.scheduler import BackgroundTimer, CountdownScheduler, ManualTimer
from roundhub.services.games.state import GameStateStore

from conftest import make_rules


class FakeSocketIO:
    """Queues background tasks until run_tasks() and records sleeps."""

    def __init__(self):
        self.sleeps = []
        self.tasks = []
        self.on_sleep = None

    def start_background_task(self, target, *args, **kwargs):
        self.tasks.append((target, args, kwargs))

    def run_tasks(self):
        tasks, self.tasks = self.tasks, []
        for target, args, kwargs in tasks:
            target(*args, **kwargs)

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        if self.on_sleep:
            self.on_sleep()


def make_scheduler(timer):
    store = GameStateStore('gameSession-t', make_rules())
    broadcasts = []
    scheduler = CountdownScheduler(store, timer, lambda: broadcasts.append(store.current_timer_duration))
    return store, scheduler, broadcasts


def test_countdown_fires_after_exact_ticks():
    timer = ManualTimer()
    store, scheduler, broadcasts = make_scheduler(timer)
    fired = []
    scheduler.start_countdown(lambda: fired.append(True), 3)
    assert store.current_timer_duration == 3

    timer.advance(2)
    assert fired == []
    assert store.current_timer_duration == 1
    assert broadcasts == [2, 1]

    timer.advance()
    assert fired == [True]
    assert store.current_timer_duration == 0
    assert broadcasts == [2, 1, 0]

    timer.advance(3)
    assert fired == [True]
    assert not scheduler.running


def test_default_duration_from_rules():
    timer = ManualTimer()
    store, scheduler, _ = make_scheduler(timer)
    scheduler.start_countdown(lambda: None)
    assert store.current_timer_duration == store.rules.timer_durations.default


def test_new_countdown_replaces_running_one():
    timer = ManualTimer()
    store, scheduler, _ = make_scheduler(timer)
    fired = []
    scheduler.start_countdown(lambda: fired.append('first'), 3)
    timer.advance()
    scheduler.start_countdown(lambda: fired.append('second'), 2)
    assert store.current_timer_duration == 2
    timer.advance(5)
    assert fired == ['second']
    assert len(timer.active) == 0


def test_callback_can_chain_countdowns():
    timer = ManualTimer()
    store, scheduler, _ = make_scheduler(timer)
    fired = []

    def first():
        fired.append('first')
        scheduler.start_countdown(lambda: fired.append('second'), 2)

    scheduler.start_countdown(first, 1)
    timer.advance()
    assert fired == ['first']
    assert store.current_timer_duration == 2
    timer.advance(2)
    assert fired == ['first', 'second']


def test_cancel_stops_countdown():
    timer = ManualTimer()
    store, scheduler, broadcasts = make_scheduler(timer)
    fired = []
    scheduler.start_countdown(lambda: fired.append(True), 2)
    scheduler.cancel()
    timer.advance(3)
    assert fired == []
    assert broadcasts == []


def test_background_timer_ticks_then_completes():
    sio = FakeSocketIO()
    timer = BackgroundTimer(sio, tick_sec=0.5)
    ticks = []
    done = []
    handle = timer.start(3, lambda: ticks.append(1), lambda: done.append(True))
    assert ticks == []
    sio.run_tasks()
    assert sio.sleeps == [0.5, 0.5, 0.5]
    assert len(ticks) == 3
    assert done == [True]
    assert not handle.active


def test_background_timer_cancelled_mid_countdown():
    sio = FakeSocketIO()
    timer = BackgroundTimer(sio)
    ticks = []
    done = []
    handle = timer.start(4, lambda: ticks.append(1), lambda: done.append(True))

    def on_sleep():
        if len(sio.sleeps) == 2:
            timer.cancel(handle)

    sio.on_sleep = on_sleep
    sio.run_tasks()
    assert len(ticks) == 1
    assert done == []
    assert handle.cancelled
