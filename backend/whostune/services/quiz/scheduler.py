import logging
from typing import Callable


logger = logging.getLogger(__name__)


class Countdown:
    """Recurring one-second timer owned by a quiz runtime.

    Every tick runs ``on_tick`` while holding the room lock; the callback
    returns False once the countdown has nothing left to do. ``cancel`` must
    be called under the same lock, so a cancelled countdown never touches the
    room again.
    """

    def __init__(self, scheduler: 'TaskScheduler', lock, on_tick: Callable[[], bool],
                 label: str, interval: float = 1.0):
        self._scheduler = scheduler
        self._lock = lock
        self._on_tick = on_tick
        self.label = label
        self.interval = interval
        self.cancelled = False

    def cancel(self) -> None:
        if not self.cancelled:
            self.cancelled = True
            logger.debug(f"[timer-cancel] {self.label}")

    def run(self) -> None:
        while True:
            self._scheduler.sleep(self.interval)
            with self._lock:
                if self.cancelled:
                    logger.debug(f"[timer-abort] {self.label} cancelled")
                    return
                try:
                    if not self._on_tick():
                        return
                except Exception:
                    logger.exception(f"[timer-error] {self.label}")
                    return


class TaskScheduler:
    """Background work for rooms, on top of the Socket.IO task helpers.

    With ``run_inline`` (TESTING) delayed calls run immediately and countdowns
    are created but never started, so tests drive ticks explicitly.
    """

    def __init__(self, socketio=None, run_inline: bool = False):
        self.socketio = socketio
        self.run_inline = run_inline or socketio is None

    def sleep(self, seconds: float) -> None:
        self.socketio.sleep(seconds)

    def call_later(self, delay: float, fn: Callable, *args) -> None:
        if self.run_inline:
            fn(*args)
            return

        def _worker():
            if delay:
                self.socketio.sleep(delay)
            try:
                fn(*args)
            except Exception:
                logger.exception(f"[task-error] {getattr(fn, '__name__', fn)}")

        self.socketio.start_background_task(_worker)

    def countdown(self, lock, on_tick: Callable[[], bool], label: str) -> Countdown:
        timer = Countdown(self, lock, on_tick, label)
        if not self.run_inline:
            self.socketio.start_background_task(timer.run)
        logger.info(f"[timer-set] {label}")
        return timer
