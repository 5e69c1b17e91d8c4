import logging
from typing import Callable, Optional


class IntervalTask:
    """Cancellable handle for a repeating background callback."""

    def __init__(self, interval: float):
        self.interval = interval
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class SocketIOScheduler:
    """Run interval callbacks as Socket.IO background tasks.

    Uses `socketio.sleep` and `socketio.start_background_task` so the same
    code works under threading, eventlet and gevent async modes. The callback
    receives its own task so it can check it is still the current one.
    """

    def __init__(self, socketio, logger: Optional[logging.Logger] = None):
        self._socketio = socketio
        self._logger = logger or logging.getLogger(__name__)

    def call_every(self, interval: float, callback: Callable[[IntervalTask], None]) -> IntervalTask:
        task = IntervalTask(interval)

        def _worker():
            while not task.cancelled:
                self._socketio.sleep(interval)
                if task.cancelled:
                    break
                try:
                    callback(task)
                except Exception:
                    self._logger.exception(f"[timer-error] interval={interval}s callback failed, stopping task")
                    task.cancel()

        self._socketio.start_background_task(_worker)
        return task
