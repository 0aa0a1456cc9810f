import threading
from types import TracebackType

from app.logging.logger import Log
from app.progress.reporter import ProgressReporter


class ProgressTicker:
    """Daemon thread that nudges in-flight progress entries forward.

    The movement is cosmetic; real state is whatever the record says.
    """

    def __init__(
        self,
        reporter: ProgressReporter,
        interval_seconds: float = 0.5,
        step: int = 5,
    ) -> None:
        self._reporter = reporter
        self._interval_seconds = interval_seconds
        self._step = step
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    def start(self) -> "ProgressTicker":
        with self._lock:
            if self._thread is None and not self._stop_event.is_set():
                self._thread = threading.Thread(
                    target=self._run, name="progress-ticker", daemon=True
                )
                self._thread.start()
        return self

    def stop(self) -> None:
        self._stop_event.set()
        with self._lock:
            thread, self._thread = self._thread, None
        if thread is not None:
            thread.join()

    def __enter__(self) -> "ProgressTicker":
        return self.start()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.stop()

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval_seconds):
            try:
                self._reporter.tick(self._step)
            except Exception as exc:
                Log.warning(f"Progress tick failed: {exc}")
