import queue
import threading

from app.logging.logger import Log
from app.worker.job_runner import JobRunner, ProcessingJob

_STOP = object()


class BackgroundProcessor:
    """Bounded pool of worker threads consuming processing jobs from a queue.

    Replaces detached fire-and-forget tasks: every job goes through
    ``JobRunner.run``, so failures end up on the record and in the log.
    """

    def __init__(
        self,
        job_runner: JobRunner,
        max_workers: int = 5,
        queue_size: int = 100,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self._job_runner = job_runner
        self._max_workers = max_workers
        self._queue: queue.Queue[object] = queue.Queue(maxsize=queue_size)
        self._stop_event = threading.Event()
        self._threads: list[threading.Thread] = []
        self._lock = threading.Lock()
        self._closed = False

    @property
    def running(self) -> bool:
        return bool(self._threads) and not self._stop_event.is_set()

    def start(self) -> None:
        with self._lock:
            if self._threads or self._closed:
                return
            self._spawn_workers()
        Log.info(f"Background processor started with {self._max_workers} workers")

    def submit(self, job: ProcessingJob) -> bool:
        """Queue a job. Returns False when the pool is stopped or the queue is full."""
        started = False
        with self._lock:
            if self._closed:
                return False
            if not self._threads:
                self._spawn_workers()
                started = True
            try:
                self._queue.put_nowait(job)
            except queue.Full:
                Log.warning(f"Background queue full, rejecting source {job.context.source_id}")
                return False
        if started:
            Log.info(f"Background processor started with {self._max_workers} workers")
        Log.debug(f"Queued background processing for source {job.context.source_id}")
        return True

    def join(self) -> None:
        """Block until every queued job has been processed."""
        self._queue.join()

    def shutdown(self, wait: bool = True, cancel_pending: bool = False) -> None:
        """Stop the workers.

        With ``cancel_pending`` the stop event is set first: queued jobs are
        marked FAILED (retryable) and running jobs stop before their next step.
        Otherwise queued jobs are drained before the workers exit.
        """
        with self._lock:
            self._closed = True
            threads = list(self._threads)
            self._threads.clear()
        if not threads:
            return

        if cancel_pending:
            self._stop_event.set()
            self._cancel_queued()
        for _ in threads:
            self._queue.put(_STOP)
        if wait:
            for thread in threads:
                thread.join()
        self._stop_event.set()
        Log.info("Background processor stopped")

    def _spawn_workers(self) -> None:
        """Caller holds ``self._lock``."""
        for index in range(self._max_workers):
            thread = threading.Thread(
                target=self._work,
                name=f"background-processor-{index}",
                daemon=True,
            )
            thread.start()
            self._threads.append(thread)

    def _cancel_queued(self) -> None:
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return
            try:
                if isinstance(item, ProcessingJob):
                    Log.warning(f"Cancelling queued processing for source {item.context.source_id}")
                    self._job_runner.fail(item, "Processing was cancelled", retryable=True)
            finally:
                self._queue.task_done()

    def _work(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                if isinstance(item, ProcessingJob):
                    self._job_runner.run(item, cancel_event=self._stop_event)
            except Exception as exc:
                Log.exception(f"Background worker error: {exc}")
            finally:
                self._queue.task_done()
