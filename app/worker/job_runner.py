import threading
from collections.abc import Callable
from dataclasses import dataclass

from app.database.repositories.base import BaseSourceRecordStore
from app.ingestion.exceptions import ProcessingError
from app.ingestion.models import ProcessingStatus
from app.logging.logger import Log
from app.processor.pipeline import PipelineContext
from app.processor.processor import ProgressCallback, Processor


@dataclass(frozen=True)
class ProcessingOutcome:
    source_id: str
    status: ProcessingStatus
    failed_stage: str = ""
    error: str | None = None
    retryable: bool | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is ProcessingStatus.COMPLETED


@dataclass
class ProcessingJob:
    """A unit of processing work for one source record."""

    context: PipelineContext
    start_stage: str | None = None
    on_progress: ProgressCallback | None = None
    on_finished: Callable[[ProcessingOutcome], None] | None = None


class JobRunner:
    """Run one processing job and convert every failure into an outcome.

    Nothing raised by the processor escapes ``run``: unexpected errors are
    logged and persisted as FAILED so a worker thread never dies on a job.
    """

    def __init__(self, processor: Processor, store: BaseSourceRecordStore) -> None:
        self._processor = processor
        self._store = store

    def run(
        self,
        job: ProcessingJob,
        cancel_event: threading.Event | None = None,
    ) -> ProcessingOutcome:
        """Execute a single job with error handling."""
        source_id = job.context.source_id
        Log.info(f"Running processing job for source {source_id}")
        try:
            self._processor.process(
                job.context,
                start_stage=job.start_stage,
                cancel_event=cancel_event,
                on_progress=job.on_progress,
            )
            outcome = ProcessingOutcome(source_id=source_id, status=ProcessingStatus.COMPLETED)
            Log.info(f"Processing job for source {source_id} completed successfully")
        except ProcessingError as exc:
            outcome = ProcessingOutcome(
                source_id=source_id,
                status=ProcessingStatus.FAILED,
                failed_stage=exc.stage,
                error=str(exc),
                retryable=exc.retryable,
            )
        except Exception as exc:
            outcome = self._handle_unexpected(job, exc)

        self.notify(job, outcome)
        return outcome

    def fail(self, job: ProcessingJob, message: str, retryable: bool = True) -> ProcessingOutcome:
        """Mark a job FAILED without running it, e.g. when it is dropped from a queue."""
        self._persist_failure(job.context.source_id, message, retryable)
        outcome = ProcessingOutcome(
            source_id=job.context.source_id,
            status=ProcessingStatus.FAILED,
            error=message,
            retryable=retryable,
        )
        self.notify(job, outcome)
        return outcome

    @staticmethod
    def notify(job: ProcessingJob, outcome: ProcessingOutcome) -> None:
        if job.on_finished is None:
            return
        try:
            job.on_finished(outcome)
        except Exception as exc:
            Log.warning(f"Completion callback failed for source {outcome.source_id}: {exc}")

    def _handle_unexpected(self, job: ProcessingJob, exc: Exception) -> ProcessingOutcome:
        source_id = job.context.source_id
        Log.exception(f"Processing job for source {source_id} crashed: {exc}")
        message = f"Processing failed: {exc}"
        self._persist_failure(source_id, message, retryable=True)
        return ProcessingOutcome(
            source_id=source_id,
            status=ProcessingStatus.FAILED,
            error=message,
            retryable=True,
        )

    def _persist_failure(self, source_id: str, message: str, retryable: bool) -> None:
        try:
            self._store.update_status(
                source_id,
                ProcessingStatus.FAILED,
                error=message,
                retryable=retryable,
            )
        except Exception as exc:
            Log.exception(f"Could not mark source {source_id} as failed: {exc}")
