from app.database.repositories.base import BaseSourceRecordStore
from app.ingestion.attempts import AttemptRegistry, UploadAttempt
from app.ingestion.exceptions import IngestionError
from app.ingestion.models import ProcessingStatus, UploadResult
from app.ingestion.pipeline import UploadPipeline
from app.logging.logger import Log
from app.processor.pipeline import ANALYSIS_STAGE
from app.progress.models import ProgressEntry, ProgressStatus
from app.progress.reporter import ProgressReporter


class RetryCoordinator:
    """Re-drives a failed, retryable upload against its existing record.

    The progress entry says which upload failed; the source record has the
    final say on whether it may be retried. A retry resets the record to
    PENDING and resumes at analysis when raw text was already persisted.
    """

    def __init__(
        self,
        reporter: ProgressReporter,
        store: BaseSourceRecordStore,
        pipeline: UploadPipeline,
        attempts: AttemptRegistry,
    ) -> None:
        self._reporter = reporter
        self._store = store
        self._pipeline = pipeline
        self._attempts = attempts

    def retry(self, file_id: str) -> UploadResult:
        entry = self._reporter.get(file_id)
        attempt = self._attempts.get(file_id)
        if entry is None or attempt is None:
            return self._reject(file_id, "Upload not found")
        if entry.status is not ProgressStatus.FAILED:
            return self._reject(file_id, "Only failed uploads can be retried")
        if not entry.retryable:
            return self._reject(file_id, f"Upload cannot be retried: {entry.error}")

        # Claim before any I/O so concurrent retries of one upload cannot both proceed.
        claimed = self._reporter.claim_retry(file_id)
        if claimed is None:
            return self._reject(file_id, "Only failed uploads can be retried")

        record = None
        if attempt.source_id is not None:
            try:
                record = self._store.find_by_id(attempt.source_id)
            except IngestionError as exc:
                self._release(claimed)
                return self._reject(file_id, f"Upload cannot be retried: {exc}")
            if record.status is not ProcessingStatus.FAILED or record.retryable is False:
                self._release(claimed)
                return self._reject(file_id, "Upload cannot be retried in its current state")
            self._reporter.bind_source(file_id, record.id)

        Log.info(f"Retrying upload {file_id} ({attempt.display_name})")

        if record is None:
            return self._rerun(attempt)

        try:
            self._store.update_status(record.id, ProcessingStatus.PENDING)
        except IngestionError as exc:
            Log.error(f"Could not reset source {record.id} for retry: {exc}")
            self._reporter.fail(file_id, str(exc), exc.retryable)
            return UploadResult(
                success=False,
                file_id=record.id,
                error=str(exc),
                retryable=exc.retryable,
                progress_id=file_id,
            )

        if attempt.is_identity:
            return self._pipeline.run_identity(attempt)
        start_stage = ANALYSIS_STAGE if record.raw_text else None
        return self._pipeline.resume(
            attempt,
            start_stage=start_stage,
            raw_text=record.raw_text,
            byte_size=record.byte_size,
        )

    def _rerun(self, attempt: UploadAttempt) -> UploadResult:
        """No record was created, so the whole upload runs again."""
        if attempt.is_identity:
            return self._pipeline.run_identity(attempt)
        if attempt.text is not None:
            return self._pipeline.run_text(attempt)
        return self._pipeline.run(attempt)

    def _release(self, claimed: ProgressEntry) -> None:
        """Put a claimed entry back into its failed state."""
        self._reporter.fail(claimed.file_id, claimed.error or "", bool(claimed.retryable))

    @staticmethod
    def _reject(file_id: str, error: str) -> UploadResult:
        Log.warning(f"Retry rejected for upload {file_id}: {error}")
        return UploadResult(success=False, error=error, retryable=False, progress_id=file_id)
