from datetime import datetime, timezone

from app.database.models import NewSourceRecord
from app.database.repositories.base import BaseSourceRecordStore
from app.enrichment.connector import IdentityConnector
from app.ingestion.attempts import UploadAttempt
from app.ingestion.checksum import compute_checksum
from app.ingestion.exceptions import IngestionError
from app.ingestion.models import UploadResult
from app.ingestion.storage_path import (
    build_manual_text_path,
    build_storage_path,
    epoch_millis,
    random_suffix,
)
from app.ingestion.validator import TXT, FileValidator
from app.logging.logger import Log
from app.processor.pipeline import PipelineContext
from app.progress.models import ProgressStatus
from app.progress.reporter import ProgressReporter
from app.storage.uploader import StorageUploader
from app.worker.background import BackgroundProcessor
from app.worker.job_runner import JobRunner, ProcessingJob, ProcessingOutcome

UPLOADED_PROGRESS = 30


class UploadPipeline:
    """Upload flow: validate -> checksum -> store bytes -> create record -> process.

    Content below ``immediate_threshold_bytes`` is processed before ``run``
    returns; larger content is handed to the background processor and
    ``run`` returns as soon as the record exists.
    """

    def __init__(
        self,
        *,
        validator: FileValidator,
        uploader: StorageUploader,
        store: BaseSourceRecordStore,
        job_runner: JobRunner,
        background: BackgroundProcessor,
        reporter: ProgressReporter,
        connector: IdentityConnector,
        immediate_threshold_bytes: int,
        dedup_completed_uploads: bool = False,
        storage_random_suffix: bool = False,
    ) -> None:
        self._validator = validator
        self._uploader = uploader
        self._store = store
        self._job_runner = job_runner
        self._background = background
        self._reporter = reporter
        self._connector = connector
        self._immediate_threshold_bytes = immediate_threshold_bytes
        self._dedup_completed_uploads = dedup_completed_uploads
        self._storage_random_suffix = storage_random_suffix

    def run(self, attempt: UploadAttempt) -> UploadResult:
        """Upload and process a file attempt."""
        file = attempt.file
        if file is None:
            raise ValueError("UploadAttempt.file must be set for a file upload")

        validation = self._validator.validate(file, attempt.category)
        if not validation.valid:
            Log.info(f"Rejected {file.file_name}: {validation.code}")
            return self._reject(attempt, validation.error or "Invalid file", retryable=False)
        if not attempt.token:
            return self._reject(attempt, "User not authenticated", retryable=False)

        checksum = compute_checksum(file.content)
        duplicate = self._find_duplicate(attempt, checksum)
        if duplicate is not None:
            return duplicate

        path = build_storage_path(
            attempt.owner_id,
            file.file_name,
            unique_suffix=random_suffix() if self._storage_random_suffix else None,
        )
        upload = self._uploader.upload(file.content, path, attempt.token, file.mime_type)
        if not upload.success:
            return self._reject(attempt, upload.error or "Upload failed", upload.retryable)

        record = NewSourceRecord(
            owner_id=attempt.owner_id,
            file_name=file.file_name,
            mime_type=file.mime_type,
            byte_size=file.byte_size,
            checksum=checksum,
            storage_path=upload.storage_path or path,
            category=attempt.category,
        )
        failure = self._create_record(attempt, record)
        if failure is not None:
            return failure

        context = PipelineContext(
            source_id=attempt.source_id or "",
            category=attempt.category,
            file_name=file.file_name,
            mime_type=file.mime_type,
            raw_bytes=file.content,
        )
        return self._schedule(attempt, context, file.byte_size)

    def run_text(self, attempt: UploadAttempt) -> UploadResult:
        """Process manually entered text; extraction and storage are skipped."""
        text = attempt.text
        if text is None:
            raise ValueError("UploadAttempt.text must be set for manual text")

        validation = self._validator.validate_text(text)
        if not validation.valid:
            return self._reject(attempt, validation.error or "Invalid text", retryable=False)
        if not attempt.token:
            return self._reject(attempt, "User not authenticated", retryable=False)

        content = text.encode("utf-8")
        checksum = compute_checksum(content)
        duplicate = self._find_duplicate(attempt, checksum)
        if duplicate is not None:
            return duplicate

        now = datetime.now(timezone.utc)
        file_name = f"manual_{attempt.category.value}_{epoch_millis(now)}.txt"
        record = NewSourceRecord(
            owner_id=attempt.owner_id,
            file_name=file_name,
            mime_type=TXT,
            byte_size=len(content),
            checksum=checksum,
            storage_path=build_manual_text_path(attempt.owner_id, attempt.category.value, now),
            category=attempt.category,
        )
        failure = self._create_record(attempt, record)
        if failure is not None:
            return failure

        context = PipelineContext(
            source_id=attempt.source_id or "",
            category=attempt.category,
            file_name=file_name,
            mime_type=TXT,
            raw_text=text,
        )
        return self._schedule(attempt, context, len(content))

    def run_identity(self, attempt: UploadAttempt) -> UploadResult:
        """Connect an identity profile, reporting progress like an upload."""
        if attempt.profile_url is None:
            raise ValueError("UploadAttempt.profile_url must be set for an identity connection")
        self._reporter.update(attempt.file_id, ProgressStatus.PROCESSING, UPLOADED_PROGRESS)
        result = self._connector.connect(
            attempt.profile_url,
            attempt.owner_id,
            attempt.token,
            full_name=attempt.full_name,
            company=attempt.company,
            linkedin_access_token=attempt.linkedin_access_token,
            source_id=attempt.source_id,
        )
        if result.file_id:
            attempt.source_id = result.file_id
            self._reporter.bind_source(attempt.file_id, result.file_id)
        if result.success:
            self._reporter.complete(attempt.file_id, result.file_id)
        else:
            self._reporter.fail(attempt.file_id, result.error or "", bool(result.retryable))
        return UploadResult(
            success=result.success,
            file_id=result.file_id,
            error=result.error,
            retryable=result.retryable,
            progress_id=attempt.file_id,
        )

    def resume(
        self,
        attempt: UploadAttempt,
        start_stage: str | None = None,
        raw_text: str | None = None,
        byte_size: int = 0,
    ) -> UploadResult:
        """Re-run processing for an attempt whose record already exists."""
        if attempt.source_id is None:
            raise ValueError("UploadAttempt.source_id must be set to resume processing")
        if attempt.file is not None:
            file_name, mime_type = attempt.file.file_name, attempt.file.mime_type
        else:
            file_name, mime_type = attempt.display_name, TXT
        context = PipelineContext(
            source_id=attempt.source_id,
            category=attempt.category,
            file_name=file_name,
            mime_type=mime_type,
            raw_bytes=attempt.file.content if attempt.file is not None else None,
            raw_text=raw_text or attempt.text or "",
        )
        self._reporter.bind_source(attempt.file_id, attempt.source_id)
        return self._schedule(attempt, context, byte_size, start_stage)

    def _find_duplicate(self, attempt: UploadAttempt, checksum: str) -> UploadResult | None:
        if not self._dedup_completed_uploads:
            return None
        try:
            existing = self._store.find_completed_by_checksum(attempt.owner_id, checksum)
        except IngestionError as exc:
            Log.warning(f"Duplicate lookup failed, continuing with upload: {exc}")
            return None
        if existing is None:
            return None
        Log.info(f"Content already processed as source {existing.id}, skipping upload")
        attempt.source_id = existing.id
        self._reporter.complete(attempt.file_id, existing.id)
        return UploadResult(success=True, file_id=existing.id, progress_id=attempt.file_id)

    def _create_record(
        self,
        attempt: UploadAttempt,
        record: NewSourceRecord,
    ) -> UploadResult | None:
        try:
            attempt.source_id = self._store.create(record)
        except IngestionError as exc:
            Log.error(f"Could not create source record for {record.file_name}: {exc}")
            return self._reject(attempt, str(exc), exc.retryable)
        Log.info(f"Created source {attempt.source_id} for {record.file_name}")
        self._reporter.bind_source(attempt.file_id, attempt.source_id)
        self._reporter.advance(attempt.file_id, UPLOADED_PROGRESS)
        return None

    def _schedule(
        self,
        attempt: UploadAttempt,
        context: PipelineContext,
        byte_size: int,
        start_stage: str | None = None,
    ) -> UploadResult:
        job = ProcessingJob(
            context=context,
            start_stage=start_stage,
            on_progress=lambda progress: self._reporter.advance(attempt.file_id, progress),
            on_finished=lambda outcome: self._finish(attempt, outcome),
        )
        if byte_size < self._immediate_threshold_bytes:
            outcome = self._job_runner.run(job)
            if outcome.succeeded:
                return UploadResult(
                    success=True, file_id=context.source_id, progress_id=attempt.file_id
                )
            return UploadResult(
                success=False,
                file_id=context.source_id,
                error=outcome.error,
                retryable=outcome.retryable,
                progress_id=attempt.file_id,
            )

        self._reporter.update(attempt.file_id, ProgressStatus.PROCESSING)
        if not self._background.submit(job):
            outcome = self._job_runner.fail(
                job, "Background processing is unavailable", retryable=True
            )
            return UploadResult(
                success=False,
                file_id=context.source_id,
                error=outcome.error,
                retryable=True,
                progress_id=attempt.file_id,
            )
        Log.info(f"Source {context.source_id} queued for background processing")
        return UploadResult(success=True, file_id=context.source_id, progress_id=attempt.file_id)

    def _finish(self, attempt: UploadAttempt, outcome: ProcessingOutcome) -> None:
        attempt.failed_stage = outcome.failed_stage
        if outcome.succeeded:
            self._reporter.complete(attempt.file_id, outcome.source_id)
        else:
            self._reporter.fail(attempt.file_id, outcome.error or "", bool(outcome.retryable))

    def _reject(self, attempt: UploadAttempt, error: str, retryable: bool) -> UploadResult:
        self._reporter.fail(attempt.file_id, error, retryable)
        return UploadResult(
            success=False, error=error, retryable=retryable, progress_id=attempt.file_id
        )
