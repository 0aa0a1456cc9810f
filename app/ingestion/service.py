from collections.abc import Sequence

from app.analysis.factory import AnalyzerFactory
from app.config.settings import Settings
from app.database.models import SourceRecord
from app.database.repositories.base import BaseSourceRecordStore
from app.database.repositories.factory import SourceRecordStoreFactory
from app.enrichment.connector import IdentityConnector
from app.enrichment.factory import EnrichmentChainFactory
from app.extraction.factory import TextExtractorFactory
from app.ingestion.attempts import AttemptRegistry, UploadAttempt
from app.ingestion.models import FileCategory, UploadedFile, UploadResult
from app.ingestion.pipeline import UploadPipeline
from app.ingestion.retry import RetryCoordinator
from app.ingestion.validator import FileValidator
from app.logging.logger import Log
from app.processor.processor import build_processor
from app.progress.reporter import ProgressReporter
from app.progress.ticker import ProgressTicker
from app.storage.http_object_store import HttpObjectStore
from app.storage.uploader import StorageUploader
from app.worker.background import BackgroundProcessor
from app.worker.job_runner import JobRunner


class IngestionService:
    """Entry point for one user session: uploads, manual text, identity, retries.

    Progress is tracked per session; persisted state lives in the record store.
    """

    def __init__(
        self,
        *,
        pipeline: UploadPipeline,
        coordinator: RetryCoordinator,
        store: BaseSourceRecordStore,
        reporter: ProgressReporter,
        attempts: AttemptRegistry,
        background: BackgroundProcessor,
        ticker: ProgressTicker | None = None,
        max_files_per_batch: int = 5,
    ) -> None:
        self._pipeline = pipeline
        self._coordinator = coordinator
        self._store = store
        self._reporter = reporter
        self._attempts = attempts
        self._background = background
        self._ticker = ticker
        self._max_files_per_batch = max_files_per_batch

    @property
    def progress(self) -> ProgressReporter:
        return self._reporter

    def upload_file(
        self,
        file: UploadedFile,
        owner_id: str,
        category: FileCategory,
        token: str | None,
    ) -> UploadResult:
        attempt = self._begin(
            UploadAttempt(
                file_id="",
                owner_id=owner_id,
                category=category,
                token=token,
                file=file,
            )
        )
        return self._pipeline.run(attempt)

    def upload_files(
        self,
        files: Sequence[UploadedFile],
        owner_id: str,
        category: FileCategory,
        token: str | None,
    ) -> list[UploadResult]:
        """Upload files one after another; a batch above the limit is rejected whole."""
        if len(files) > self._max_files_per_batch:
            error = f"Too many files. Maximum {self._max_files_per_batch} files allowed."
            Log.warning(error)
            return [UploadResult(success=False, error=error, retryable=False)]
        return [self.upload_file(file, owner_id, category, token) for file in files]

    def upload_manual_text(
        self,
        text: str,
        owner_id: str,
        category: FileCategory,
        token: str | None,
    ) -> UploadResult:
        attempt = self._begin(
            UploadAttempt(
                file_id="",
                owner_id=owner_id,
                category=category,
                token=token,
                text=text,
            )
        )
        return self._pipeline.run_text(attempt)

    def connect_identity(
        self,
        profile_url: str,
        owner_id: str,
        token: str | None,
        full_name: str | None = None,
        company: str | None = None,
        linkedin_access_token: str | None = None,
    ) -> UploadResult:
        attempt = self._begin(
            UploadAttempt(
                file_id="",
                owner_id=owner_id,
                category=FileCategory.LINKEDIN,
                token=token,
                profile_url=profile_url,
                full_name=full_name,
                company=company,
                linkedin_access_token=linkedin_access_token,
            )
        )
        return self._pipeline.run_identity(attempt)

    def retry_upload(self, file_id: str) -> UploadResult:
        return self._coordinator.retry(file_id)

    def get_record(self, source_id: str) -> SourceRecord:
        return self._store.find_by_id(source_id)

    def list_records(self, owner_id: str) -> list[SourceRecord]:
        return self._store.list_by_owner(owner_id)

    def clear_progress(self) -> None:
        """Forget finished uploads of this session."""
        for entry in self._reporter.entries():
            if entry.status.terminal:
                self._reporter.remove(entry.file_id)
                self._attempts.discard(entry.file_id)

    def wait_for_background(self) -> None:
        self._background.join()

    def shutdown(self, cancel_pending: bool = False) -> None:
        if self._ticker is not None:
            self._ticker.stop()
        self._background.shutdown(wait=True, cancel_pending=cancel_pending)
        Log.info("Ingestion service stopped")

    def _begin(self, attempt: UploadAttempt) -> UploadAttempt:
        entry = self._reporter.start(attempt.display_name)
        attempt.file_id = entry.file_id
        self._attempts.register(attempt)
        if self._ticker is not None:
            self._ticker.start()
        return attempt


def build_ingestion_service(settings: Settings) -> IngestionService:
    """Build an IngestionService with all adapters from settings.

    The Postgres store expects ``init_pool`` to have been called.
    """
    store = SourceRecordStoreFactory.create(settings)
    processor = build_processor(
        store=store,
        extraction_service=TextExtractorFactory.create(settings),
        analyzer=AnalyzerFactory.create(settings),
    )
    job_runner = JobRunner(processor, store)
    background = BackgroundProcessor(
        job_runner,
        max_workers=settings.background_max_workers,
        queue_size=settings.background_queue_size,
    )
    reporter = ProgressReporter(processing_ceiling=settings.progress_tick_ceiling)
    uploader = StorageUploader(
        HttpObjectStore(
            base_url=settings.storage_url,
            bucket=settings.storage_bucket,
            api_key=settings.storage_api_key,
            timeout_seconds=settings.storage_timeout_seconds,
        )
    )
    connector = IdentityConnector(store, EnrichmentChainFactory.create(settings))
    pipeline = UploadPipeline(
        validator=FileValidator(
            settings.max_file_size_bytes,
            min_text_length=settings.min_manual_text_length,
        ),
        uploader=uploader,
        store=store,
        job_runner=job_runner,
        background=background,
        reporter=reporter,
        connector=connector,
        immediate_threshold_bytes=settings.immediate_processing_threshold_bytes,
        dedup_completed_uploads=settings.dedup_completed_uploads,
        storage_random_suffix=settings.storage_random_suffix,
    )
    attempts = AttemptRegistry()
    return IngestionService(
        pipeline=pipeline,
        coordinator=RetryCoordinator(reporter, store, pipeline, attempts),
        store=store,
        reporter=reporter,
        attempts=attempts,
        background=background,
        ticker=ProgressTicker(
            reporter,
            interval_seconds=settings.progress_tick_interval_seconds,
            step=settings.progress_tick_step,
        ),
        max_files_per_batch=settings.max_files_per_batch,
    )
