import copy
from collections.abc import Callable, Generator
from dataclasses import dataclass
from unittest.mock import MagicMock

import pytest

from app.database.repositories.memory_store import InMemorySourceRecordStore
from app.enrichment.chain import EnrichmentFallbackChain
from app.enrichment.connector import IdentityConnector
from app.enrichment.models import EnrichmentResult
from app.extraction.service import TextExtractionService
from app.ingestion.attempts import AttemptRegistry
from app.ingestion.pipeline import UploadPipeline
from app.ingestion.retry import RetryCoordinator
from app.ingestion.service import IngestionService
from app.ingestion.validator import FileValidator
from app.processor.processor import build_processor
from app.progress.reporter import ProgressReporter
from app.storage.base import BaseObjectStore
from app.storage.uploader import StorageUploader
from app.worker.background import BackgroundProcessor
from app.worker.job_runner import JobRunner

EXTRACTED_TEXT = "Senior Engineer at Acme since 2021"
STRUCTURED = {
    "workHistory": [{"id": "work_0", "company": "Acme", "title": "Senior Engineer"}],
    "education": [],
    "skills": ["Python"],
}


@dataclass
class IngestionHarness:
    """Real ingestion wiring with mocked network-facing collaborators."""

    store: InMemorySourceRecordStore
    object_store: MagicMock
    extraction: MagicMock
    analyzer: MagicMock
    chain: MagicMock
    reporter: ProgressReporter
    background: BackgroundProcessor
    pipeline: UploadPipeline
    coordinator: RetryCoordinator
    attempts: AttemptRegistry
    service: IngestionService


@pytest.fixture
def make_harness() -> Generator[Callable[..., IngestionHarness], None, None]:
    created: list[IngestionHarness] = []

    def _make(
        immediate_threshold_bytes: int = 1024 * 1024,
        dedup_completed_uploads: bool = False,
        max_file_size_bytes: int = 5 * 1024 * 1024,
    ) -> IngestionHarness:
        store = InMemorySourceRecordStore()
        object_store = MagicMock(spec=BaseObjectStore)
        object_store.put.side_effect = lambda path, *_args: path
        extraction = MagicMock(spec=TextExtractionService)
        extraction.extract.return_value = EXTRACTED_TEXT
        analyzer = MagicMock()
        analyzer.analyze.side_effect = lambda *_args: copy.deepcopy(STRUCTURED)
        chain = MagicMock(spec=EnrichmentFallbackChain)
        chain.enrich.return_value = EnrichmentResult(
            success=True, provider_used="placeholder", data={"name": "jane-doe"}
        )

        job_runner = JobRunner(build_processor(store, extraction, analyzer), store)
        background = BackgroundProcessor(job_runner, max_workers=2)
        reporter = ProgressReporter()
        pipeline = UploadPipeline(
            validator=FileValidator(max_file_size_bytes),
            uploader=StorageUploader(object_store),
            store=store,
            job_runner=job_runner,
            background=background,
            reporter=reporter,
            connector=IdentityConnector(store, chain),
            immediate_threshold_bytes=immediate_threshold_bytes,
            dedup_completed_uploads=dedup_completed_uploads,
        )
        attempts = AttemptRegistry()
        coordinator = RetryCoordinator(reporter, store, pipeline, attempts)
        service = IngestionService(
            pipeline=pipeline,
            coordinator=coordinator,
            store=store,
            reporter=reporter,
            attempts=attempts,
            background=background,
        )
        harness = IngestionHarness(
            store=store,
            object_store=object_store,
            extraction=extraction,
            analyzer=analyzer,
            chain=chain,
            reporter=reporter,
            background=background,
            pipeline=pipeline,
            coordinator=coordinator,
            attempts=attempts,
            service=service,
        )
        created.append(harness)
        return harness

    yield _make
    for harness in created:
        harness.background.shutdown()
