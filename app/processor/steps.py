from app.analysis.base import BaseAnalyzer
from app.database.repositories.base import BaseSourceRecordStore
from app.extraction.service import TextExtractionService
from app.ingestion.models import ProcessingStatus
from app.logging.logger import Log
from app.processor.pipeline import (
    ANALYSIS_STAGE,
    EXTRACTION_STAGE,
    PipelineContext,
    PipelineStep,
)


class MarkProcessingStep(PipelineStep):
    progress = 10

    def __init__(self, store: BaseSourceRecordStore) -> None:
        self._store = store

    def run(self, context: PipelineContext) -> PipelineContext:
        self._store.update_status(context.source_id, ProcessingStatus.PROCESSING)
        Log.info(f"Source {context.source_id} marked as processing")
        return context


class MarkFailedStep(PipelineStep):
    def __init__(self, store: BaseSourceRecordStore) -> None:
        self._store = store

    def run(self, context: PipelineContext) -> PipelineContext:
        self._store.update_status(
            context.source_id,
            ProcessingStatus.FAILED,
            error=context.error_message,
            retryable=context.retryable,
        )
        Log.error(
            f"Source {context.source_id} marked as failed "
            f"(retryable={context.retryable}): {context.error_message}"
        )
        return context


class ExtractTextStep(PipelineStep):
    stage = EXTRACTION_STAGE
    error_prefix = "Text extraction failed"
    progress = 40

    def __init__(self, extraction_service: TextExtractionService) -> None:
        self._extraction_service = extraction_service

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.raw_bytes is None:
            # Manual text arrives already extracted
            Log.debug(f"Source {context.source_id} has no file content, skipping extraction")
            return context
        context.raw_text = self._extraction_service.extract(context.raw_bytes, context.mime_type)
        Log.info(f"Extracted {len(context.raw_text)} chars from source {context.source_id}")
        return context


class PersistRawTextStep(PipelineStep):
    stage = EXTRACTION_STAGE
    progress = 50

    def __init__(self, store: BaseSourceRecordStore) -> None:
        self._store = store

    def run(self, context: PipelineContext) -> PipelineContext:
        self._store.update_status(
            context.source_id,
            ProcessingStatus.PROCESSING,
            payload=context.raw_text,
        )
        return context


class AnalyzeStep(PipelineStep):
    stage = ANALYSIS_STAGE
    error_prefix = "Analysis failed"
    progress = 85

    def __init__(self, analyzer: BaseAnalyzer) -> None:
        self._analyzer = analyzer

    def run(self, context: PipelineContext) -> PipelineContext:
        if not context.raw_text.strip():
            raise ValueError("PipelineContext.raw_text must be set before analysis")
        context.structured_data = self._analyzer.analyze(context.raw_text, context.category)
        Log.info(f"Analyzed source {context.source_id} as {context.category.value}")
        return context


class PersistStructuredStep(PipelineStep):
    stage = ANALYSIS_STAGE
    progress = 100

    def __init__(self, store: BaseSourceRecordStore) -> None:
        self._store = store

    def run(self, context: PipelineContext) -> PipelineContext:
        self._store.update_status(
            context.source_id,
            ProcessingStatus.COMPLETED,
            payload=context.structured_data,
        )
        Log.info(f"Source {context.source_id} completed")
        return context
