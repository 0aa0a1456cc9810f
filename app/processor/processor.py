import threading
from collections.abc import Callable, Sequence

from app.analysis.base import BaseAnalyzer
from app.database.repositories.base import BaseSourceRecordStore
from app.extraction.service import TextExtractionService
from app.ingestion.exceptions import ProcessingCancelledError, ProcessingError
from app.logging.logger import Log
from app.processor.pipeline import (
    ANALYSIS_STAGE,
    EXTRACTION_STAGE,
    PipelineContext,
    PipelineStep,
)
from app.processor.steps import (
    AnalyzeStep,
    ExtractTextStep,
    MarkFailedStep,
    MarkProcessingStep,
    PersistRawTextStep,
    PersistStructuredStep,
)

ProgressCallback = Callable[[int], None]

class Processor:
    """Drives a source record through extraction and analysis.

    Pipeline: mark processing -> extract -> persist raw text -> analyze ->
    persist structured data (COMPLETED). Any step failure marks the record
    FAILED with the error and its retryable flag, then raises ProcessingError.
    """

    def __init__(self, steps: Sequence[PipelineStep], failed_step: PipelineStep) -> None:
        self._steps = list(steps)
        self._failed_step = failed_step

    def process(
        self,
        context: PipelineContext,
        start_stage: str | None = None,
        cancel_event: threading.Event | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> PipelineContext:
        """Run the pipeline for one record.

        Args:
            context: Record data and, for manual text or resumption, the raw text.
            start_stage: ``"analysis"`` skips the extraction steps; the raw text
                         must already be on the context.
            cancel_event: Checked before every step; once set, the run stops and
                          the record is marked FAILED (retryable).
            on_progress: Receives the step percentage after each step.

        Raises:
            ProcessingError: after the record has been marked FAILED.
        """
        if start_stage not in (None, EXTRACTION_STAGE, ANALYSIS_STAGE):
            raise ValueError(f"Unknown start stage '{start_stage}'")
        Log.info(
            f"Processing source {context.source_id} ({context.category.value}) "
            f"from stage {start_stage or EXTRACTION_STAGE}"
        )

        for step in self._steps:
            if start_stage == ANALYSIS_STAGE and step.stage == EXTRACTION_STAGE:
                continue
            if cancel_event is not None and cancel_event.is_set():
                self._fail(
                    context,
                    step,
                    ProcessingCancelledError("Processing was cancelled", stage=step.stage or ""),
                )
            try:
                context = step.run(context)
            except Exception as exc:
                self._fail(context, step, exc)
            if on_progress is not None:
                self._report(on_progress, step.progress)
        return context

    def _fail(self, context: PipelineContext, step: PipelineStep, exc: Exception) -> None:
        stage = step.stage or ""
        cancelled = isinstance(exc, ProcessingCancelledError)
        prefix = None if cancelled else step.error_prefix
        context.error_message = f"{prefix}: {exc}" if prefix else str(exc)
        context.failed_stage = stage
        context.retryable = bool(getattr(exc, "retryable", True))
        Log.error(
            f"{type(step).__name__} failed for source {context.source_id}: "
            f"{context.error_message}"
        )
        try:
            self._failed_step.run(context)
        except Exception as mark_exc:
            Log.exception(f"Could not mark source {context.source_id} as failed: {mark_exc}")
        error_cls = ProcessingCancelledError if cancelled else ProcessingError
        raise error_cls(
            context.error_message,
            stage=stage,
            retryable=context.retryable,
        ) from exc

    @staticmethod
    def _report(on_progress: ProgressCallback, progress: int) -> None:
        try:
            on_progress(progress)
        except Exception as exc:
            Log.warning(f"Progress callback failed: {exc}")


def build_processor(
    store: BaseSourceRecordStore,
    extraction_service: TextExtractionService,
    analyzer: BaseAnalyzer,
) -> Processor:
    """Build a Processor with the standard extraction and analysis steps."""
    steps: list[PipelineStep] = [
        MarkProcessingStep(store),
        ExtractTextStep(extraction_service),
        PersistRawTextStep(store),
        AnalyzeStep(analyzer),
        PersistStructuredStep(store),
    ]
    return Processor(steps=steps, failed_step=MarkFailedStep(store))
