from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar

from app.ingestion.models import FileCategory

EXTRACTION_STAGE = "extraction"
ANALYSIS_STAGE = "analysis"


@dataclass(slots=True)
class PipelineContext:
    source_id: str
    category: FileCategory
    file_name: str
    mime_type: str
    raw_bytes: bytes | None = None
    raw_text: str = ""
    structured_data: dict[str, Any] = field(default_factory=dict)
    error_message: str = ""
    failed_stage: str = ""
    retryable: bool = True


class PipelineStep(ABC):
    """One unit of work in the processing run.

    ``stage`` groups steps so a retry can resume at analysis. ``progress`` is
    the percentage reported once the step has finished. Failures of steps with
    an ``error_prefix`` are reported as ``"<prefix>: <error>"``.
    """

    stage: ClassVar[str | None] = None
    error_prefix: ClassVar[str | None] = None
    progress: ClassVar[int] = 0

    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
