"""AI-powered career document analyzer."""

import json
from pathlib import Path
from typing import Any, ClassVar

from app.analysis.base import BaseAnalyzer
from app.analysis.client_base import BaseAnalysisClient
from app.analysis.exceptions import AnalysisConfigurationError, AnalysisError
from app.analysis.prompt_loader import load_json_schema, load_prompt_template
from app.analysis.validator import validate_structured_data
from app.ingestion.models import FileCategory
from app.logging.logger import Log


class Analyzer(BaseAnalyzer):
    """Analyzes career documents into structured profile data using an AI provider.

    Prompt and schema files are loaded lazily, so a missing file fails the
    analysis of a record as a configuration error instead of failing start-up.
    """

    CATEGORY_LABELS: ClassVar[dict[FileCategory, str]] = {
        FileCategory.RESUME: "resume",
        FileCategory.COVER_LETTER: "cover letter",
        FileCategory.CASE_STUDIES: "case study",
        FileCategory.LINKEDIN: "professional profile",
    }

    def __init__(
        self,
        *,
        client: BaseAnalysisClient,
        model: str,
        temperature: float = 0.0,
        prompt_template_path: Path | None = None,
        json_schema_path: Path | None = None,
        system_prompt: str = "You extract structured career data and answer with JSON only.",
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = max(0.0, min(0.2, temperature))
        self._system_prompt = system_prompt
        self._prompt_template_path = prompt_template_path
        self._json_schema_path = json_schema_path
        self._prompt_template: str | None = None
        self._json_schema: str | None = None
        self._json_schema_dict: dict[str, object] = {}

    def analyze(self, text: str, category: FileCategory) -> dict[str, Any]:
        """Analyze document text for the given category."""
        self._load_resources()
        prompt = self._build_prompt(text, category)
        Log.debug(f"Analysis prompt built for {category.value}: {len(prompt)} chars")

        raw_response = self._call_ai(prompt)
        Log.debug(f"AI raw response: {len(raw_response)} chars")

        parsed = self._parse_json(raw_response)
        result = validate_structured_data(parsed)

        Log.info(
            f"Analysis complete: {len(result['workHistory'])} roles, "
            f"{len(result['education'])} education entries, {len(result['skills'])} skills"
        )
        return result

    def _load_resources(self) -> None:
        if self._prompt_template is None:
            self._prompt_template = load_prompt_template(self._prompt_template_path)
        if self._json_schema is None:
            schema_str = load_json_schema(self._json_schema_path)
            try:
                self._json_schema_dict = json.loads(schema_str)
            except json.JSONDecodeError as exc:
                raise AnalysisConfigurationError(f"Invalid JSON schema: {exc}") from exc
            self._json_schema = schema_str

    def _build_prompt(self, text: str, category: FileCategory) -> str:
        if self._prompt_template is None:
            raise AnalysisConfigurationError("Prompt template is not loaded")
        return self._prompt_template.format(
            category_label=self.CATEGORY_LABELS.get(category, "document"),
            document_text=text,
            json_schema=self._json_schema,
        )

    def _call_ai(self, prompt: str) -> str:
        return self._client.create_chat_completion(
            model=self._model,
            temperature=self._temperature,
            system_prompt=self._system_prompt,
            user_prompt=prompt,
            json_schema=self._json_schema_dict,
        )

    @staticmethod
    def _parse_json(raw: str) -> dict[str, Any]:
        cleaned = raw.strip()
        if cleaned.startswith("```"):
            lines = cleaned.splitlines()
            if lines and lines[0].startswith("```"):
                lines = lines[1:]
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]
            cleaned = "\n".join(lines)

        try:
            parsed = json.loads(cleaned)
        except json.JSONDecodeError as exc:
            raise AnalysisError(f"Invalid JSON response: {exc}") from exc

        if not isinstance(parsed, dict):
            raise AnalysisError("JSON response must be an object")
        return parsed
