"""Validates the raw parsed analysis JSON and fills optional sections."""

from typing import Any

from app.analysis.exceptions import AnalysisValidationError

_REQUIRED_LISTS = ("workHistory", "education", "skills")
_OPTIONAL_LISTS = ("achievements", "certifications", "projects")
_OPTIONAL_STRINGS = ("location", "summary")
_CONTACT_FIELDS = ("email", "phone", "linkedin", "website", "github")


def validate_structured_data(data: dict[str, Any]) -> dict[str, Any]:
    """Validate the analysis output and return a normalized copy.

    Work history, education, certification and project entries get stable
    ids (``work_0``, ``edu_0`` ...) when the provider did not supply one.

    Raises:
        AnalysisValidationError: on any validation failure.
    """
    for field in _REQUIRED_LISTS:
        if field not in data:
            raise AnalysisValidationError(f"Missing required top-level field: {field}")

    result = dict(data)
    for field in (*_REQUIRED_LISTS, *_OPTIONAL_LISTS):
        value = result.get(field, [])
        if value is None:
            value = []
        if not isinstance(value, list):
            raise AnalysisValidationError(f"'{field}' must be a list")
        result[field] = value

    for field in _OPTIONAL_STRINGS:
        value = result.get(field)
        if value is not None and not isinstance(value, str):
            raise AnalysisValidationError(f"'{field}' must be a string or null")
        result[field] = value

    result["contactInfo"] = _build_contact_info(result.get("contactInfo"))
    result["skills"] = _build_skills(result["skills"])
    result["workHistory"] = [
        _build_entry(item, i, "workHistory", ("company", "title"), "work")
        for i, item in enumerate(result["workHistory"])
    ]
    result["education"] = [
        _build_entry(item, i, "education", ("institution",), "edu")
        for i, item in enumerate(result["education"])
    ]
    result["certifications"] = [
        _build_entry(item, i, "certifications", ("name",), "cert")
        for i, item in enumerate(result["certifications"])
    ]
    result["projects"] = [
        _build_entry(item, i, "projects", ("name",), "project")
        for i, item in enumerate(result["projects"])
    ]
    return result


def _build_contact_info(raw: Any) -> dict[str, str | None]:
    if raw is None:
        return {field: None for field in _CONTACT_FIELDS}
    if not isinstance(raw, dict):
        raise AnalysisValidationError("'contactInfo' must be an object")
    contact: dict[str, str | None] = {}
    for field in _CONTACT_FIELDS:
        value = raw.get(field)
        if value is not None and not isinstance(value, str):
            raise AnalysisValidationError(f"'contactInfo.{field}' must be a string or null")
        contact[field] = value or None
    return contact


def _build_skills(raw: list[Any]) -> list[Any]:
    # Flat strings or {"category": ..., "items": [...]} groups
    skills: list[Any] = []
    for i, item in enumerate(raw):
        if isinstance(item, str):
            if item.strip():
                skills.append(item.strip())
        elif isinstance(item, dict) and isinstance(item.get("items"), list):
            skills.append(item)
        else:
            raise AnalysisValidationError(f"Skill at index {i} must be a string or category")
    return skills


def _build_entry(
    raw: Any,
    index: int,
    section: str,
    required: tuple[str, ...],
    id_prefix: str,
) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise AnalysisValidationError(f"{section} entry at index {index} must be an object")
    if not any(isinstance(raw.get(key), str) and raw[key].strip() for key in required):
        raise AnalysisValidationError(
            f"{section} entry at index {index}: one of {list(required)} must be a non-empty string"
        )
    entry = dict(raw)
    entry.setdefault("id", f"{id_prefix}_{index}")
    return entry
