"""Tests for structural validation of analysis output."""

from typing import Any

import pytest

from app.analysis.exceptions import AnalysisValidationError
from app.analysis.validator import validate_structured_data


def _valid(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "workHistory": [{"company": "Acme", "title": "Engineer", "startDate": "2020-01-01"}],
        "education": [{"institution": "MIT", "degree": "BSc"}],
        "skills": ["Python", "Go"],
    }
    data.update(overrides)
    return data


class TestRequiredFields:
    @pytest.mark.parametrize("field", ["workHistory", "education", "skills"])
    def test_missing_required_field_raises(self, field: str) -> None:
        data = _valid()
        del data[field]
        with pytest.raises(AnalysisValidationError, match=field):
            validate_structured_data(data)

    def test_non_list_section_raises(self) -> None:
        with pytest.raises(AnalysisValidationError, match="'education' must be a list"):
            validate_structured_data(_valid(education="MIT"))

    def test_null_section_becomes_empty_list(self) -> None:
        result = validate_structured_data(_valid(education=None))
        assert result["education"] == []


class TestOptionalSections:
    def test_missing_optional_lists_default_to_empty(self) -> None:
        result = validate_structured_data(_valid())
        assert result["achievements"] == []
        assert result["certifications"] == []
        assert result["projects"] == []

    def test_missing_contact_info_is_all_null(self) -> None:
        result = validate_structured_data(_valid())
        assert result["contactInfo"] == {
            "email": None,
            "phone": None,
            "linkedin": None,
            "website": None,
            "github": None,
        }

    def test_empty_contact_strings_become_null(self) -> None:
        result = validate_structured_data(
            _valid(contactInfo={"email": "", "phone": "+1 555 0100"})
        )
        assert result["contactInfo"]["email"] is None
        assert result["contactInfo"]["phone"] == "+1 555 0100"

    def test_non_string_contact_field_raises(self) -> None:
        with pytest.raises(AnalysisValidationError, match="contactInfo.email"):
            validate_structured_data(_valid(contactInfo={"email": 42}))

    def test_summary_must_be_string(self) -> None:
        with pytest.raises(AnalysisValidationError, match="'summary'"):
            validate_structured_data(_valid(summary=["a"]))

    def test_location_and_summary_default_to_none(self) -> None:
        result = validate_structured_data(_valid())
        assert result["location"] is None
        assert result["summary"] is None


class TestEntries:
    def test_assigns_ids_when_missing(self) -> None:
        result = validate_structured_data(
            _valid(
                workHistory=[{"company": "A"}, {"title": "Lead"}],
                certifications=[{"name": "AWS SA"}],
                projects=[{"name": "Compiler"}],
            )
        )
        assert [w["id"] for w in result["workHistory"]] == ["work_0", "work_1"]
        assert result["education"][0]["id"] == "edu_0"
        assert result["certifications"][0]["id"] == "cert_0"
        assert result["projects"][0]["id"] == "project_0"

    def test_keeps_provider_ids(self) -> None:
        result = validate_structured_data(
            _valid(workHistory=[{"id": "pos-9", "company": "Acme"}])
        )
        assert result["workHistory"][0]["id"] == "pos-9"

    def test_entry_without_identifying_field_raises(self) -> None:
        with pytest.raises(AnalysisValidationError, match="workHistory entry at index 0"):
            validate_structured_data(_valid(workHistory=[{"company": "  ", "location": "NYC"}]))

    def test_non_object_entry_raises(self) -> None:
        with pytest.raises(AnalysisValidationError, match="must be an object"):
            validate_structured_data(_valid(education=["MIT"]))

    def test_does_not_mutate_input(self) -> None:
        data = _valid()
        validate_structured_data(data)
        assert "id" not in data["workHistory"][0]


class TestSkills:
    def test_strips_and_drops_blank_skills(self) -> None:
        result = validate_structured_data(_valid(skills=[" Python ", "", "SQL"]))
        assert result["skills"] == ["Python", "SQL"]

    def test_accepts_skill_categories(self) -> None:
        group = {"category": "Languages", "items": ["Python", "Go"]}
        result = validate_structured_data(_valid(skills=[group]))
        assert result["skills"] == [group]

    def test_rejects_invalid_skill(self) -> None:
        with pytest.raises(AnalysisValidationError, match="Skill at index 0"):
            validate_structured_data(_valid(skills=[{"category": "x"}]))
