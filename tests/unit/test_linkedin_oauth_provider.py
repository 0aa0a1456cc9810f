import httpx
import pytest
import respx

from app.enrichment.linkedin_oauth_provider import LinkedInOAuthProvider, format_linkedin_date
from app.enrichment.models import EnrichmentHints

BASE = "https://api.linkedin.test/v2"
HINTS = EnrichmentHints(
    profile_url="https://www.linkedin.com/in/jane-doe",
    username="jane-doe",
    access_token="li-token",
)


def _provider() -> LinkedInOAuthProvider:
    return LinkedInOAuthProvider(base_url=f"{BASE}/", timeout_seconds=5.0)


def _mock_sections(**overrides: httpx.Response) -> None:
    sections = {
        "positions": httpx.Response(
            200,
            json={
                "elements": [
                    {
                        "id": 11,
                        "title": "Staff Engineer",
                        "company": {"name": "Acme"},
                        "startDate": {"year": 2021, "month": 3},
                        "endDate": {"year": 2023, "month": 1},
                        "isCurrent": True,
                        "location": {"name": "Berlin"},
                    }
                ]
            },
        ),
        "educations": httpx.Response(
            200,
            json={
                "elements": [
                    {"schoolName": "TU Berlin", "degreeName": "MSc", "startDate": {"year": 2012}}
                ]
            },
        ),
        "skills": httpx.Response(200, json={"elements": [{"name": "Python"}, {"name": ""}]}),
        "certifications": httpx.Response(
            200, json={"elements": [{"name": "CKA", "authority": "CNCF", "number": "42"}]}
        ),
        "projects": httpx.Response(200, json={"elements": [{"name": "Compiler"}]}),
    }
    sections.update(overrides)
    for name, response in sections.items():
        respx.get(f"{BASE}/me/{name}").mock(return_value=response)


class TestFormatLinkedInDate:
    def test_formats_year_and_month(self) -> None:
        assert format_linkedin_date({"year": 2020, "month": 5}) == "2020-05-01"

    def test_defaults_month_to_january(self) -> None:
        assert format_linkedin_date({"year": 2020}) == "2020-01-01"

    @pytest.mark.parametrize("value", [None, {}, {"month": 3}, "2020-01"])
    def test_returns_none_without_year(self, value: object) -> None:
        assert format_linkedin_date(value) is None


class TestFetch:
    def test_requires_access_token(self) -> None:
        result = _provider().fetch(EnrichmentHints(username="jane-doe"))
        assert result.success is False
        assert result.error == "No LinkedIn access token"
        assert result.retryable is False

    @respx.mock
    def test_builds_profile_from_all_sections(self) -> None:
        me = respx.get(f"{BASE}/me").mock(
            return_value=httpx.Response(
                200,
                json={
                    "firstName": "Jane",
                    "lastName": "Doe",
                    "headline": "Builder",
                    "summary": "Hi",
                },
            )
        )
        _mock_sections()

        result = _provider().fetch(HINTS)

        assert result.success is True
        assert result.provider_used == "linkedin_oauth"
        data = result.data or {}
        assert data["name"] == "Jane Doe"
        assert data["summary"] == "Hi"
        job = data["workHistory"][0]
        assert job["id"] == "11"
        assert job["company"] == "Acme"
        assert job["startDate"] == "2021-03-01"
        assert job["endDate"] is None
        assert job["current"] is True
        assert job["location"] == "Berlin"
        assert data["education"][0]["institution"] == "TU Berlin"
        assert data["education"][0]["id"] == "linkedin_edu_0"
        assert data["skills"] == ["Python"]
        assert data["certifications"][0]["issuer"] == "CNCF"
        assert data["projects"][0]["name"] == "Compiler"
        assert data["contactInfo"]["linkedin"] == HINTS.profile_url

        request = me.calls.last.request
        assert request.headers["Authorization"] == "Bearer li-token"
        assert request.headers["X-Restli-Protocol-Version"] == "2.0.0"

    @respx.mock
    def test_optional_sections_degrade_to_empty(self) -> None:
        respx.get(f"{BASE}/me").mock(return_value=httpx.Response(200, json={"firstName": "Jane"}))
        _mock_sections(
            positions=httpx.Response(403, json={"message": "Not enough permissions"}),
            skills=httpx.Response(500),
        )

        result = _provider().fetch(HINTS)

        assert result.success is True
        assert result.data is not None
        assert result.data["workHistory"] == []
        assert result.data["skills"] == []
        assert result.data["education"] != []

    @respx.mock
    def test_profile_auth_failure_is_not_retryable(self) -> None:
        respx.get(f"{BASE}/me").mock(
            return_value=httpx.Response(401, json={"message": "Invalid access token"})
        )

        result = _provider().fetch(HINTS)

        assert result.success is False
        assert result.error == "Invalid access token"
        assert result.retryable is False

    @respx.mock
    @pytest.mark.parametrize("status", [429, 502])
    def test_profile_server_errors_are_retryable(self, status: int) -> None:
        respx.get(f"{BASE}/me").mock(return_value=httpx.Response(status))

        result = _provider().fetch(HINTS)

        assert result.error == f"HTTP {status}"
        assert result.retryable is True

    @respx.mock
    def test_timeout_is_retryable(self) -> None:
        respx.get(f"{BASE}/me").mock(side_effect=httpx.ReadTimeout("slow"))

        result = _provider().fetch(HINTS)

        assert result.error == "LinkedIn request timed out"
        assert result.retryable is True
