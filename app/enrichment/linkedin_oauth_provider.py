from typing import Any

import httpx

from app.enrichment.base import BaseEnrichmentProvider
from app.enrichment.exceptions import EnrichmentProviderError
from app.enrichment.models import EnrichmentHints, EnrichmentResult
from app.logging.logger import Log


def format_linkedin_date(value: Any) -> str | None:
    """Turn a LinkedIn ``{"year": 2020, "month": 5}`` object into 2020-05-01."""
    if not isinstance(value, dict) or not value.get("year"):
        return None
    month = value.get("month") or 1
    return f"{value['year']}-{int(month):02d}-01"


class LinkedInOAuthProvider(BaseEnrichmentProvider):
    """Fetches the member's own profile with their LinkedIn OAuth token.

    The basic profile is required; positions, education, skills,
    certifications and projects are optional sections that degrade to empty
    lists when LinkedIn refuses them.
    """

    name = "linkedin_oauth"

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float,
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._client = client if client is not None else httpx.Client(timeout=timeout_seconds)

    def fetch(self, hints: EnrichmentHints) -> EnrichmentResult:
        if not hints.access_token:
            return EnrichmentResult.failure(self.name, "No LinkedIn access token", retryable=False)

        try:
            profile = self._get(
                "/me",
                {"fields": "id,firstName,lastName,headline,summary"},
                hints.access_token,
            )
        except EnrichmentProviderError as exc:
            Log.warning(f"LinkedIn basic profile fetch failed: {exc}")
            return EnrichmentResult.failure(self.name, str(exc), exc.retryable)

        positions = self._section(
            "/me/positions",
            "id,title,summary,startDate,endDate,isCurrent,company,location",
            hints.access_token,
        )
        educations = self._section(
            "/me/educations",
            "id,schoolName,degreeName,fieldOfStudy,startDate,endDate,grade",
            hints.access_token,
        )
        skills = self._section("/me/skills", "elements", hints.access_token)
        certifications = self._section(
            "/me/certifications",
            "id,name,authority,number,startDate,endDate",
            hints.access_token,
        )
        projects = self._section(
            "/me/projects",
            "id,name,description,startDate,endDate,url",
            hints.access_token,
        )

        data = {
            "name": " ".join(
                part for part in (profile.get("firstName"), profile.get("lastName")) if part
            )
            or None,
            "headline": profile.get("headline"),
            "workHistory": [_convert_position(p, i) for i, p in enumerate(positions)],
            "education": [_convert_education(e, i) for i, e in enumerate(educations)],
            "skills": [s["name"] for s in skills if isinstance(s, dict) and s.get("name")],
            "achievements": [],
            "contactInfo": {
                "email": None,
                "phone": None,
                "linkedin": hints.profile_url,
                "website": None,
                "github": None,
            },
            "location": None,
            "summary": profile.get("summary"),
            "certifications": [_convert_certification(c, i) for i, c in enumerate(certifications)],
            "projects": [_convert_project(p, i) for i, p in enumerate(projects)],
        }
        Log.info(f"LinkedIn profile fetched with {len(data['workHistory'])} positions")
        return EnrichmentResult(success=True, provider_used=self.name, data=data)

    def close(self) -> None:
        self._client.close()

    def _section(self, endpoint: str, fields: str, token: str) -> list[Any]:
        try:
            payload = self._get(endpoint, {"fields": fields}, token)
        except EnrichmentProviderError as exc:
            Log.warning(f"LinkedIn section {endpoint} unavailable: {exc}")
            return []
        elements = payload.get("elements")
        return elements if isinstance(elements, list) else []

    def _get(self, endpoint: str, params: dict[str, str], token: str) -> dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "X-Restli-Protocol-Version": "2.0.0",
        }
        try:
            response = self._client.get(
                f"{self._base_url}{endpoint}",
                params=params,
                headers=headers,
                timeout=self._timeout_seconds,
            )
        except httpx.TimeoutException as exc:
            raise EnrichmentProviderError("LinkedIn request timed out", retryable=True) from exc
        except httpx.TransportError as exc:
            raise EnrichmentProviderError(
                f"LinkedIn network error: {exc}", retryable=True
            ) from exc

        payload = _json_or_empty(response)
        if response.is_error:
            message = payload.get("message") or f"HTTP {response.status_code}"
            raise EnrichmentProviderError(
                str(message),
                retryable=response.status_code >= 500 or response.status_code == 429,
            )
        return payload


def _json_or_empty(response: httpx.Response) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


def _convert_position(position: dict[str, Any], index: int) -> dict[str, Any]:
    current = bool(position.get("isCurrent"))
    company = position.get("company") or {}
    location = position.get("location") or {}
    return {
        "id": str(position.get("id") or f"linkedin_work_{index}"),
        "company": company.get("name", "") if isinstance(company, dict) else "",
        "title": position.get("title") or "",
        "startDate": format_linkedin_date(position.get("startDate")),
        "endDate": None if current else format_linkedin_date(position.get("endDate")),
        "description": position.get("summary") or None,
        "location": location.get("name") if isinstance(location, dict) else None,
        "current": current,
        "achievements": [],
    }


def _convert_education(education: dict[str, Any], index: int) -> dict[str, Any]:
    return {
        "id": str(education.get("id") or f"linkedin_edu_{index}"),
        "institution": education.get("schoolName") or "",
        "degree": education.get("degreeName") or "",
        "fieldOfStudy": education.get("fieldOfStudy") or None,
        "startDate": format_linkedin_date(education.get("startDate")),
        "endDate": format_linkedin_date(education.get("endDate")),
        "gpa": education.get("grade") or None,
        "location": None,
    }


def _convert_certification(certification: dict[str, Any], index: int) -> dict[str, Any]:
    return {
        "id": str(certification.get("id") or f"linkedin_cert_{index}"),
        "name": certification.get("name") or "",
        "issuer": certification.get("authority") or None,
        "issueDate": format_linkedin_date(certification.get("startDate")),
        "expiryDate": format_linkedin_date(certification.get("endDate")),
        "credentialId": certification.get("number") or None,
    }


def _convert_project(project: dict[str, Any], index: int) -> dict[str, Any]:
    return {
        "id": str(project.get("id") or f"linkedin_project_{index}"),
        "name": project.get("name") or "",
        "description": project.get("description") or None,
        "technologies": [],
        "startDate": format_linkedin_date(project.get("startDate")),
        "endDate": format_linkedin_date(project.get("endDate")),
        "url": project.get("url") or None,
    }
