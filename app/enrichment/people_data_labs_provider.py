import re
import time
from collections.abc import Callable
from datetime import datetime
from typing import Any

import httpx

from app.enrichment.base import BaseEnrichmentProvider
from app.enrichment.models import EnrichmentHints, EnrichmentResult
from app.logging.logger import Log

_YEAR = re.compile(r"^\d{4}$")
_YEAR_MONTH = re.compile(r"^\d{4}-\d{2}$")
_FULL_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def normalize_date(value: str | None) -> str | None:
    """Normalize PDL dates to YYYY-MM-DD (2020 -> 2020-01-01, 2020-05 -> 2020-05-01)."""
    if not value:
        return None
    if _YEAR.match(value):
        return f"{value}-01-01"
    if _YEAR_MONTH.match(value):
        return f"{value}-01"
    if _FULL_DATE.match(value):
        return value
    try:
        return datetime.fromisoformat(value).date().isoformat()
    except ValueError:
        return value


def build_query_params(hints: EnrichmentHints) -> dict[str, str]:
    """PDL enrich parameters: name, first_name, last_name, company, lid, profile."""
    params: dict[str, str] = {}
    if hints.full_name and hints.full_name.strip():
        full_name = hints.full_name.strip()
        params["name"] = full_name
        parts = full_name.split()
        if len(parts) >= 2:
            params["first_name"] = parts[0]
            params["last_name"] = " ".join(parts[1:])
    if hints.company:
        params["company"] = hints.company
    if hints.username:
        params["lid"] = hints.username
        params["profile"] = f"linkedin.com/in/{hints.username}"
    return params


def convert_person(person: dict[str, Any]) -> dict[str, Any]:
    """Convert a PDL person record into the structured profile shape."""
    phones = person.get("phone_numbers") or []
    websites = person.get("websites") or []
    return {
        "name": person.get("full_name"),
        "headline": person.get("headline"),
        "workHistory": [
            _convert_experience(exp, i) for i, exp in enumerate(person.get("experience") or [])
        ],
        "education": [
            _convert_education(edu, i) for i, edu in enumerate(person.get("education") or [])
        ],
        "skills": list(person.get("skills") or []),
        "achievements": [],
        "contactInfo": {
            "email": _as_str(person.get("work_email") or person.get("email")),
            "phone": _as_str(phones[0]) if phones else None,
            "linkedin": person.get("linkedin_url"),
            "website": _as_str(websites[0]) if websites else None,
            "github": person.get("github_url"),
        },
        "location": person.get("location_name"),
        "summary": person.get("summary") or person.get("headline"),
        "certifications": [
            _convert_certification(cert, i)
            for i, cert in enumerate(person.get("certifications") or [])
        ],
        "projects": [],
    }


class PeopleDataLabsProvider(BaseEnrichmentProvider):
    """Probabilistic person lookup against the People Data Labs enrich API.

    Rate-limited calls and network errors are retried with a linear backoff
    (``backoff_seconds * attempt``); matches below ``min_likelihood`` are
    rejected.
    """

    name = "people_data_labs"

    def __init__(
        self,
        *,
        api_url: str,
        api_key: str,
        timeout_seconds: float,
        max_retries: int = 2,
        backoff_seconds: float = 1.0,
        min_likelihood: float = 0.7,
        client: httpx.Client | None = None,
        sleep_fn: Callable[[float], None] = time.sleep,
    ) -> None:
        self._api_url = api_url
        self._api_key = api_key
        self._timeout_seconds = timeout_seconds
        self._max_retries = max_retries
        self._backoff_seconds = backoff_seconds
        self._min_likelihood = min_likelihood
        self._client = client if client is not None else httpx.Client(timeout=timeout_seconds)
        self._sleep_fn = sleep_fn

    def fetch(self, hints: EnrichmentHints) -> EnrichmentResult:
        if not self._api_key:
            return EnrichmentResult.failure(
                self.name, "People Data Labs API is not configured", retryable=False
            )
        params = build_query_params(hints)
        if not params:
            return EnrichmentResult.failure(
                self.name, "No valid enrichment parameters provided", retryable=False
            )

        Log.info(f"PDL enrichment with hints {hints.presence()}")
        attempt = 0
        while True:
            try:
                response = self._client.get(
                    self._api_url,
                    params=params,
                    headers={"X-Api-Key": self._api_key, "Accept": "application/json"},
                    timeout=self._timeout_seconds,
                )
            except httpx.TimeoutException:
                return EnrichmentResult.failure(self.name, "Request timed out", retryable=True)
            except httpx.TransportError as exc:
                if attempt < self._max_retries:
                    Log.warning(f"PDL request failed, retrying ({attempt + 1}/{self._max_retries})")
                    self._sleep_fn(self._backoff_seconds * (attempt + 1))
                    attempt += 1
                    continue
                return EnrichmentResult.failure(
                    self.name, f"PDL network error: {exc}", retryable=True
                )
            if response.status_code == 429 and attempt < self._max_retries:
                Log.warning(f"PDL rate limited, retrying ({attempt + 1}/{self._max_retries})")
                self._sleep_fn(self._backoff_seconds * (attempt + 1))
                attempt += 1
                continue
            return self._to_result(response)

    def close(self) -> None:
        self._client.close()

    def _to_result(self, response: httpx.Response) -> EnrichmentResult:
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        if response.is_error:
            error = payload.get("error")
            message = error.get("message") if isinstance(error, dict) else None
            return EnrichmentResult.failure(
                self.name,
                message or f"HTTP {response.status_code}: {response.reason_phrase}",
                retryable=response.status_code >= 500 or response.status_code == 429,
            )

        person = payload.get("data")
        if not person:
            return EnrichmentResult.failure(
                self.name,
                "No person data found matching the provided criteria",
                retryable=False,
            )

        likelihood = payload.get("likelihood")
        score = float(likelihood) if likelihood is not None else None
        # PDL reports likelihood on a 1-10 scale
        if score is not None and score > 1:
            score = score / 10
        if score is not None and score < self._min_likelihood:
            return EnrichmentResult.failure(
                self.name,
                f"Match likelihood {score:.2f} is below {self._min_likelihood:.2f}",
                retryable=False,
            )

        Log.info(f"PDL enrichment successful, likelihood: {score}")
        return EnrichmentResult(
            success=True,
            provider_used=self.name,
            data=convert_person(person),
            likelihood_score=score,
        )


def _as_str(value: Any) -> str | None:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, dict):
        return value.get("address") or value.get("url") or None
    return str(value)


def _location_name(location: Any) -> str | None:
    if not isinstance(location, dict):
        return None
    if location.get("name"):
        return location["name"]
    parts = [location.get(key) for key in ("locality", "region", "country")]
    return ", ".join(part for part in parts if part) or None


def _convert_experience(experience: dict[str, Any], index: int) -> dict[str, Any]:
    company = experience.get("company") or {}
    title = experience.get("title") or {}
    company_name = company.get("name") or ""
    title_name = title.get("name") or ""

    description_parts = []
    if experience.get("summary"):
        description_parts.append(experience["summary"])
    if title.get("role"):
        description_parts.append(f"Role: {title['role']}")
    if title.get("sub_role"):
        description_parts.append(f"Specialty: {title['sub_role']}")
    if company.get("industry"):
        description_parts.append(f"Industry: {company['industry']}")
    if company.get("size"):
        description_parts.append(f"Company Size: {company['size']}")

    achievements = []
    if title.get("levels"):
        achievements.append(f"Level: {', '.join(title['levels'])}")
    if experience.get("is_primary"):
        achievements.append("Current/Primary Role")

    return {
        "id": f"pdl_work_{index}",
        "company": company_name,
        "title": title_name,
        "startDate": normalize_date(experience.get("start_date")),
        "endDate": normalize_date(experience.get("end_date")),
        "description": " | ".join(description_parts) or f"{title_name} at {company_name}",
        "location": _location_name(company.get("location")),
        "current": not experience.get("end_date") and bool(experience.get("is_primary")),
        "achievements": achievements,
    }


def _convert_education(education: dict[str, Any], index: int) -> dict[str, Any]:
    school = education.get("school") or {}
    degrees = education.get("degrees") or []
    majors = education.get("majors") or []
    minors = education.get("minors") or []
    gpa = education.get("gpa")
    return {
        "id": f"pdl_edu_{index}",
        "institution": school.get("name") or "",
        "degree": degrees[0] if degrees else "",
        "fieldOfStudy": (majors or minors or [None])[0],
        "startDate": normalize_date(education.get("start_date")),
        "endDate": normalize_date(education.get("end_date")),
        "gpa": str(gpa) if gpa is not None else None,
        "location": _location_name(school.get("location")),
    }


def _convert_certification(certification: dict[str, Any], index: int) -> dict[str, Any]:
    return {
        "id": f"pdl_cert_{index}",
        "name": certification.get("name") or "",
        "issuer": certification.get("organization") or None,
        "issueDate": normalize_date(certification.get("start_date")),
        "expiryDate": normalize_date(certification.get("end_date")),
    }
