from typing import Any

from app.database.models import NewSourceRecord
from app.database.repositories.base import BaseSourceRecordStore
from app.enrichment.chain import EnrichmentFallbackChain
from app.enrichment.linkedin_url import (
    INVALID_PROFILE_URL_MESSAGE,
    canonical_profile_url,
    extract_username,
    is_valid_profile_url,
)
from app.enrichment.models import EnrichmentHints
from app.ingestion.checksum import compute_checksum
from app.ingestion.exceptions import IngestionError
from app.ingestion.models import FileCategory, ProcessingStatus, UploadResult
from app.ingestion.storage_path import build_identity_path
from app.logging.logger import Log

IDENTITY_MIME_TYPE = "application/json"


def latest_company(structured_data: dict[str, Any] | None) -> str | None:
    """Most recent employer in structured resume data: current roles first, then by start date."""
    if not structured_data:
        return None
    jobs = [job for job in structured_data.get("workHistory") or [] if isinstance(job, dict)]
    if not jobs:
        return None
    jobs.sort(key=lambda job: (bool(job.get("current")), job.get("startDate") or ""), reverse=True)
    return jobs[0].get("company") or None


class IdentityConnector:
    """Connects an external professional profile as a source record."""

    def __init__(self, store: BaseSourceRecordStore, chain: EnrichmentFallbackChain) -> None:
        self._store = store
        self._chain = chain

    def connect(
        self,
        profile_url: str,
        owner_id: str,
        token: str | None,
        full_name: str | None = None,
        company: str | None = None,
        linkedin_access_token: str | None = None,
        source_id: str | None = None,
    ) -> UploadResult:
        """Enrich the profile and persist it as a COMPLETED linkedin record.

        An already connected profile returns the existing record id. Passing
        ``source_id`` re-runs enrichment for an existing record.
        """
        if not token:
            return UploadResult(success=False, error="User not authenticated", retryable=False)

        trimmed = profile_url.strip()
        username = extract_username(trimmed) if is_valid_profile_url(trimmed) else None
        if username is None:
            return UploadResult(success=False, error=INVALID_PROFILE_URL_MESSAGE, retryable=False)

        canonical_url = canonical_profile_url(username)
        checksum = compute_checksum(canonical_url.encode("utf-8"))
        try:
            if source_id is None:
                existing = self._store.find_completed_by_checksum(owner_id, checksum)
                if existing is not None:
                    Log.info(f"Profile already connected as source {existing.id}")
                    return UploadResult(success=True, file_id=existing.id)
                source_id = self._store.create(
                    NewSourceRecord(
                        owner_id=owner_id,
                        file_name=f"linkedin_{username}.json",
                        mime_type=IDENTITY_MIME_TYPE,
                        byte_size=len(canonical_url.encode("utf-8")),
                        checksum=checksum,
                        storage_path=build_identity_path(owner_id, username),
                        category=FileCategory.LINKEDIN,
                    )
                )
                Log.info(f"Created identity source {source_id}")
        except IngestionError as exc:
            Log.error(f"Could not create identity source: {exc}")
            return UploadResult(success=False, error=str(exc), retryable=exc.retryable)

        hints = EnrichmentHints(
            profile_url=canonical_url,
            username=username,
            full_name=full_name,
            company=company or self._company_from_resume(owner_id),
            access_token=linkedin_access_token,
        )
        try:
            self._store.update_status(source_id, ProcessingStatus.PROCESSING)
            result = self._chain.enrich(hints)
            data = dict(result.data or {})
            data["dataSource"] = result.data_source
            if result.likelihood_score is not None:
                data["likelihoodScore"] = result.likelihood_score
            self._store.update_status(source_id, ProcessingStatus.COMPLETED, payload=data)
        except IngestionError as exc:
            Log.error(f"Identity source {source_id} could not be saved: {exc}")
            self._mark_failed(source_id, str(exc), exc.retryable)
            return UploadResult(
                success=False, file_id=source_id, error=str(exc), retryable=exc.retryable
            )

        Log.info(f"Identity source {source_id} completed from {result.data_source}")
        return UploadResult(success=True, file_id=source_id)

    def _company_from_resume(self, owner_id: str) -> str | None:
        try:
            records = self._store.list_by_owner(owner_id)
        except IngestionError as exc:
            Log.warning(f"Could not load resume for enrichment hints: {exc}")
            return None
        for record in records:
            if (
                record.category is FileCategory.RESUME
                and record.status is ProcessingStatus.COMPLETED
            ):
                return latest_company(record.structured_data)
        return None

    def _mark_failed(self, source_id: str, error: str, retryable: bool) -> None:
        try:
            self._store.update_status(
                source_id, ProcessingStatus.FAILED, error=error, retryable=retryable
            )
        except IngestionError as exc:
            Log.exception(f"Could not mark identity source {source_id} as failed: {exc}")
