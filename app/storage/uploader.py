from app.ingestion.exceptions import AuthError, IngestionError
from app.ingestion.models import StorageUploadResult
from app.logging.logger import Log
from app.storage.base import BaseObjectStore


class StorageUploader:
    """Transfers file bytes to the object store and classifies failures."""

    def __init__(self, object_store: BaseObjectStore) -> None:
        self._object_store = object_store

    def upload(
        self,
        content: bytes,
        path: str,
        token: str | None,
        content_type: str = "application/octet-stream",
    ) -> StorageUploadResult:
        """Upload bytes under ``path``.

        Never raises for collaborator failures: transport problems come back
        as retryable results, auth and permission problems as non-retryable.
        """
        Log.info(f"Uploading {len(content)} bytes to storage path {path}")
        try:
            if not token:
                raise AuthError("No access token available for upload")
            stored_path = self._object_store.put(path, content, content_type, token)
        except IngestionError as exc:
            Log.error(f"Storage upload failed for {path}: {exc}")
            return StorageUploadResult(success=False, error=str(exc), retryable=exc.retryable)

        Log.info(f"Storage upload successful: {stored_path}")
        return StorageUploadResult(success=True, storage_path=stored_path)
