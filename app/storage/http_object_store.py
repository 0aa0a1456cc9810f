from urllib.parse import quote

import httpx

from app.ingestion.exceptions import AuthError, TransportError, TransportTimeoutError
from app.logging.logger import Log
from app.storage.base import BaseObjectStore


class HttpObjectStore(BaseObjectStore):
    """Object store adapter for a Supabase-compatible storage REST API."""

    def __init__(
        self,
        *,
        base_url: str,
        bucket: str,
        api_key: str,
        timeout_seconds: float,
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._bucket = bucket
        self._api_key = api_key
        self._timeout_seconds = timeout_seconds
        self._client = client if client is not None else httpx.Client(timeout=timeout_seconds)

    def put(self, path: str, content: bytes, content_type: str, token: str) -> str:
        url = f"{self._base_url}/storage/v1/object/{self._bucket}/{quote(path)}"
        headers = {
            "Authorization": f"Bearer {token}",
            "apikey": self._api_key,
            "Content-Type": content_type,
            "Cache-Control": "3600",
        }
        try:
            response = self._client.post(
                url, content=content, headers=headers, timeout=self._timeout_seconds
            )
        except httpx.TimeoutException as exc:
            raise TransportTimeoutError(
                f"Storage upload timed out after {self._timeout_seconds}s"
            ) from exc
        except httpx.TransportError as exc:
            raise TransportError(f"Storage network error: {exc}") from exc

        if response.status_code >= 500 or response.status_code == 429:
            raise TransportError(
                f"Upload failed: {response.status_code} {response.reason_phrase}"
            )
        if response.status_code >= 400:
            Log.warning(f"Storage rejected upload ({response.status_code}): {response.text}")
            raise AuthError(self._client_error_message(response))
        return path

    def close(self) -> None:
        self._client.close()

    def _client_error_message(self, response: httpx.Response) -> str:
        if response.status_code in (401, 403):
            return (
                "Permission denied. Please ensure you are logged in "
                "and have the correct permissions."
            )
        if "Bucket not found" in response.text:
            return f"Storage bucket '{self._bucket}' not found. Please contact support."
        return f"Upload failed: {response.status_code} {response.reason_phrase}"
