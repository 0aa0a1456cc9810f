from abc import ABC, abstractmethod


class BaseObjectStore(ABC):
    """Contract for all object storage adapters."""

    @abstractmethod
    def put(self, path: str, content: bytes, content_type: str, token: str) -> str:
        """Store bytes under the given key on behalf of the token's user.

        Args:
            path: Storage key inside the configured bucket.
            content: Raw file bytes.
            content_type: Declared mime type of the content.
            token: Bearer token of the uploading user.

        Returns:
            The storage path actually written.

        Raises:
            TransportError: on 5xx, rate limiting, connection errors or timeouts.
            AuthError: on 4xx (authentication, permission, missing bucket).
        """
