import hashlib


def compute_checksum(content: bytes) -> str:
    """Return the lowercase hex SHA-256 digest of the full content."""
    return hashlib.sha256(content).hexdigest()
