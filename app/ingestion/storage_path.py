import re
import secrets
from datetime import datetime, timezone

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9.-]")


def sanitize_file_name(file_name: str) -> str:
    """Replace every character outside [A-Za-z0-9.-] with an underscore."""
    return _UNSAFE_CHARS.sub("_", file_name)


def epoch_millis(now: datetime) -> int:
    return int(now.timestamp()) * 1000 + now.microsecond // 1000


def random_suffix() -> str:
    return secrets.token_hex(3)


def build_storage_path(
    owner_id: str,
    file_name: str,
    now: datetime | None = None,
    unique_suffix: str | None = None,
) -> str:
    """Build {owner_id}/{YYYY}/{MM}/{DD}/{epoch_millis}_{sanitized_name}.

    Keys are unique only at millisecond granularity; pass ``unique_suffix``
    to disambiguate uploads made by one owner within the same millisecond.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    stamp = str(epoch_millis(now))
    if unique_suffix:
        stamp = f"{stamp}-{unique_suffix}"
    return (
        f"{owner_id}/{now.year:04d}/{now.month:02d}/{now.day:02d}/"
        f"{stamp}_{sanitize_file_name(file_name)}"
    )


def build_manual_text_path(owner_id: str, category: str, now: datetime | None = None) -> str:
    """Virtual path for manually entered text, which never reaches the object store."""
    if now is None:
        now = datetime.now(timezone.utc)
    return f"manual/{owner_id}/{category}/{epoch_millis(now)}.txt"


def build_identity_path(owner_id: str, username: str) -> str:
    """Virtual path for a connected identity profile."""
    return f"identity/{owner_id}/linkedin/{sanitize_file_name(username)}"
