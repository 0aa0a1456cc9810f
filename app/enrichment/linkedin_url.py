import re

PROFILE_URL_PATTERN = re.compile(r"^https?://(www\.)?linkedin\.com/in/[a-zA-Z0-9-]+/?$")
_USERNAME_PATTERN = re.compile(r"linkedin\.com/in/([a-zA-Z0-9-]+)")

INVALID_PROFILE_URL_MESSAGE = (
    "Invalid LinkedIn URL. Please use format: https://linkedin.com/in/yourprofile"
)


def is_valid_profile_url(url: str) -> bool:
    return bool(PROFILE_URL_PATTERN.match(url.strip()))


def extract_username(url: str) -> str | None:
    match = _USERNAME_PATTERN.search(url.strip())
    return match.group(1) if match else None


def canonical_profile_url(username: str) -> str:
    """Profile URL independent of scheme, www prefix, case and trailing slash."""
    return f"https://www.linkedin.com/in/{username.lower()}"
