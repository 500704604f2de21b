"""URL normalisation and domain parsing helpers.

Shared by the metadata and content extractors and by the API layer's input
validation.  Saved URLs are stored exactly as the caller supplied them;
these helpers only produce the *fetchable* form and the display domain.
"""

from __future__ import annotations

import re
from urllib.parse import urlparse

from src.utils.errors import InputValidationError

# Best-effort domain capture for strings urlparse cannot make sense of.
_DOMAIN_FALLBACK_RE = re.compile(
    r"^(?:https?://)?(?:[^@\n]+@)?(?:www\.)?([^:/\n?]+)",
    re.IGNORECASE | re.MULTILINE,
)

_ALLOWED_SCHEMES = frozenset({"http", "https"})


def normalize_url(url: str) -> str:
    """Return *url* with an ``https://`` scheme added when it has none."""
    stripped = url.strip()
    if stripped.lower().startswith("http"):
        return stripped
    return f"https://{stripped}"


def validate_url(url: str | None) -> str:
    """Validate a caller-supplied URL and return it stripped.

    Raises
    ------
    InputValidationError
        If the URL is empty, has a non-HTTP scheme, or no host.
    """
    if url is None or not url.strip():
        raise InputValidationError("URL is required")

    candidate = url.strip()
    if any(ch.isspace() for ch in candidate):
        raise InputValidationError(f"Invalid URL format: {candidate!r}")

    try:
        parsed = urlparse(normalize_url(candidate))
        hostname = parsed.hostname
    except ValueError as exc:
        raise InputValidationError(f"Invalid URL format: {candidate!r}") from exc

    if parsed.scheme.lower() not in _ALLOWED_SCHEMES:
        raise InputValidationError(f"Unsupported URL scheme: {parsed.scheme!r}")
    if not hostname or ("." not in hostname and hostname != "localhost"):
        raise InputValidationError(f"Invalid URL format: {candidate!r}")
    return candidate


def extract_domain(url: str) -> str:
    """Return the display domain of *url* (hostname without ``www.``).

    Falls back to a regex over the raw string when the URL cannot be
    parsed, and to ``"unknown"`` when even that finds nothing.
    """
    try:
        hostname = urlparse(normalize_url(url)).hostname
    except ValueError:
        hostname = None

    if hostname:
        return hostname[4:] if hostname.startswith("www.") else hostname

    match = _DOMAIN_FALLBACK_RE.match(url.strip())
    if match and match.group(1):
        return match.group(1)
    return "unknown"


def origin_of(url: str) -> str:
    """Return ``scheme://netloc`` for resolving relative page references."""
    parsed = urlparse(normalize_url(url))
    return f"{parsed.scheme}://{parsed.netloc}"
