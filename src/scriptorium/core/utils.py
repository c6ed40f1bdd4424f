"""Utility functions shared across the engine."""

from __future__ import annotations

import re
import secrets
import string
from datetime import datetime, tzinfo
from unicodedata import normalize
from urllib.parse import urljoin, urlsplit, urlunsplit
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from scriptorium.core.exceptions import ConfigurationError

_RANDOM_ALPHABET = string.ascii_lowercase + string.digits


def slugify(text: str, separator: str = "-", max_len: int = 60) -> str:
    """Convert text to a safe URL-friendly slug.

    Args:
        text: Input text to slugify
        separator: Character placed between words
        max_len: Maximum length of output slug (default 60)

    Returns:
        Slug string suitable for filenames and URLs, or an empty string if
        nothing survives normalization.

    Examples:
        >>> slugify("Hello World")
        'hello-world'
        >>> slugify("Café", separator="_")
        'cafe'
        >>> slugify("A" * 100, max_len=20)
        'aaaaaaaaaaaaaaaaaaaa'

    """
    normalized = normalize("NFKD", text).encode("ascii", "ignore").decode("ascii").lower()
    slug = re.sub(r"[^a-z0-9]+", separator, normalized)
    slug = slug.strip(separator)
    if separator:
        slug = re.sub(f"{re.escape(separator)}+", separator, slug)

    if len(slug) > max_len:
        slug = slug[:max_len].rstrip(separator)

    return slug


def excerpt(text: str, words: int) -> str:
    """Return the first ``words`` words of ``text``."""
    return " ".join(text.split()[:words])


def random_string(length: int = 5) -> str:
    return "".join(secrets.choice(_RANDOM_ALPHABET) for _ in range(length))


def get_time_zone(time_zone: str) -> tzinfo:
    """Resolve a configured time zone name.

    ``server`` means the local time zone of the running process.
    """
    if time_zone == "server":
        local = datetime.now().astimezone().tzinfo
        if local is None:  # pragma: no cover - astimezone always sets tzinfo
            msg = "cannot determine server time zone"
            raise ConfigurationError(msg)
        return local
    try:
        return ZoneInfo(time_zone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        msg = f"unknown time zone '{time_zone}'"
        raise ConfigurationError(msg) from exc


def format_date(dt: datetime) -> str:
    """ISO 8601 with seconds precision; UTC rendered with a ``Z`` suffix."""
    return dt.isoformat(timespec="seconds").replace("+00:00", "Z")


def get_date(time_zone: str) -> str:
    """Current time in ``time_zone`` as an ISO 8601 string."""
    return format_date(datetime.now(get_time_zone(time_zone)))


def get_canonical_url(url: str, me: str) -> str:
    """Resolve ``url`` against the publication URL ``me``.

    Scheme and host are lowercased; relative URLs are resolved like a browser
    would.

    Examples:
        >>> get_canonical_url("notes/2024/01/01/abc", "https://Website.example")
        'https://website.example/notes/2024/01/01/abc'
        >>> get_canonical_url("/media/a.jpg", "https://website.example/blog/")
        'https://website.example/media/a.jpg'

    """
    base = me if urlsplit(me).path else f"{me}/"
    parts = urlsplit(urljoin(base, url))
    path = parts.path or "/"
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, parts.query, parts.fragment))
