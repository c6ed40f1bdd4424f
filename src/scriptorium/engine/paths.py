"""Path template rendering.

Templates mix literal segments with ``{token}`` placeholders, e.g.
``_posts/{yyyy}-{MM}-{dd}-{slug}.md``. Date tokens are formatted from the
record's ``published`` timestamp in the application time zone; every other
token resolves from the property set.
"""

from __future__ import annotations

import hashlib
import json
import re
from collections.abc import Callable
from datetime import UTC, date, datetime

from dateutil.parser import isoparse

from scriptorium.core.context import RenderContext
from scriptorium.core.exceptions import TemplateResolutionError
from scriptorium.core.types import PropertySet
from scriptorium.core.utils import excerpt, get_time_zone, slugify

_TOKEN_PATTERN = re.compile(r"\{([A-Za-z0-9_-]+)\}")
_NEWBASE60_ALPHABET = "0123456789ABCDEFGHJKLMNPQRSTUVWXYZ_abcdefghijkmnopqrstuvwxyz"
_EPOCH = date(1970, 1, 1)
SLUG_WORDS = 5

_DATE_TOKENS: dict[str, Callable[[datetime], str]] = {
    "y": lambda dt: str(dt.year),
    "yyyy": lambda dt: f"{dt.year:04d}",
    "M": lambda dt: str(dt.month),
    "MM": lambda dt: f"{dt.month:02d}",
    "MMM": lambda dt: dt.strftime("%b"),
    "MMMM": lambda dt: dt.strftime("%B"),
    "q": lambda dt: str((dt.month - 1) // 3 + 1),
    "w": lambda dt: str(dt.isocalendar().week),
    "ww": lambda dt: f"{dt.isocalendar().week:02d}",
    "d": lambda dt: str(dt.day),
    "dd": lambda dt: f"{dt.day:02d}",
    "D": lambda dt: str(dt.timetuple().tm_yday),
    "DDD": lambda dt: f"{dt.timetuple().tm_yday:03d}",
    "t": lambda dt: str(int(dt.timestamp())),
    "T": lambda dt: str(int(dt.timestamp() * 1000)),
    "D60": lambda dt: newbase60((dt.date() - _EPOCH).days),
}


def newbase60(number: int) -> str:
    """Encode a non-negative integer in NewBase60.

    Examples:
        >>> newbase60(0)
        '0'
        >>> newbase60(19723)
        '5Ui'

    """
    if number == 0:
        return "0"
    digits = []
    while number > 0:
        number, remainder = divmod(number, 60)
        digits.append(_NEWBASE60_ALPHABET[remainder])
    return "".join(reversed(digits))


def parse_published(value: object) -> datetime:
    """Parse a ``published`` value into an aware datetime (naive means UTC)."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        parsed = isoparse(value)
    else:
        msg = f"unsupported date value {value!r}"
        raise ValueError(msg)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def fallback_slug(properties: PropertySet, separator: str = "-") -> str:
    """Slug for a property set without ``mp-slug``.

    Uses the name when present; otherwise a short identifier derived from a
    digest of the property set, so the result is stable for equal input.
    """
    name = properties.get("name")
    if isinstance(name, str):
        slug = slugify(excerpt(name, SLUG_WORDS), separator=separator)
        if slug:
            return slug
    payload = json.dumps(properties, sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(payload).hexdigest()[:5]


def _resolve_token(token: str, template: str, properties: PropertySet, context: RenderContext) -> str:
    if token in _DATE_TOKENS:
        published = properties.get("published")
        if not published:
            raise TemplateResolutionError(token, template)
        try:
            dt = parse_published(published)
        except (ValueError, OverflowError) as exc:
            raise TemplateResolutionError(token, template) from exc
        return _DATE_TOKENS[token](dt.astimezone(get_time_zone(context.time_zone)))

    if token == "slug":
        slug = properties.get("mp-slug")
        if isinstance(slug, str) and slug:
            return slug
        return fallback_slug(properties, context.slug_separator)

    value = properties.get(token)
    if isinstance(value, list) and len(value) == 1:
        value = value[0]
    if isinstance(value, bool) or not isinstance(value, (str, int, float)) or value == "":
        raise TemplateResolutionError(token, template)
    return str(value)


def render_path(template: str, properties: PropertySet, context: RenderContext) -> str:
    """Render ``template`` with values from ``properties``.

    Args:
        template: Path or URL template containing ``{token}`` placeholders
        properties: Normalized JF2 properties
        context: Time zone used for date tokens

    Returns:
        The rendered path.

    Raises:
        TemplateResolutionError: If a placeholder cannot be resolved.

    """
    return _TOKEN_PATTERN.sub(
        lambda match: _resolve_token(match.group(1), template, properties, context),
        template,
    )
