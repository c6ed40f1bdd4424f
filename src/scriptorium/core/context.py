"""Request-scoped context for the record lifecycle.

Application and publication settings are threaded explicitly through every
call instead of being read from process state.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from scriptorium.core.types import PostTypeConfig, SyndicationTarget

if TYPE_CHECKING:
    from scriptorium.core.ports import FileStore, Preset, RecordStore


@dataclass(frozen=True)
class StoreMessage:
    action: str
    post_type: str
    file_type: str = "post"
    file_name: str | None = None


def default_store_message(message: StoreMessage) -> str:
    return f"{message.action} {message.post_type} {message.file_type}"


@dataclass(frozen=True)
class RenderContext:
    """Immutable values needed to render paths and normalize properties.

    Attributes:
        time_zone: IANA time zone name, ``UTC`` or ``server``
        me: Publication URL used to make URLs canonical
        slug_separator: Separator for slugs derived from a name
    """

    time_zone: str = "UTC"
    me: str = ""
    slug_separator: str = "-"


@dataclass(frozen=True)
class Application:
    """Application-wide settings and record indexes.

    ``posts`` and ``media`` are optional; without them records are computed
    but not indexed.
    """

    time_zone: str = "UTC"
    posts: RecordStore | None = None
    media: RecordStore | None = None

    @property
    def has_database(self) -> bool:
        return self.posts is not None


@dataclass(frozen=True)
class Publication:
    """Resolved publication configuration, consumed read-only by the engine."""

    me: str
    post_types: Mapping[str, PostTypeConfig] = field(default_factory=dict)
    syndication_targets: tuple[SyndicationTarget, ...] = ()
    slug_separator: str = "-"
    preset: Preset | None = None
    store: FileStore | None = None
    store_message_template: Callable[[StoreMessage], str] = default_store_message

    def __post_init__(self) -> None:
        if not isinstance(self.post_types, MappingProxyType):
            object.__setattr__(self, "post_types", MappingProxyType(dict(self.post_types)))
        object.__setattr__(self, "syndication_targets", tuple(self.syndication_targets))

    def render_context(self, application: Application) -> RenderContext:
        return RenderContext(time_zone=application.time_zone, me=self.me, slug_separator=self.slug_separator)
