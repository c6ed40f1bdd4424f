"""Core exceptions for the Scriptorium publishing engine.

Every error carries a machine-readable ``code`` plus the offending identifier
so the protocol layer can map it to a response deterministically.
"""

from __future__ import annotations


class ScriptoriumError(Exception):
    """Base exception for all Scriptorium errors."""

    code = "error"


class NotFoundError(ScriptoriumError):
    """Raised when no record matches the given URL."""

    code = "not_found"

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"No record found for {url}")


class PostTypeNotImplementedError(ScriptoriumError):
    """Raised when a resolved post or media type has no configuration."""

    code = "not_implemented"

    def __init__(self, post_type: str) -> None:
        self.post_type = post_type
        super().__init__(f"No configuration provided for {post_type} post type")


class UnsupportedMediaTypeError(ScriptoriumError):
    """Raised when uploaded media is not audio, photo or video."""

    code = "unsupported_media_type"

    def __init__(self, media_type: str) -> None:
        self.media_type = media_type
        super().__init__(f"Unsupported media type: '{media_type}'")


class TemplateResolutionError(ScriptoriumError):
    """Raised when a path template references a value that cannot be resolved."""

    code = "template_resolution"

    def __init__(self, token: str, template: str) -> None:
        self.token = token
        self.template = template
        super().__init__(f"Cannot resolve '{{{token}}}' in path template '{template}'")


class InvalidOperationError(ScriptoriumError):
    """Raised when an operation is incompatible with the current record state."""

    code = "invalid_operation"

    def __init__(self, operation: str, key: str, reason: str) -> None:
        self.operation = operation
        self.key = key
        self.reason = reason
        super().__init__(f"Cannot {operation} '{key}': {reason}")


class InvalidPropertyError(ScriptoriumError):
    """Raised when a property value has a shape the engine does not accept."""

    code = "invalid_property"

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid value for property '{key}': {reason}")


class UnderlyingStoreError(ScriptoriumError):
    """Wraps a failure surfaced by a record store or file store provider.

    The original exception is chained as ``__cause__``.
    """

    code = "store_error"

    def __init__(self, plugin: str, message: str, status: int | None = None) -> None:
        self.plugin = plugin
        self.status = status
        super().__init__(f"{plugin}: {message}")


class ConfigurationError(ScriptoriumError):
    """Raised when configuration cannot be loaded or resolved."""

    code = "configuration"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid configuration: {reason}")
