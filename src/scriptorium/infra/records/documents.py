"""Query and update semantics shared by record store implementations.

Queries are exact-match filters on dotted paths; updates carry ``$set`` and
``$unset`` sections keyed by dotted paths.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

from scriptorium.core.ports import Query, Update

_MISSING = object()
SUPPORTED_OPERATORS = frozenset({"$set", "$unset"})


def get_path(document: Mapping[str, Any], dotted: str) -> Any:
    value: Any = document
    for part in dotted.split("."):
        if not isinstance(value, Mapping) or part not in value:
            return _MISSING
        value = value[part]
    return value


def matches(document: Mapping[str, Any], query: Query) -> bool:
    return all(get_path(document, key) == expected for key, expected in query.items())


def _set_path(document: dict[str, Any], dotted: str, value: Any) -> None:
    *parents, leaf = dotted.split(".")
    target = document
    for part in parents:
        child = target.get(part)
        if not isinstance(child, dict):
            child = {}
            target[part] = child
        target = child
    target[leaf] = copy.deepcopy(value)


def _unset_path(document: dict[str, Any], dotted: str) -> None:
    *parents, leaf = dotted.split(".")
    target: Any = document
    for part in parents:
        target = target.get(part) if isinstance(target, dict) else None
        if target is None:
            return
    if isinstance(target, dict):
        target.pop(leaf, None)


def apply_update(document: Mapping[str, Any], update: Update) -> dict[str, Any]:
    """Return a copy of ``document`` with ``update`` applied.

    Raises:
        ValueError: If the update uses an unsupported operator.

    """
    unsupported = set(update) - SUPPORTED_OPERATORS
    if unsupported:
        msg = f"Unsupported update operators: {', '.join(sorted(unsupported))}"
        raise ValueError(msg)

    updated = copy.deepcopy(dict(document))
    for dotted, value in update.get("$set", {}).items():
        _set_path(updated, dotted, value)
    for dotted in update.get("$unset", {}):
        _unset_path(updated, dotted)
    return updated
