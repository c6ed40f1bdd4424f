"""Micropub update operations over JF2 property sets.

Every function returns a new property set; inputs are never mutated.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from typing import Any

from scriptorium.core.exceptions import InvalidOperationError
from scriptorium.core.ports import ReplacementResolver
from scriptorium.core.types import PropertySet, UpdateOperation


def _as_list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, list) else [value]


def add_properties(properties: PropertySet, additions: Mapping[str, Any]) -> PropertySet:
    """Append values to list properties, creating properties that are absent.

    Raises:
        InvalidOperationError: If the target property holds a scalar value.

    """
    properties = copy.deepcopy(dict(properties))
    for key, value in additions.items():
        new_values = copy.deepcopy(_as_list(value))
        if key not in properties:
            properties[key] = new_values
            continue

        existing = properties[key]
        if not isinstance(existing, list):
            raise InvalidOperationError("add", key, "property holds a single value")
        properties[key] = existing + new_values
    return properties


async def replace_entries(
    properties: PropertySet,
    replacements: Mapping[str, Any],
    resolver: ReplacementResolver | None = None,
) -> PropertySet:
    """Replace each property's value wholesale.

    ``resolver``, when given, is awaited for every replacement and may return
    a resolved value (for example, media metadata fetched for a URL).
    """
    properties = copy.deepcopy(dict(properties))
    for key, value in replacements.items():
        new_value = copy.deepcopy(value)
        if resolver is not None:
            new_value = await resolver(key, new_value)
        properties[key] = new_value
    return properties


def delete_properties(properties: PropertySet, keys: Iterable[str]) -> PropertySet:
    properties = copy.deepcopy(dict(properties))
    for key in keys:
        properties.pop(key, None)
    return properties


def delete_entries(properties: PropertySet, entries: Mapping[str, Any]) -> PropertySet:
    """Remove specific values from list properties.

    Each listed value removes its last occurrence. A property left without
    values is removed entirely.

    Raises:
        InvalidOperationError: If values are not given as a list, or the
            target property holds a single value.

    """
    properties = copy.deepcopy(dict(properties))
    for key, values_to_delete in entries.items():
        if not isinstance(values_to_delete, list):
            raise InvalidOperationError("delete", key, "values to delete should be a list")
        if key not in properties:
            continue

        existing = properties[key]
        if not isinstance(existing, list):
            raise InvalidOperationError("delete", key, "property holds a single value")

        remaining = list(existing)
        for value in values_to_delete:
            for index in range(len(remaining) - 1, -1, -1):
                if remaining[index] == value:
                    del remaining[index]
                    break

        if remaining:
            properties[key] = remaining
        else:
            del properties[key]
    return properties


async def apply_operation(
    properties: PropertySet,
    operation: UpdateOperation,
    resolver: ReplacementResolver | None = None,
) -> PropertySet:
    """Apply add, then replace, then delete.

    Deleting entries sees the property values as they are after additions
    and replacements.
    """
    if operation.add:
        properties = add_properties(properties, operation.add)

    if operation.replace:
        properties = await replace_entries(properties, operation.replace, resolver)

    if operation.delete:
        if isinstance(operation.delete, Mapping):
            properties = delete_entries(properties, operation.delete)
        else:
            properties = delete_properties(properties, operation.delete)

    return copy.deepcopy(dict(properties))
