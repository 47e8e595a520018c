from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeAlias

PathType: TypeAlias = str | Path
"""A string or a `pathlib.Path` object."""

PrimitiveType: TypeAlias = str | int | float | bool | None
"""Primitive types in Python."""

# To avoid infinite recursion
if TYPE_CHECKING:  # pragma: no cover
    JsonValue: TypeAlias = (
        Mapping[str, "JsonValue"] | Sequence["JsonValue"] | PrimitiveType
    )
else:
    JsonValue: TypeAlias = Any

Params: TypeAlias = dict[str, JsonValue]
"""A keyword dictionary of JSON values.

Used for event properties and config snapshots.
"""

Groups: TypeAlias = dict[str, str]
"""Mapping of group type to group id."""
