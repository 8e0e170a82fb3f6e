"""Generic resource model exchanged with callers.

A resource is an ordered map from attribute name to a scalar, a list, or a
nested sub-record. It never exposes the directory's typed object model.
"""
from __future__ import annotations
from collections.abc import MutableMapping
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional

from .exceptions import ValidationError

OBJECT_ID = "ObjectID"
OBJECT_TYPE = "ObjectType"
DISPLAY_NAME = "DisplayName"

REQUIRED_ATTRIBUTES = (DISPLAY_NAME, OBJECT_ID, OBJECT_TYPE)


class GenericResource(MutableMapping):
    """Attribute map with a mandatory, non-empty ``ObjectType``.

    ``ObjectID`` can only be supplied at construction (existing objects);
    assigning it afterwards raises, as does removing or blanking
    ``ObjectType``.

    Usage:
        resource = GenericResource({"ObjectType": "Person", "AccountName": "alice"})
        resource["DisplayName"] = "Alice"
    """

    def __init__(self, attributes: Optional[Mapping[str, Any]] = None):
        if attributes is None:
            raise ValidationError("resource must be specified")
        if not isinstance(attributes, Mapping):
            raise ValidationError("resource must be an attribute map")

        object_type = attributes.get(OBJECT_TYPE)
        if not object_type:
            raise ValidationError(f"The resource does not contain a value for {OBJECT_TYPE}.")

        self._data: Dict[str, Any] = dict(attributes)

    @property
    def object_type(self) -> str:
        return self._data[OBJECT_TYPE]

    @property
    def object_id(self) -> Optional[str]:
        return self._data.get(OBJECT_ID)

    @property
    def display_name(self) -> Optional[str]:
        return self._data.get(DISPLAY_NAME)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        if key == OBJECT_ID:
            raise ValidationError(f"{OBJECT_ID} is read-only")
        if key == OBJECT_TYPE and not value:
            raise ValidationError(f"{OBJECT_TYPE} must not be empty")
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        if key == OBJECT_TYPE:
            raise ValidationError(f"{OBJECT_TYPE} cannot be removed")
        del self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"GenericResource({self._data!r})"

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._data)


@dataclass
class ResultSet:
    """One page (or the whole set) of a query result."""
    total_count: int = 0
    has_more_items: bool = False
    results: List[GenericResource] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalCount": self.total_count,
            "hasMoreItems": self.has_more_items,
            "results": [resource.to_dict() for resource in self.results],
        }
