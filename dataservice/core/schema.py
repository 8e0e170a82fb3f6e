"""Per-type, per-culture attribute schema of the directory.

The schema of an object type is assembled from two directory queries: the
*bindings* of the type (type-specific overrides such as required-ness and
display text) and the *attribute types* they bind (store-wide declarations
such as data type and multivalued-ness). Binding values win over attribute
type values, which win over "no constraint".

Resolved maps are cached without expiry; only :meth:`SchemaCache.clear`
drops them.
"""
from __future__ import annotations
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .directory.client import DirectoryObject
from .exceptions import SchemaError, ValidationError
from .session_cache import SessionCache

logger = logging.getLogger(__name__)

BINDING_QUERY = "/BindingDescription[BoundObjectType=/ObjectTypeDescription[Name='{type_name}']]"
ATTRIBUTE_TYPE_QUERY = BINDING_QUERY + "/BoundAttributeType"

BINDING_ATTRIBUTES = [
    "DisplayName", "Description", "BoundAttributeType",
    "Required", "StringRegex", "IntegerMinimum", "IntegerMaximum",
]
ATTRIBUTE_TYPE_ATTRIBUTES = [
    "DisplayName", "Description", "Name", "DataType",
    "Multivalued", "StringRegex", "IntegerMinimum", "IntegerMaximum",
]


@dataclass(frozen=True)
class AttributeSchema:
    """Metadata of one attribute as bound to an object type.

    ``permission_hint``, ``value`` and ``values`` are only filled in full
    resource views (see ``ResourceMapper.to_full``).
    """
    display_name: str = ""
    description: Optional[str] = None
    system_name: str = ""
    data_type: str = ""
    multivalued: bool = False
    required: bool = False
    string_regex: Optional[str] = None
    integer_minimum: Optional[int] = None
    integer_maximum: Optional[int] = None
    permission_hint: str = "Unknown"
    value: Any = None
    values: Optional[List[Any]] = field(default=None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "DisplayName": self.display_name,
            "Description": self.description,
            "SystemName": self.system_name,
            "DataType": self.data_type,
            "Multivalued": self.multivalued,
            "Required": self.required,
            "StringRegex": self.string_regex,
            "IntegerMinimum": self.integer_minimum,
            "IntegerMaximum": self.integer_maximum,
            "PermissionHint": self.permission_hint,
            "Value": self.value,
            "Values": self.values,
        }


def coalesce(*candidates: Any) -> Any:
    """Return the first candidate that is not None."""
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None


def _read(record: DirectoryObject, name: str) -> Any:
    """Scalar value of ``name`` on ``record``, None when absent or null."""
    attribute = record.attributes.get(name)
    if attribute is None or attribute.is_null:
        return None
    return attribute.value


def _merge(binding: DirectoryObject, attribute_type: DirectoryObject) -> AttributeSchema:
    return AttributeSchema(
        display_name=_read(binding, "DisplayName") or _read(attribute_type, "DisplayName") or "",
        description=coalesce(_read(binding, "Description"), _read(attribute_type, "Description")),
        system_name=_read(attribute_type, "Name"),
        data_type=_read(attribute_type, "DataType") or "",
        multivalued=bool(_read(attribute_type, "Multivalued")),
        required=bool(_read(binding, "Required")),
        string_regex=coalesce(_read(binding, "StringRegex"), _read(attribute_type, "StringRegex")),
        integer_minimum=coalesce(_read(binding, "IntegerMinimum"), _read(attribute_type, "IntegerMinimum")),
        integer_maximum=coalesce(_read(binding, "IntegerMaximum"), _read(attribute_type, "IntegerMaximum")),
    )


class SchemaCache:
    """Lazily resolved schema maps keyed by object type and culture.

    Two concurrent misses for the same key may both query the directory;
    the last one to finish wins. Schema resolution is idempotent, so both
    writers store equal maps.
    """

    def __init__(self, sessions: SessionCache):
        self.sessions = sessions
        self._schemas: Dict[str, Dict[str, AttributeSchema]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def cache_key(type_name: str, culture: str) -> str:
        return f"schema_{type_name.lower()}_{culture.lower()}"

    def resolve(self, token: str, type_name: str, culture: str) -> Dict[str, AttributeSchema]:
        """Get the schema of ``type_name`` in ``culture``.

        Args:
            token: Session token used to query the directory on a miss
            type_name: Object type name (e.g. "Person")
            culture: Culture code for display texts (e.g. "en-US")

        Returns:
            Map of attribute system name to AttributeSchema

        Raises:
            ValidationError: If type name or culture is empty
            SessionNotFoundError: If a miss occurs and the token is not live
            SchemaError: If the type is unknown or has no bound attributes
        """
        if not type_name:
            raise ValidationError("type name must be specified")
        if not culture:
            raise ValidationError("culture must be specified")

        key = self.cache_key(type_name, culture)
        with self._lock:
            cached = self._schemas.get(key)
        if cached is not None:
            logger.debug(f"Schema cache hit: {key}")
            return cached

        schema = self._load(token, type_name, culture)

        with self._lock:
            self._schemas[key] = schema
        logger.info(f"Schema cached: {key} ({len(schema)} attribute(s))")
        return schema

    def _load(self, token: str, type_name: str, culture: str) -> Dict[str, AttributeSchema]:
        client = self.sessions.get(token)

        query = BINDING_QUERY.format(type_name=type_name)
        bindings = client.get_objects(query, BINDING_ATTRIBUTES, culture=culture)
        attribute_types = client.get_objects(
            ATTRIBUTE_TYPE_QUERY.format(type_name=type_name), ATTRIBUTE_TYPE_ATTRIBUTES, culture=culture
        )

        if not bindings or not attribute_types:
            raise SchemaError("invalid type name")

        by_id = {
            str(record.object_id).lower(): record
            for record in attribute_types
            if record.object_id
        }

        schema: Dict[str, AttributeSchema] = {}
        for binding in bindings:
            bound_id = _read(binding, "BoundAttributeType")
            attribute_type = by_id.get(str(bound_id).lower()) if bound_id else None
            if attribute_type is None:
                raise SchemaError(f"attribute type {bound_id} bound to {type_name} was not found")

            entry = _merge(binding, attribute_type)
            if not entry.system_name:
                raise SchemaError(f"attribute type {bound_id} bound to {type_name} has no name")
            schema[entry.system_name] = entry

        return schema

    def clear(self) -> None:
        with self._lock:
            self._schemas.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._schemas)
