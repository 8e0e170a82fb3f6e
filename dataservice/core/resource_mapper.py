"""Directory object <-> generic resource transformations.

This module converts typed directory objects into generic attribute maps
and writes generic attribute maps back onto directory objects.

Usage:
    # Directory -> generic (plain values)
    resource = ResourceMapper.to_simple(obj, ["AccountName", "Manager"], resolver=client)

    # Directory -> generic (schema annotated, with permission hints)
    resource = ResourceMapper.to_full(obj, ["AccountName"], schema)

    # Generic -> directory
    ResourceMapper.apply_to(resource, obj)
"""
from __future__ import annotations
from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .directory.client import AttributeValue, DirectoryClient, DirectoryObject
from .exceptions import SchemaError, ValidationError
from .resource import (
    DISPLAY_NAME,
    OBJECT_ID,
    OBJECT_TYPE,
    REQUIRED_ATTRIBUTES,
    GenericResource,
)
from .schema import AttributeSchema

READ_ONLY_ATTRIBUTES = (OBJECT_ID, OBJECT_TYPE)


class ResourceMapper:
    """Bidirectional mapper between directory objects and generic resources."""

    @staticmethod
    def with_required_attributes(attribute_names: Sequence[str]) -> List[str]:
        """Copy of ``attribute_names`` with DisplayName, ObjectID and ObjectType appended.

        Example:
            >>> ResourceMapper.with_required_attributes(["AccountName", "ObjectID"])
            ['AccountName', 'ObjectID', 'DisplayName', 'ObjectType']
        """
        names = list(attribute_names)
        for name in REQUIRED_ATTRIBUTES:
            if name not in names:
                names.append(name)
        return names

    @staticmethod
    def resolve_reference(resolver: DirectoryClient, object_id: str) -> Dict[str, Any]:
        """Fetch the identifying fields of a referenced object.

        Resolution stops here: references held by the referenced object are
        never followed.
        """
        referenced = resolver.get_object(object_id, [DISPLAY_NAME])
        return {
            DISPLAY_NAME: referenced.display_name,
            OBJECT_ID: referenced.object_id,
            OBJECT_TYPE: referenced.object_type,
        }

    @classmethod
    def _reference_values(cls, value: AttributeValue, ids: List[Any],
                          resolver: Optional[DirectoryClient]) -> List[Any]:
        if resolver is not None and value.attribute_name != OBJECT_ID:
            return [cls.resolve_reference(resolver, ref) for ref in ids]
        return list(ids)

    @staticmethod
    def _validate(directory_object: Any, attribute_names: Any) -> None:
        if directory_object is None:
            raise ValidationError("resource object must be specified")
        if attribute_names is None:
            raise ValidationError("attributes to load must be specified")

    @staticmethod
    def _finish(result: Dict[str, Any], directory_object: DirectoryObject) -> GenericResource:
        # ObjectType is surfaced even when the traversal skipped it
        if not result.get(OBJECT_TYPE):
            result[OBJECT_TYPE] = directory_object.object_type
        return GenericResource(result)

    @classmethod
    def to_simple(
        cls,
        directory_object: DirectoryObject,
        attribute_names: Sequence[str],
        resolver: Optional[DirectoryClient] = None,
    ) -> GenericResource:
        """Convert a directory object to a plain generic resource.

        Args:
            directory_object: Object returned by the directory client
            attribute_names: Attributes to include (required ones are added)
            resolver: Client used to resolve references one level deep;
                references stay raw ids when omitted

        Returns:
            GenericResource with one entry per requested attribute present on the object

        Raises:
            ValidationError: If the object or the attribute list is missing
        """
        cls._validate(directory_object, attribute_names)

        result: Dict[str, Any] = {}
        for name in cls.with_required_attributes(attribute_names):
            value = directory_object.attributes.get(name)
            if value is None:
                continue

            if value.is_null:
                result[name] = None
            elif value.is_multivalued:
                if value.is_reference:
                    result[name] = cls._reference_values(value, list(value.values), resolver)
                else:
                    result[name] = list(value.values)
            elif value.is_reference:
                result[name] = cls._reference_values(value, [value.value], resolver)[0]
            else:
                result[name] = value.value

        return cls._finish(result, directory_object)

    @classmethod
    def to_full(
        cls,
        directory_object: DirectoryObject,
        attribute_names: Sequence[str],
        schema: Mapping[str, AttributeSchema],
        resolver: Optional[DirectoryClient] = None,
    ) -> GenericResource:
        """Convert a directory object to a schema-annotated generic resource.

        Each attribute becomes an AttributeSchema record carrying display
        metadata, constraints, the permission hint of the value, the first
        value (``Value``) and all values (``Values``). Attributes present on
        the object but missing from ``schema`` are left out.

        Raises:
            ValidationError: If the object or the attribute list is missing
        """
        cls._validate(directory_object, attribute_names)
        if schema is None:
            raise ValidationError("schema must be specified")

        result: Dict[str, Any] = {}
        for name in cls.with_required_attributes(attribute_names):
            value = directory_object.attributes.get(name)
            attribute_schema = schema.get(name)
            if value is None or attribute_schema is None:
                continue

            if value.is_null:
                values = None
            elif value.is_reference:
                ids = list(value.values) if value.is_multivalued else [value.value]
                values = cls._reference_values(value, ids, resolver)
            else:
                values = list(value.values) if value.is_multivalued else [value.value]

            annotated = replace(
                attribute_schema,
                permission_hint=str(value.permission_hint or "Unknown"),
                value=values[0] if values else None,
                values=values,
            )
            result[name] = annotated.to_dict()

        return cls._finish(result, directory_object)

    @staticmethod
    def apply_to(resource: Mapping[str, Any], directory_object: DirectoryObject) -> None:
        """Write generic attributes onto a directory object.

        ObjectID and ObjectType are assigned by the directory and skipped.
        Values are assigned as-is; conversion to the native attribute type is
        left to the directory client.

        Raises:
            ValidationError: If the resource or the object is missing
            SchemaError: If an attribute is not declared by the object's type
        """
        if resource is None:
            raise ValidationError("resource must be specified")
        if directory_object is None:
            raise ValidationError("resource object must be specified")

        for name, value in resource.items():
            if name in READ_ONLY_ATTRIBUTES:
                continue
            if name not in directory_object.attributes:
                raise SchemaError(f"invalid attribute: {name}")
            directory_object.set_value(name, value)
