"""Interface of the remote directory client consumed by the core.

The directory connection itself (wire protocol, credential validation) lives
outside this package. A deployment plugs a concrete client in through a
*connector*: a callable ``connector(base_address, credentials)`` returning an
object that satisfies :class:`DirectoryClient`. The connector is named in
configuration as ``module:callable`` and loaded with :func:`load_connector`.
"""
from __future__ import annotations
import importlib
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Protocol, Sequence


@dataclass(frozen=True)
class Credentials:
    """Plaintext credentials handed to the connector."""
    username: str
    password: str
    domain: str


@dataclass(frozen=True)
class SortingAttribute:
    """One sort key of a directory query."""
    attribute_name: str
    ascending: bool = True


class AttributeValue(Protocol):
    """A single attribute slot of a directory object."""

    attribute_name: str
    is_null: bool
    is_multivalued: bool
    is_reference: bool
    value: Any
    values: List[Any]
    permission_hint: str


class DirectoryObject(Protocol):
    """A typed directory object.

    ``attributes`` holds every attribute the object's type declares, loaded
    or not; a name missing from it is unknown to the schema.
    """

    object_id: Optional[str]
    object_type: str
    display_name: Optional[str]
    attributes: Mapping[str, AttributeValue]

    def set_value(self, attribute_name: str, value: Any) -> None: ...

    def add_value(self, attribute_name: str, value: Any) -> None: ...

    def remove_value(self, attribute_name: str, value: Any) -> None: ...


class SearchPager(Protocol):
    """Paged cursor over a query result."""

    current_index: int
    page_size: int
    total_count: int
    has_more_items: bool

    def get_next_page(self) -> List[DirectoryObject]: ...


class DirectoryClient(Protocol):
    """Live connection to the directory store (a session handle).

    Implementations raise :class:`DirectoryClientError` subclasses;
    ``save`` and ``approve`` raise :class:`AuthorizationRequiredError` when
    the store defers the change behind an approval.
    """

    def get_object(self, object_id: str, attributes: Sequence[str],
                   include_permission: bool = False) -> DirectoryObject: ...

    def get_object_by_key(self, object_type: str, attribute_name: str, value: str,
                          attributes: Optional[Sequence[str]] = None) -> Optional[DirectoryObject]: ...

    def get_objects(self, query: str, attributes: Optional[Sequence[str]] = None,
                    sort: Optional[Sequence[SortingAttribute]] = None,
                    culture: Optional[str] = None) -> List[DirectoryObject]: ...

    def get_objects_paged(self, query: str, page_size: int,
                          attributes: Optional[Sequence[str]] = None,
                          sort: Optional[Sequence[SortingAttribute]] = None) -> SearchPager: ...

    def get_object_count(self, query: str) -> int: ...

    def create_object(self, object_type: str) -> DirectoryObject: ...

    def delete_object(self, object_id: str) -> None: ...

    def save(self, directory_object: DirectoryObject) -> None: ...

    def approve(self, request: DirectoryObject, approve: bool, reason: Optional[str] = None) -> None: ...

    def refresh_schema(self) -> None: ...


Connector = Callable[[Optional[str], Optional[Credentials]], DirectoryClient]


def load_connector(path: str) -> Connector:
    """Import a connector from a ``module:callable`` path.

    Args:
        path: Dotted module path and attribute name separated by a colon

    Returns:
        The connector callable

    Raises:
        ValueError: If the path is malformed or does not name a callable
    """
    module_name, sep, attr = (path or "").strip().partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Connector path must look like 'module:callable', got '{path}'")

    module = importlib.import_module(module_name)
    connector = getattr(module, attr, None)
    if not callable(connector):
        raise ValueError(f"Connector '{path}' is not callable")
    return connector
