"""Query execution with paging and sorting."""
from __future__ import annotations
import logging
from typing import Dict, List, Mapping, Optional, Sequence

from .directory.client import DirectoryClient, SortingAttribute
from .exceptions import ValidationError
from .resource import ResultSet
from .resource_mapper import ResourceMapper

logger = logging.getLogger(__name__)

ASCENDING = {"asc", "ascending"}


def build_sorting_attributes(sort: Optional[Mapping[str, str]]) -> List[SortingAttribute]:
    """Turn ``{"DisplayName": "asc", ...}`` into sorting attributes.

    "asc" and "ascending" (any case) sort ascending, any other direction
    sorts descending.
    """
    if not sort:
        return []
    return [
        SortingAttribute(attribute_name=name, ascending=str(direction).strip().lower() in ASCENDING)
        for name, direction in sort.items()
    ]


def parse_order_by(order_by: Optional[str]) -> Dict[str, str]:
    """Parse an ``Attr:direction,Attr:direction`` expression.

    Raises:
        ValidationError: If an entry is not exactly ``name:direction``
    """
    result: Dict[str, str] = {}
    if not order_by:
        return result

    for entry in order_by.split(","):
        entry = entry.strip()
        if not entry:
            continue
        parts = [part.strip() for part in entry.split(":") if part.strip()]
        if len(parts) != 2:
            raise ValidationError("invalid sorting attributes")
        result[parts[0]] = parts[1]
    return result


class QueryOrchestrator:
    """Runs directory queries and assembles result sets."""

    def __init__(self, mapper: Optional[ResourceMapper] = None):
        self.mapper = mapper or ResourceMapper()

    def execute(
        self,
        client: DirectoryClient,
        query: str,
        attribute_names: Optional[Sequence[str]] = None,
        page_size: int = 0,
        start_index: int = 0,
        resolver: Optional[DirectoryClient] = None,
        sort: Optional[Mapping[str, str]] = None,
    ) -> ResultSet:
        """Execute ``query`` and map every hit to a simple generic resource.

        Args:
            client: Live directory client
            query: XPath-like directory query
            attribute_names: Attributes to load; only the required ones when omitted
            page_size: 0 fetches the whole set, a positive size fetches one page
            start_index: Position to seek the page cursor to (ignored when negative)
            resolver: Client used to resolve references, or None to keep raw ids
            sort: Attribute name to direction

        Returns:
            ResultSet with totalCount/hasMoreItems and the mapped resources

        Raises:
            ValidationError: On an empty query, a negative page size, or a sort
                attribute that is not among the requested attributes
        """
        if not query:
            raise ValidationError("query must be specified")
        if page_size is None or page_size < 0:
            raise ValidationError("page size must not be negative")

        attributes = list(attribute_names) if attribute_names else None
        sorting = build_sorting_attributes(sort)
        for sorting_attribute in sorting:
            if not attributes or sorting_attribute.attribute_name not in attributes:
                raise ValidationError("loading attributes don't include sorting attributes")

        result = ResultSet()
        names = attributes or []

        if page_size == 0:
            found = client.get_objects(query, attributes, sorting or None)
            result.total_count = len(found)
            result.results = [self.mapper.to_simple(obj, names, resolver) for obj in found]
        else:
            pager = client.get_objects_paged(query, page_size, attributes, sorting or None)
            if start_index is not None and start_index >= 0:
                pager.current_index = start_index
            pager.page_size = page_size

            result.results = [self.mapper.to_simple(obj, names, resolver) for obj in pager.get_next_page()]
            result.total_count = pager.total_count
            result.has_more_items = pager.has_more_items

        logger.debug(
            f"Query returned {len(result.results)} of {result.total_count} item(s) "
            f"(page_size={page_size}, start_index={start_index})"
        )
        return result
