"""Directory client interface.

Architecture:
- client.py: protocols of the client, its objects and pagers, plus connector loading
- exceptions.py: exceptions a client implementation raises

Usage:
    from dataservice.core.directory import load_connector

    connector = load_connector("mycompany.directory:connect")
    client = connector("http://directory:5725", None)
"""
from .client import (
    AttributeValue,
    Connector,
    Credentials,
    DirectoryClient,
    DirectoryObject,
    SearchPager,
    SortingAttribute,
    load_connector,
)
from .exceptions import (
    DirectoryClientError,
    AuthorizationRequiredError,
    ObjectNotFoundError,
)

__all__ = [
    # Client
    "AttributeValue",
    "Connector",
    "Credentials",
    "DirectoryClient",
    "DirectoryObject",
    "SearchPager",
    "SortingAttribute",
    "load_connector",

    # Exceptions
    "DirectoryClientError",
    "AuthorizationRequiredError",
    "ObjectNotFoundError",
]
