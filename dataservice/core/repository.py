"""
Resource Repository: Unified Directory Access

This module composes the session cache, the schema cache, the resource
mapper and the query orchestrator into the operations exposed to callers
(HTTP API, scripts). Every operation except ``initialize`` takes a session
token and fails with SessionNotFoundError once the token is unknown or
expired; callers react by initializing again.

Architecture:
    HTTP API (/api/resources/*) ──> repository.py ──┬──> SessionCache ──> DirectoryClient
                                                    ├──> SchemaCache
                                                    ├──> ResourceMapper
                                                    └──> QueryOrchestrator
"""
from __future__ import annotations
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Mapping, Optional, Sequence

from .connection import ConnectionInfo
from .cryptograph import FernetCryptograph
from .directory.client import Connector, Credentials, DirectoryClient
from .directory.exceptions import AuthorizationRequiredError, DirectoryClientError
from .exceptions import (
    AuthorizationPendingError,
    DirectoryError,
    SchemaError,
    ValidationError,
)
from .query import QueryOrchestrator
from .resource import GenericResource, ResultSet
from .resource_mapper import ResourceMapper
from .schema import SchemaCache
from .session_cache import SessionCache

logger = logging.getLogger(__name__)

DEFAULT_CULTURE = "en-US"
DEFAULT_ATTRIBUTES = ["DisplayName"]


@contextmanager
def directory_errors() -> Iterator[None]:
    """Translate directory client failures into data service errors."""
    try:
        yield
    except AuthorizationRequiredError as exc:
        logger.warning(f"Directory deferred the change pending approval: {exc}")
        raise AuthorizationPendingError(str(exc) or None) from exc
    except DirectoryClientError as exc:
        raise DirectoryError(str(exc) or exc.__class__.__name__) from exc


def _require(value: Any, message: str) -> None:
    if not value:
        raise ValidationError(message)


def _as_resource(resource: Optional[Mapping[str, Any]]) -> GenericResource:
    if resource is None:
        raise ValidationError("resource must be specified")
    if isinstance(resource, GenericResource):
        return resource
    return GenericResource(resource)


class ResourceRepository:
    """Token-addressed access to directory resources.

    Usage:
        sessions = SessionCache(ttl_minutes=60)
        repo = ResourceRepository(sessions, SchemaCache(sessions), FernetCryptograph(key), connector)

        token = repo.initialize(connection="baseaddress://mim:5725;domain:CORP;username:svc;password:...")
        person = repo.get_resource_by_id(token, object_id, ["AccountName"])
    """

    def __init__(
        self,
        sessions: SessionCache,
        schemas: SchemaCache,
        cryptograph: FernetCryptograph,
        connector: Connector,
        encryption_key: str = "",
        mapper: Optional[ResourceMapper] = None,
        orchestrator: Optional[QueryOrchestrator] = None,
    ):
        """Initialize repository.

        Args:
            sessions: Shared session cache
            schemas: Shared schema cache
            cryptograph: Decrypts passwords found in connection strings
            connector: Factory ``connector(base_address, credentials)`` for directory clients
            encryption_key: Default key for connection string passwords
            mapper: Resource mapper (default: ResourceMapper)
            orchestrator: Query orchestrator (default: built on ``mapper``)
        """
        self.sessions = sessions
        self.schemas = schemas
        self.cryptograph = cryptograph
        self.connector = connector
        self.encryption_key = encryption_key
        self.mapper = mapper or ResourceMapper()
        self.orchestrator = orchestrator or QueryOrchestrator(self.mapper)

    # ─────────────────────────────────────────────────────────────────────────
    # Session lifecycle
    # ─────────────────────────────────────────────────────────────────────────

    def initialize(
        self,
        token: Optional[str] = None,
        connection: Optional[str] = None,
        encryption_key: Optional[str] = None,
    ) -> str:
        """Open a directory session, or reuse a live one.

        Args:
            token: Existing or desired token; a live token is returned unchanged
            connection: Connection string; ambient credentials are used when empty
            encryption_key: Key for the password in ``connection`` (default: configured key)

        Returns:
            Token addressing the session

        Raises:
            ValidationError: If the connection string lacks domain, username or password
            SessionConflictError: If another caller bound ``token`` meanwhile
            DirectoryError: If the directory client cannot be created
        """
        if token and self.sessions.contains(token):
            return token

        if connection and connection.strip():
            info = ConnectionInfo.parse(connection, encryption_key or self.encryption_key)
            if info is None or not info.has_credentials:
                raise ValidationError("invalid user")

            password = self.cryptograph.decrypt(info.password, info.encryption_key or None)
            credentials = Credentials(username=info.username, password=password, domain=info.domain)
            base_address = info.base_address or None
        else:
            credentials = None
            base_address = None

        with directory_errors():
            client = self.connector(base_address, credentials)
            client.refresh_schema()

        token = self.sessions.put(client, token)
        user = credentials.username if credentials else "<ambient>"
        logger.info(f"Directory session initialized for {user} at {base_address or '<default>'}")
        return token

    def _client(self, token: str) -> DirectoryClient:
        return self.sessions.get(token)

    # ─────────────────────────────────────────────────────────────────────────
    # Read operations
    # ─────────────────────────────────────────────────────────────────────────

    def get_resource_by_id(
        self,
        token: str,
        object_id: str,
        attributes: Optional[Sequence[str]] = None,
        culture: str = DEFAULT_CULTURE,
        include_permission: bool = False,
        resolve_ref: bool = False,
    ) -> GenericResource:
        """Get one resource.

        Args:
            token: Session token
            object_id: ObjectID of the resource
            attributes: Attributes to load (default: DisplayName)
            culture: Culture of the schema texts in the full view
            include_permission: Return the schema-annotated full view
            resolve_ref: Represent references as DisplayName/ObjectID/ObjectType records

        Raises:
            ValidationError: If ``object_id`` is empty
            SessionNotFoundError: If the token is not live
        """
        _require(object_id, "id must be specified")
        names = list(attributes) if attributes else list(DEFAULT_ATTRIBUTES)

        client = self._client(token)
        resolver = client if resolve_ref else None

        with directory_errors():
            directory_object = client.get_object(
                object_id, ResourceMapper.with_required_attributes(names), include_permission
            )

            if include_permission:
                schema = self.schemas.resolve(token, directory_object.object_type, culture or DEFAULT_CULTURE)
                return self.mapper.to_full(directory_object, names, schema, resolver)
            return self.mapper.to_simple(directory_object, names, resolver)

    def get_resource_by_query(
        self,
        token: str,
        query: str,
        attributes: Optional[Sequence[str]] = None,
        page_size: int = 0,
        index: int = 0,
        resolve_ref: bool = False,
        order_by: Optional[Mapping[str, str]] = None,
    ) -> ResultSet:
        """Search resources, optionally paged and sorted (see QueryOrchestrator.execute)."""
        _require(query, "query must be specified")
        client = self._client(token)

        with directory_errors():
            return self.orchestrator.execute(
                client,
                query,
                attributes,
                page_size=page_size,
                start_index=index,
                resolver=client if resolve_ref else None,
                sort=order_by,
            )

    def get_resource_count(self, token: str, query: str) -> int:
        _require(query, "query must be specified")
        client = self._client(token)
        with directory_errors():
            return client.get_object_count(query)

    def get_current_user(
        self,
        token: str,
        account_name: str,
        attributes: Optional[Sequence[str]] = None,
    ) -> GenericResource:
        """Get the Person whose AccountName is ``account_name``."""
        _require(account_name, "account name must be specified")
        names = list(attributes) if attributes else list(DEFAULT_ATTRIBUTES)
        client = self._client(token)

        with directory_errors():
            person = client.get_object_by_key(
                "Person", "AccountName", account_name, ResourceMapper.with_required_attributes(names)
            )
        if person is None:
            raise ValidationError(f"user with account name {account_name} was not found")

        return self.mapper.to_simple(person, names)

    def get_schema(self, token: str, type_name: str, culture: str = DEFAULT_CULTURE) -> Dict[str, Dict[str, Any]]:
        """Get the attribute schema of ``type_name`` as serializable records."""
        with directory_errors():
            schema = self.schemas.resolve(token, type_name, culture or DEFAULT_CULTURE)
        return {name: attribute.to_dict() for name, attribute in schema.items()}

    # ─────────────────────────────────────────────────────────────────────────
    # Write operations
    # ─────────────────────────────────────────────────────────────────────────

    def create_resource(self, token: str, resource: Mapping[str, Any]) -> str:
        """Create a resource and return its new ObjectID.

        Raises:
            ValidationError: If the resource is missing or has no ObjectType
            SchemaError: If an attribute is not declared by the type
            AuthorizationPendingError: If creation awaits approval
        """
        resource = _as_resource(resource)
        client = self._client(token)

        with directory_errors():
            directory_object = client.create_object(resource.object_type)
            self.mapper.apply_to(resource, directory_object)
            client.save(directory_object)

        logger.info(f"Created {resource.object_type} {directory_object.object_id}")
        return directory_object.object_id

    def update_resource(self, token: str, resource: Mapping[str, Any]) -> None:
        """Update the attributes of an existing resource (ObjectID required)."""
        resource = _as_resource(resource)
        _require(resource.object_id, "resource object id must be specified")
        client = self._client(token)

        with directory_errors():
            directory_object = client.get_object(resource.object_id, list(resource.keys()))
            self.mapper.apply_to(resource, directory_object)
            client.save(directory_object)

        logger.info(f"Updated {resource.object_type} {resource.object_id}")

    def delete_resource(self, token: str, object_id: str) -> None:
        _require(object_id, "id must be specified")
        client = self._client(token)
        with directory_errors():
            client.delete_object(object_id)
        logger.info(f"Deleted {object_id}")

    def add_values_to_resource(self, token: str, object_id: str, attribute_name: str,
                               values_to_add: Sequence[Any]) -> None:
        """Add values to a multivalued attribute."""
        self._change_values(token, object_id, attribute_name, values_to_add, remove=False)

    def remove_values_from_resource(self, token: str, object_id: str, attribute_name: str,
                                    values_to_remove: Sequence[Any]) -> None:
        """Remove values from a multivalued attribute."""
        self._change_values(token, object_id, attribute_name, values_to_remove, remove=True)

    def _change_values(self, token: str, object_id: str, attribute_name: str,
                       values: Sequence[Any], remove: bool) -> None:
        _require(object_id, "id must be specified")
        _require(attribute_name, "attribute name must be specified")
        _require(values, "values must be specified")
        client = self._client(token)

        with directory_errors():
            directory_object = client.get_object(object_id, [attribute_name])
            if attribute_name not in directory_object.attributes:
                raise SchemaError(f"invalid attribute: {attribute_name}")

            for value in values:
                if remove:
                    directory_object.remove_value(attribute_name, value)
                else:
                    directory_object.add_value(attribute_name, value)
            client.save(directory_object)

    def approve(self, token: str, object_id: str, approve: bool, reason: Optional[str] = None) -> None:
        """Approve or reject the approval attached to request ``object_id``."""
        _require(object_id, "id must be specified")
        client = self._client(token)

        with directory_errors():
            approval = client.get_object_by_key("Approval", "Request", object_id)
            if approval is None:
                raise ValidationError(f"{object_id} is not a request")
            client.approve(approval, approve, reason)

        logger.info(f"Request {object_id} {'approved' if approve else 'rejected'}")
