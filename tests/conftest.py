"""Pytest shared fixtures: in-memory directory client, clock and wiring."""
import copy
import pathlib
import re
import sys
import uuid

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
from cryptography.fernet import Fernet

from dataservice.config import AppConfig
from dataservice.core.cryptograph import FernetCryptograph
from dataservice.core.directory import (
    AuthorizationRequiredError,
    DirectoryClientError,
    ObjectNotFoundError,
)
from dataservice.core.repository import ResourceRepository
from dataservice.core.schema import SchemaCache
from dataservice.core.session_cache import SessionCache


# ─────────────────────────────────────────────────────────────────────────────
# Fake Clock
# ─────────────────────────────────────────────────────────────────────────────
class FakeClock:
    """Manually advanced clock in seconds."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, minutes: float = 0, seconds: float = 0) -> None:
        self.now += minutes * 60 + seconds


# ─────────────────────────────────────────────────────────────────────────────
# Fake Directory
# ─────────────────────────────────────────────────────────────────────────────
class FakeAttributeValue:
    def __init__(self, attribute_name, values=None, multivalued=False, reference=False,
                 permission_hint="ReadWrite"):
        self.attribute_name = attribute_name
        self.values = list(values or [])
        self.is_multivalued = multivalued
        self.is_reference = reference
        self.permission_hint = permission_hint

    @property
    def is_null(self):
        return not self.values

    @property
    def value(self):
        return self.values[0] if self.values else None


class FakeDirectoryObject:
    def __init__(self, object_type, object_id=None, attributes=None):
        self.object_type = object_type
        self.object_id = object_id
        self.attributes = dict(attributes or {})

    @property
    def display_name(self):
        slot = self.attributes.get("DisplayName")
        return slot.value if slot else None

    def set_value(self, attribute_name, value):
        slot = self.attributes[attribute_name]
        if value is None:
            slot.values = []
        elif isinstance(value, (list, tuple)):
            slot.values = list(value)
        else:
            slot.values = [value]

    def add_value(self, attribute_name, value):
        self.attributes[attribute_name].values.append(value)

    def remove_value(self, attribute_name, value):
        slot = self.attributes[attribute_name]
        slot.values = [existing for existing in slot.values if existing != value]


class FakePager:
    def __init__(self, results, page_size):
        self._results = results
        self.current_index = 0
        self.page_size = page_size
        self.total_count = len(results)
        self.has_more_items = bool(results)

    def get_next_page(self):
        page = self._results[self.current_index:self.current_index + self.page_size]
        self.current_index += len(page)
        self.has_more_items = self.current_index < self.total_count
        return page


def _record(object_type, object_id, fields):
    attributes = {
        name: FakeAttributeValue(name, [] if value is None else [value])
        for name, value in fields.items()
    }
    attributes["ObjectID"] = FakeAttributeValue("ObjectID", [object_id], reference=True)
    return FakeDirectoryObject(object_type, object_id, attributes)


STANDARD_ATTRIBUTES = {
    "DisplayName": {"data_type": "String"},
    "ObjectID": {"data_type": "Reference"},
    "ObjectType": {"data_type": "String"},
}

SCHEMA_QUERY = re.compile(
    r"^/BindingDescription\[BoundObjectType=/ObjectTypeDescription\[Name='([^']*)'\]\](/BoundAttributeType)?$"
)
OBJECT_QUERY = re.compile(r"^/(\w+)(?:\[(\w+)='([^']*)'\])?$")


class FakeDirectoryClient:
    """In-memory directory implementing the DirectoryClient protocol."""

    def __init__(self):
        self.types = {}
        self.objects = {}
        self.bindings = {}
        self.attribute_types = {}
        self.calls = []
        self.require_authorization = None
        self.schema_refreshes = 0
        self.approvals = []
        # optional threading.Barrier every binding query waits on
        self.schema_barrier = None

    # Setup helpers -----------------------------------------------------------
    def define_type(self, type_name, attributes):
        """Declare a type; ``attributes`` maps name -> spec dict.

        Spec keys: data_type, multivalued, required, attribute (overrides of the
        attribute type record), binding (overrides of the binding record).
        """
        declared = dict(STANDARD_ATTRIBUTES)
        declared.update(attributes)
        self.types[type_name] = {}
        self.bindings[type_name] = []

        for name, spec in declared.items():
            data_type = spec.get("data_type", "String")
            multivalued = spec.get("multivalued", False)
            self.types[type_name][name] = (multivalued, data_type == "Reference")

            attr_id = f"attr-{name.lower()}"
            if attr_id not in self.attribute_types:
                fields = {
                    "DisplayName": name,
                    "Description": None,
                    "Name": name,
                    "DataType": data_type,
                    "Multivalued": multivalued,
                    "StringRegex": None,
                    "IntegerMinimum": None,
                    "IntegerMaximum": None,
                }
                fields.update(spec.get("attribute", {}))
                self.attribute_types[attr_id] = _record("AttributeTypeDescription", attr_id, fields)

            binding = {
                "DisplayName": None,
                "Description": None,
                "BoundAttributeType": attr_id.upper(),
                "Required": spec.get("required", False),
                "StringRegex": None,
                "IntegerMinimum": None,
                "IntegerMaximum": None,
            }
            binding.update(spec.get("binding", {}))
            binding_id = f"binding-{type_name.lower()}-{name.lower()}"
            self.bindings[type_name].append(_record("BindingDescription", binding_id, binding))

    def new_object(self, object_type, object_id=None):
        slots = {
            name: FakeAttributeValue(name, multivalued=multivalued, reference=reference,
                                     permission_hint="ReadOnly" if name in ("ObjectID", "ObjectType") else "ReadWrite")
            for name, (multivalued, reference) in self.types[object_type].items()
        }
        obj = FakeDirectoryObject(object_type, object_id, slots)
        obj.set_value("ObjectType", object_type)
        if object_id:
            obj.set_value("ObjectID", object_id)
        return obj

    def add_object(self, object_type, object_id=None, **values):
        object_id = object_id or str(uuid.uuid4())
        obj = self.new_object(object_type, object_id)
        for name, value in values.items():
            obj.set_value(name, value)
        self.objects[object_id] = obj
        return object_id

    # DirectoryClient protocol --------------------------------------------------
    def refresh_schema(self):
        self.schema_refreshes += 1

    def get_object(self, object_id, attributes, include_permission=False):
        self.calls.append(("get_object", object_id, list(attributes), include_permission))
        if object_id not in self.objects:
            raise ObjectNotFoundError(f"object {object_id} was not found")
        return copy.deepcopy(self.objects[object_id])

    def get_object_by_key(self, object_type, attribute_name, value, attributes=None):
        self.calls.append(("get_object_by_key", object_type, attribute_name, value))
        for obj in self.objects.values():
            slot = obj.attributes.get(attribute_name)
            if obj.object_type == object_type and slot is not None and value in slot.values:
                return copy.deepcopy(obj)
        return None

    def _search(self, query, sort=None):
        match = OBJECT_QUERY.match(query)
        if not match:
            raise DirectoryClientError(f"invalid query: {query}")
        object_type, attribute_name, value = match.groups()
        found = []
        for obj in self.objects.values():
            if obj.object_type != object_type:
                continue
            if attribute_name:
                slot = obj.attributes.get(attribute_name)
                if slot is None or value not in [str(v) for v in slot.values]:
                    continue
            found.append(obj)
        for sorting in reversed(list(sort or [])):
            found.sort(
                key=lambda o, name=sorting.attribute_name: str(o.attributes[name].value or ""),
                reverse=not sorting.ascending,
            )
        return found

    def get_objects(self, query, attributes=None, sort=None, culture=None):
        self.calls.append(("get_objects", query, attributes, sort, culture))
        schema_match = SCHEMA_QUERY.match(query)
        if schema_match:
            type_name, bound_attribute_types = schema_match.groups()
            if self.schema_barrier is not None and not bound_attribute_types:
                self.schema_barrier.wait(timeout=5)
            bindings = self.bindings.get(type_name, [])
            if not bound_attribute_types:
                return list(bindings)
            ids = {b.attributes["BoundAttributeType"].value.lower() for b in bindings}
            return [record for key, record in self.attribute_types.items() if key in ids]
        return self._search(query, sort)

    def get_objects_paged(self, query, page_size, attributes=None, sort=None):
        self.calls.append(("get_objects_paged", query, page_size, attributes, sort))
        return FakePager(self._search(query, sort), page_size)

    def get_object_count(self, query):
        self.calls.append(("get_object_count", query))
        return len(self._search(query))

    def create_object(self, object_type):
        self.calls.append(("create_object", object_type))
        if object_type not in self.types:
            raise DirectoryClientError(f"unknown object type {object_type}")
        return self.new_object(object_type)

    def save(self, directory_object):
        self.calls.append(("save", directory_object.object_id))
        if self.require_authorization:
            raise AuthorizationRequiredError(self.require_authorization)
        if not directory_object.object_id:
            directory_object.object_id = str(uuid.uuid4())
            directory_object.set_value("ObjectID", directory_object.object_id)
        self.objects[directory_object.object_id] = copy.deepcopy(directory_object)

    def delete_object(self, object_id):
        self.calls.append(("delete_object", object_id))
        if object_id not in self.objects:
            raise ObjectNotFoundError(f"object {object_id} was not found")
        del self.objects[object_id]

    def approve(self, request, approve, reason=None):
        self.calls.append(("approve", request.object_id, approve, reason))
        if self.require_authorization:
            raise AuthorizationRequiredError(self.require_authorization)
        self.approvals.append((request.object_id, approve, reason))


def build_directory():
    directory = FakeDirectoryClient()
    directory.define_type("Person", {
        "AccountName": {
            "required": True,
            "attribute": {"Description": "Logon name", "StringRegex": "^[a-z0-9._-]+$"},
            "binding": {"DisplayName": "Account Name"},
        },
        "FirstName": {"attribute": {"DisplayName": "First Name"}},
        "EmployeeID": {
            "data_type": "Integer",
            "attribute": {"IntegerMinimum": 0, "IntegerMaximum": 999999},
            "binding": {"IntegerMaximum": 5000, "Description": "Badge number"},
        },
        "Manager": {"data_type": "Reference"},
        "ProxyAddresses": {"multivalued": True},
    })
    directory.define_type("Group", {
        "ExplicitMember": {"data_type": "Reference", "multivalued": True},
    })
    directory.define_type("Approval", {
        "Request": {"data_type": "Reference"},
    })
    return directory


# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def directory():
    return build_directory()


@pytest.fixture()
def make_directory():
    """Factory for empty fake directories (custom schema scenarios)."""
    return FakeDirectoryClient


@pytest.fixture()
def make_object():
    """Factory for standalone directory objects: make_object(type, id, {name: FakeAttributeValue})."""
    return FakeDirectoryObject


@pytest.fixture()
def make_value():
    return FakeAttributeValue


@pytest.fixture()
def connector(directory):
    """Connector returning the shared fake directory and recording its arguments."""
    calls = []

    def _connect(base_address, credentials):
        calls.append((base_address, credentials))
        return directory

    _connect.calls = calls
    return _connect


@pytest.fixture()
def sessions(clock):
    return SessionCache(ttl_minutes=60, timer=clock)


@pytest.fixture()
def schemas(sessions):
    return SchemaCache(sessions)


@pytest.fixture()
def fernet_key():
    return Fernet.generate_key().decode()


@pytest.fixture()
def repository(sessions, schemas, connector, fernet_key):
    return ResourceRepository(
        sessions=sessions,
        schemas=schemas,
        cryptograph=FernetCryptograph(default_key=fernet_key),
        connector=connector,
        encryption_key=fernet_key,
    )


@pytest.fixture()
def token(repository):
    return repository.initialize()


@pytest.fixture()
def app_config(fernet_key):
    return AppConfig(
        encryption_key=fernet_key,
        session_ttl_minutes=60,
        session_max_entries=100,
        directory_connector="",
        default_culture="en-US",
        version="1.2.3",
    )


@pytest.fixture()
def app(app_config, repository):
    from dataservice.flask_app import create_app

    flask_app = create_app(cfg=app_config, repository=repository)
    flask_app.config.update(TESTING=True)
    return flask_app


@pytest.fixture()
def client(app):
    with app.test_client() as client:
        yield client
