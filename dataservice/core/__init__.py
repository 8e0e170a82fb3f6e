"""Core Business Logic Module

This module provides the directory data service logic, independent of the
HTTP framework.

Architecture:
    - Pure Python (no Flask dependencies in core logic)
    - Testable against an in-memory directory client
    - Reusable across different interfaces (HTTP API, scripts)

Module Structure:
    - directory/          : Interface of the remote directory client
    - connection.py       : Connection string parsing
    - cryptograph.py      : Password decryption (Fernet)
    - session_cache.py    : Token -> directory client cache with absolute TTL
    - schema.py           : Per-type, per-culture attribute schema cache
    - resource.py         : GenericResource / ResultSet
    - resource_mapper.py  : Directory object <-> generic resource
    - query.py            : Paged/sorted query execution
    - repository.py       : ResourceRepository facade
    - exceptions.py       : Error taxonomy

Usage Pattern:
    Import explicitly when needed:
        from dataservice.core.repository import ResourceRepository
        from dataservice.core.session_cache import SessionCache
        from dataservice.core.schema import SchemaCache
        from dataservice.core.exceptions import SessionNotFoundError
"""
