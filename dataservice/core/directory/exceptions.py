"""Exceptions a directory client implementation is expected to raise."""


class DirectoryClientError(Exception):
    """Base exception for all directory client operations."""
    pass


class AuthorizationRequiredError(DirectoryClientError):
    """The write was accepted but is waiting for an approval workflow."""
    pass


class ObjectNotFoundError(DirectoryClientError):
    """No object exists with the requested ObjectID."""
    pass
