"""Connection string parsing.

A connection string is a semicolon-delimited list of ``key:value`` entries::

    baseaddress://directory:5725;domain:CORP;username:svc-portal;password:<encrypted>

The password stays encrypted here; the repository decrypts it right before
connecting.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional


@dataclass
class ConnectionInfo:
    """Structured view of a connection string."""
    base_address: str = ""
    domain: str = ""
    username: str = ""
    password: str = ""
    encryption_key: str = ""

    @property
    def has_credentials(self) -> bool:
        return bool(self.domain and self.username and self.password)

    @classmethod
    def parse(cls, connection: Optional[str], encryption_key: str = "") -> Optional["ConnectionInfo"]:
        """Parse a connection string.

        Args:
            connection: Semicolon-delimited ``key:value`` entries
            encryption_key: Key used to decrypt the password later on

        Returns:
            ConnectionInfo, or None if the string is empty

        Example:
            >>> info = ConnectionInfo.parse("baseaddress://mim:5725;username:alice")
            >>> info.base_address
            'http://mim:5725'
        """
        if not connection or not connection.strip():
            return None

        info = cls(encryption_key=encryption_key or "")

        for entry in connection.split(";"):
            key, sep, value = entry.strip().partition(":")
            if not sep:
                continue

            key = key.strip().lower()
            value = value.strip()

            if key == "baseaddress":
                info.base_address = _normalize_base_address(value)
            elif key == "domain":
                info.domain = value
            elif key == "username":
                info.username = value
            elif key == "password":
                info.password = value

        return info


def _normalize_base_address(value: str) -> str:
    """Prefix scheme-less ``//host`` addresses with ``http:``."""
    if value.startswith("//"):
        return f"http:{value}"
    return value
