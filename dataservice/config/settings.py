"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                print(f"[settings] ✓ Loaded {secret_name} from /run/secrets")
                return secret_value
        except OSError as e:
            print(f"[settings] ✗ Failed to read /run/secrets/{secret_name}: {e}")

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            print(f"[settings] ✓ Loaded {env_var} from environment (fallback)")
            return secret_value

    return None


def _get_int(var_name: str, default: int) -> int:
    """Read an integer environment variable."""
    raw = os.environ.get(var_name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable {var_name} must be an integer, got '{raw}'.")


@dataclass
class AppConfig:
    """Application configuration container."""
    # Connection strings
    encryption_key: str = ""

    # Session cache
    session_ttl_minutes: int = 60
    session_max_entries: int = 10000

    # Directory
    directory_connector: str = ""
    default_culture: str = "en-US"

    # General
    version: str = "0.0.0"


def load_settings() -> AppConfig:
    """Load application settings from environment and /run/secrets."""
    encryption_key = _load_secret_from_file("dataservice_encryption_key", "DATASERVICE_ENCRYPTION_KEY") or ""
    if not encryption_key:
        print("[settings] WARNING: No DATASERVICE_ENCRYPTION_KEY; connection strings with passwords will be rejected")

    session_ttl_minutes = _get_int("SESSION_TTL_MINUTES", 60)
    session_max_entries = _get_int("SESSION_MAX_ENTRIES", 10000)

    directory_connector = os.environ.get("DIRECTORY_CONNECTOR", "").strip()
    default_culture = os.environ.get("DEFAULT_CULTURE", "en-US").strip() or "en-US"
    version = os.environ.get("DATASERVICE_VERSION", "0.0.0").strip() or "0.0.0"

    print(
        f"[settings] session_ttl={session_ttl_minutes}m; culture={default_culture}; "
        f"connector={directory_connector or 'NOT SET'}"
    )

    return AppConfig(
        encryption_key=encryption_key,
        session_ttl_minutes=session_ttl_minutes,
        session_max_entries=session_max_entries,
        directory_connector=directory_connector,
        default_culture=default_culture,
        version=version,
    )
