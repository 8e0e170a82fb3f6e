"""Configuration module for the directory data service."""
from .settings import AppConfig, load_settings

__all__ = ["AppConfig", "load_settings"]
