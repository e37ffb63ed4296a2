"""Configuration module for the Marknest document service."""

from .settings import get_settings, Settings, RetentionConfig, VersioningConfig

__all__ = ["get_settings", "Settings", "RetentionConfig", "VersioningConfig"]
