"""Configuration for vertex-setup."""

from .settings import Settings, environment_snapshot, load_env_file, load_settings

__all__ = ["Settings", "environment_snapshot", "load_env_file", "load_settings"]
