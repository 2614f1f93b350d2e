"""Configuration management for vertex-setup.

Settings come only from the environment (prefix ``VERTEX_SETUP_``), optionally
seeded from a ``.env`` file in the working directory.
"""

import logging
import os
import sys
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.models import DEFAULT_MODEL_ID

logger = logging.getLogger(__name__)

DEFAULT_PROMPT = (
    "What is Vertex AI? Answer in two sentences and mention one recent "
    "announcement."
)

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Runtime settings for one setup run."""

    model_config = SettingsConfigDict(env_prefix="VERTEX_SETUP_", case_sensitive=False)

    region: str = Field("us-central1", description="Vertex AI location for models and the probe")
    model_id: str = Field(DEFAULT_MODEL_ID, description="Publisher model used by the API probe")
    prompt: str = Field(DEFAULT_PROMPT, description="Prompt sent by the API probe")
    use_search_grounding: bool = Field(True, description="Attach the Google Search tool to the probe")
    http_timeout: float = Field(30.0, description="Client-side timeout for the probe, in seconds")
    log_level: str = Field("WARNING", description="Root logging level")
    interactive: Optional[bool] = Field(None, description="Ask before acting; defaults to stdin being a TTY")
    gcloud_path: str = Field("gcloud", description="Name or path of the gcloud executable")

    @field_validator("region", "model_id", "prompt", "gcloud_path")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject empty strings."""
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("http_timeout")
    @classmethod
    def validate_http_timeout(cls, v: float) -> float:
        """Keep the probe timeout bounded."""
        if v < 1.0:
            raise ValueError("http_timeout must be at least 1 second")
        if v > 120.0:
            raise ValueError("http_timeout must not exceed 120 seconds")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {VALID_LOG_LEVELS}, got: {v}")
        return level

    @property
    def is_interactive(self) -> bool:
        if self.interactive is not None:
            return self.interactive
        return sys.stdin.isatty()


def load_env_file(path: Path | None = None) -> Optional[Path]:
    """
    Load a ``.env`` file into the process environment if it exists.

    Variables already set in the environment win over the file.

    Returns:
        The path that was loaded, or None.
    """
    env_path = path or Path.cwd() / ".env"
    if not env_path.is_file():
        return None
    load_dotenv(env_path, override=False)
    logger.info("Loaded environment variables from %s", env_path)
    return env_path


def load_settings(env_file: Path | None = None) -> Settings:
    """Load ``.env`` (if present) and build settings from the environment."""
    load_env_file(env_file)
    return Settings()


def environment_snapshot(environ: Mapping[str, str] | None = None) -> Mapping[str, str]:
    """Return a read-only copy of the process environment."""
    return MappingProxyType(dict(os.environ if environ is None else environ))
