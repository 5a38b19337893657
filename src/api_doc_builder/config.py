"""Builder settings, loaded from ``API_DOC_*`` environment variables or a ``.env`` file."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

OutputFormat = Literal["auto", "json", "yaml"]

PROJECT_MARKERS = ("pyproject.toml", "setup.cfg", ".git")


def find_project_root(start: Path | None = None) -> Path:
    """Walk up from *start* (the working directory) to the first directory holding a project marker.

    Falls back to *start* itself when no marker is found.
    """
    start = (start or Path.cwd()).resolve()
    for directory in (start, *start.parents):
        if any((directory / marker).exists() for marker in PROJECT_MARKERS):
            return directory
    return start


class Settings(BaseSettings):
    """Document metadata and where the built document is written."""

    environment: str = "production"
    debug: bool = False

    title: str = "My API"
    version: str = "1.0.0"
    description: str | None = None
    openapi_version: str = "3.1.0"
    server_urls: list[str] = Field(default_factory=list)

    # Written on every build when running in development. A relative path is
    # anchored at root_dir, or at the discovered project root when unset.
    output_path: Path = Path("openapi.json")
    root_dir: Path | None = None
    output_format: OutputFormat = "auto"

    model_config = SettingsConfigDict(
        env_prefix="API_DOC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def persist_on_build(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def resolved_output_path(self) -> Path:
        if self.output_path.is_absolute():
            return self.output_path
        return (self.root_dir or find_project_root()) / self.output_path


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, read once."""
    return Settings()
