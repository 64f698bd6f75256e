from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_EXTENSIONS = [".mp3", ".flac", ".ogg", ".wav", ".aac", ".m4a", ".wma", ".opus", ".ape"]


class LibrarySettings(BaseModel):
    include_extensions: List[str] = Field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    exclude_patterns: List[str] = Field(default_factory=list)

    @field_validator("include_extensions")
    @classmethod
    def _require_extensions(cls, values: List[str]) -> List[str]:
        if not values:
            raise ValueError("include_extensions must not be empty")
        return values


class CatalogSettings(BaseModel):
    base_url: str = "https://lrclib.net"
    user_agent: str = "lrcsync/0.1 (+https://github.com/lrcsync/lrcsync)"
    timeout_seconds: float = Field(default=15.0, gt=0)

    @field_validator("base_url")
    @classmethod
    def _strip_slash(cls, value: str) -> str:
        return value.rstrip("/")


class RunnerSettings(BaseModel):
    worker_concurrency: int = Field(default=64, ge=1)
    allow_plain: bool = False
    overwrite: bool = False


class Settings(BaseModel):
    library: LibrarySettings = LibrarySettings()
    catalog: CatalogSettings = CatalogSettings()
    runner: RunnerSettings = RunnerSettings()

    @classmethod
    def load(cls, path: Path) -> "Settings":
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
        return cls.model_validate(raw or {})


def find_config(explicit_path: Optional[Path]) -> Optional[Path]:
    if explicit_path:
        if not explicit_path.is_file():
            raise FileNotFoundError(f"Config file not found: {explicit_path}")
        return explicit_path
    cwd = Path.cwd()
    for candidate in (cwd / "config.yaml", cwd / "config.yml"):
        if candidate.exists():
            return candidate
    return None


def load_settings(explicit_path: Optional[Path]) -> Settings:
    path = find_config(explicit_path)
    if path is None:
        return Settings()
    return Settings.load(path)
