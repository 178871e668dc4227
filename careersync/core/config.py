"""Configuration models and YAML loader."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from careersync.core.schemas import DatePostedFilter


class StorageConfig(BaseModel):
    """Where the persistent store lives."""

    path: str = "data/careersync.db"


class LLMConfig(BaseModel):
    """Analysis service provider and model selection."""

    provider: str = "gemini"
    fast_model: str | None = None
    pro_model: str | None = None
    base_url: str | None = None
    web_search: bool = True

    @field_validator("provider")
    @classmethod
    def provider_lowercase(cls, v: str) -> str:
        v = v.lower().strip()
        if not v:
            msg = "provider must not be empty"
            raise ValueError(msg)
        return v


class ResultsConfig(BaseModel):
    """Default result filters."""

    min_match: int = Field(default=70, ge=70, le=100)
    date_posted: DatePostedFilter = DatePostedFilter.ANY

    @field_validator("min_match")
    @classmethod
    def min_match_step(cls, v: int) -> int:
        if v % 5:
            msg = f"min_match must be a multiple of 5, got {v}"
            raise ValueError(msg)
        return v


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    results: ResultsConfig = Field(default_factory=ResultsConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
