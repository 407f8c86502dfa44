"""Provider routing configuration for the AI gateway."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List

import yaml
from pydantic import BaseModel, Field, model_validator


class ProviderRoute(BaseModel):
    """OpenAI-compatible chat endpoint configuration."""

    name: str
    base_url: str
    endpoint: str = "/chat/completions"
    model: str
    timeout_s: float | None = Field(default=None, ge=0.1)
    api_key_env: str | None = None
    languages: List[str] = Field(default_factory=list)
    domain_prompts: bool = False
    extra_headers: Dict[str, str] = Field(default_factory=dict)


class ProvidersConfig(BaseModel):
    """Provider routes plus their priority order."""

    routes: Dict[str, ProviderRoute] = Field(default_factory=dict)
    priority: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_priority(self) -> "ProvidersConfig":
        if not self.priority:
            self.priority = list(self.routes)
        missing = [name for name in self.priority if name not in self.routes]
        if missing:
            raise ValueError(f"Priority names unknown providers: {', '.join(missing)}")
        return self


def load_providers(path: Path) -> ProvidersConfig:
    """Load provider routes from a YAML or JSON file."""

    data = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        return ProvidersConfig.model_validate(yaml.safe_load(data) or {})
    return ProvidersConfig.model_validate_json(data)


__all__ = ["ProviderRoute", "ProvidersConfig", "load_providers"]
