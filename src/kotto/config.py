from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {
        "env_prefix": "KOTTO_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    llm_api_key: str = ""
    llm_base_url: str = "https://api.openai.com/v1"
    llm_model: str = "gpt-4o-mini"

    # Agent loop settings
    max_retries: int = 5
    allow_exit: bool = True

    # "trace" or "quiet"
    log_level: str = "quiet"

    # Where `kotto build` writes the declaration index, relative to the source
    index_dir: str = ".kotto"


settings = Settings()


@dataclass
class ModelConfig:
    model: str = ""
    temperature: float | None = None
    max_tokens: int | None = None
    base_url: str = ""


_models_config_cache: dict | None = None


def _load_models_yaml() -> dict:
    global _models_config_cache
    if _models_config_cache is not None:
        return _models_config_cache

    config_path = os.environ.get("KOTTO_MODELS_CONFIG", "models.yaml")
    path = Path(config_path)
    if not path.is_file():
        _models_config_cache = {}
        return _models_config_cache

    import yaml

    with open(path) as f:
        _models_config_cache = yaml.safe_load(f) or {}
    return _models_config_cache


def get_model_config(agent_name: str = "") -> ModelConfig:
    """Model settings for an agent class.

    ``models.yaml`` looks like::

        default:
          model: gpt-4o-mini
          temperature: 0.0
        agents:
          Calculator:
            model: gpt-4o

    Without the file, the ``KOTTO_LLM_*`` settings are used.
    """
    data = _load_models_yaml()
    config = ModelConfig(model=settings.llm_model, base_url=settings.llm_base_url)
    if not data:
        return config

    sections = [data.get("default") or {}]
    if agent_name:
        sections.append((data.get("agents") or {}).get(agent_name) or {})

    known = {f.name for f in fields(ModelConfig)}
    for section in sections:
        config = replace(config, **{k: v for k, v in section.items() if k in known})
    return config
