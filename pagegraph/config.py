"""Application configuration from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    pagegraph_env: str = "development"
    pagegraph_log_level: str = "info"

    # Defaults for the stock SemanticHelper
    pagegraph_use_real_connections: bool = True
    pagegraph_text_search_radius: float = 0.5

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
