from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Geodata enrichment collaborator (point-in-polygon lookups over the
    # municipal GIS layers)
    enrich_service_url: str = "http://localhost:3000/api/enrich"
    enrich_timeout_seconds: float = 15

    redis_url: str = "redis://localhost:6379"  # empty string disables caching
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
