"""Portal configuration.

Loads configuration from environment variables (and a local .env file)
with defaults suitable for a demo run against the in-memory store.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

STORE_BACKENDS = ("memory", "file", "mongo")


@dataclass
class StoreConfig:
    """Persistent store selection."""

    backend: str = "memory"
    path: str = "data"  # file backend directory
    database_url: str | None = None
    database_name: str = "solar_portal"
    seed_demo_data: bool = True


@dataclass
class AppConfig:
    """Root application configuration."""

    store: StoreConfig = field(default_factory=StoreConfig)
    log_level: str = "INFO"
    json_logs: bool = False
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    port: int = 8000

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load configuration from environment variables.

        Raises:
            ValueError: If STORE_BACKEND is not a known backend
            KeyError: If the mongo backend is selected without DATABASE_URL
        """
        backend = os.getenv("STORE_BACKEND", "memory").lower()
        if backend not in STORE_BACKENDS:
            raise ValueError(
                f"STORE_BACKEND must be one of {', '.join(STORE_BACKENDS)}, got {backend!r}"
            )

        database_url = os.getenv("DATABASE_URL")
        if backend == "mongo" and not database_url:
            raise KeyError(
                "DATABASE_URL environment variable is required for the mongo store. "
                "Example: mongodb://localhost:27017"
            )

        origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

        return cls(
            store=StoreConfig(
                backend=backend,
                path=os.getenv("STORE_PATH", "data"),
                database_url=database_url,
                database_name=os.getenv("DATABASE_NAME", "solar_portal"),
                seed_demo_data=os.getenv("SEED_DEMO_DATA", "true").lower() == "true",
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            json_logs=os.getenv("JSON_LOGS", "false").lower() == "true",
            cors_origins=origins or ["*"],
            port=int(os.getenv("PORT", "8000")),
        )


_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Return the process-wide config, loading it on first use."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config
