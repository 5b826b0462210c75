"""
Application-wide configuration via pydantic-settings.

All paths are resolved at load time to absolute Path objects.
Override any setting via environment variable prefixed with ECO_
e.g., set ECO_STORE_BACKEND=remote to talk to the inventory server,
or ECO_DB_ECHO=true to enable SQLAlchemy query logging.

The project root is the directory containing the eco_manager/ package.
"""

from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ECO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # --- Application metadata ---
    app_name: str = "ECO Manager"
    app_version: str = "0.1.0"
    default_user: str = "engineer"

    # --- Paths (resolved in model_post_init) ---
    project_root: Path = Path(__file__).resolve().parent.parent.parent

    # --- Record store ---
    store_backend: Literal["local", "remote"] = "local"

    # --- Local database ---
    db_path: Optional[Path] = None    # resolved in model_post_init
    db_echo: bool = False             # set True to log all SQL queries
    parts_catalog_path: Optional[Path] = None   # resolved in model_post_init

    # --- Remote inventory API ---
    api_base_url: str = "http://localhost:9000"
    api_timeout_seconds: float = 10.0
    api_token: Optional[str] = None

    # --- Affected parts resolution ---
    part_lookup_workers: int = 8

    # --- Logging ---
    log_level: str = "INFO"

    def model_post_init(self, __context) -> None:
        """Resolve all None paths to absolute paths derived from project_root."""
        root = self.project_root

        if self.db_path is None:
            object.__setattr__(self, "db_path", root / "eco_manager.db")
        if self.parts_catalog_path is None:
            object.__setattr__(
                self, "parts_catalog_path",
                root / "eco_manager" / "config" / "parts_catalog.json",
            )


# Module-level singleton. Import this object; never instantiate Settings directly.
settings = Settings()
