"""Area Access — Library configuration via environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class AreaAccessSettings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "AREA_ACCESS_",
        "extra": "ignore",
    }

    # ── Hierarchy ──────────────────────────────────────────────
    ancestor_hop_limit: int = 10
    max_tree_depth: int = 4
    path_separator: str = " > "

    # ── Records ────────────────────────────────────────────────
    draft_status: str = "draft"

    # ── Logging ────────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "json"


settings = AreaAccessSettings()
