from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

BASE_DIR = Path(__file__).resolve().parent


@dataclass(frozen=True)
class Settings:
    """Configuration container for catalog, session storage, and response pacing."""
    catalog_path: Path
    sessions_path: Optional[Path]
    max_sessions: int
    response_delay_min: float
    response_delay_max: float
    log_level: str


def load_settings() -> Settings:
    """Purpose: Load configuration from environment variables and defaults.
    Inputs/Outputs: No inputs; returns a Settings instance.
    Side Effects / State: Reads environment variables.
    Dependencies: Uses os.getenv and BASE_DIR for the bundled catalog path.
    Failure Modes: Invalid MAX_SESSIONS/RESPONSE_DELAY_* values raise ValueError.
    If Removed: App cannot locate the catalog or configure storage and fails at startup.
    Testing Notes: Verify defaults and overrides via environment variables.
    """
    # Resolve catalog and optional session snapshot paths, then build Settings.
    catalog_path = os.getenv("CATALOG_PATH")
    if catalog_path:
        catalog_file = Path(catalog_path)
    else:
        catalog_file = BASE_DIR / "data" / "products.json"

    sessions_path = os.getenv("SESSIONS_PATH")

    return Settings(
        catalog_path=catalog_file,
        sessions_path=Path(sessions_path) if sessions_path else None,
        max_sessions=int(os.getenv("MAX_SESSIONS", "0")),
        response_delay_min=float(os.getenv("RESPONSE_DELAY_MIN", "1.0")),
        response_delay_max=float(os.getenv("RESPONSE_DELAY_MAX", "3.0")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
