from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    # Gemini
    gemini_api_key: str = os.getenv("GEMINI_API_KEY", os.getenv("API_KEY", ""))
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    gemini_base_url: str = os.getenv(
        "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
    )
    ai_timeout_s: float = float(os.getenv("AI_TIMEOUT_S", "60"))

    # Storage (relative to the working directory)
    data_dir: str = os.getenv("DATA_DIR", "data")
    garden_store_key: str = os.getenv("GARDEN_STORE_KEY", "myGarden")

    # Server
    host: str = os.getenv("HOST", "127.0.0.1")
    port: int = int(os.getenv("PORT", "8000"))

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
