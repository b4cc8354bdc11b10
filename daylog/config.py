from __future__ import annotations

import os
from pathlib import Path
from typing import List


class Settings:
    """Centralized configuration for the daylog service."""

    def __init__(self) -> None:
        base_dir = Path(__file__).resolve().parent
        repo_root = base_dir.parent
        data_root_default = repo_root / "data"

        self.data_root: Path = Path(
            os.environ.get("DAYLOG_DATA_ROOT") or data_root_default
        ).expanduser()
        self.app_db_path: Path = Path(
            os.environ.get("DAYLOG_DB_PATH") or (self.data_root / "daylog.db")
        ).expanduser()
        self.healthkit_root: Path = self.data_root / "healthkit"
        self.log_dir: Path = self.data_root / "logs"
        self.log_level: str = (os.environ.get("DAYLOG_LOG_LEVEL") or "INFO").upper()

        # Day boundaries and the sleep window are evaluated in this zone.
        self.timezone: str = os.environ.get("DAYLOG_TIMEZONE") or "UTC"

        # Devices whose uploads feed the merge; empty means every device on disk.
        devices = os.environ.get("DAYLOG_DEVICE_IDS", "")
        self.device_ids: List[str] = [d.strip() for d in devices.split(",") if d.strip()]

        self.sync_days: int = int(os.environ.get("DAYLOG_SYNC_DAYS") or "7")
        self.sync_interval_minutes: float = float(
            os.environ.get("DAYLOG_SYNC_INTERVAL_MINUTES") or "0"
        )
        self.annotation_workers: int = max(
            1, int(os.environ.get("DAYLOG_ANNOTATION_WORKERS") or "1")
        )
        # "en" | "sl" | "hu"
        self.language: str = (os.environ.get("DAYLOG_LANGUAGE") or "en").strip().lower()

        self.openai_api_key: str | None = os.environ.get("OPENAI_API_KEY") or None
        self.openai_base_url: str = os.environ.get(
            "OPENAI_BASE_URL", "https://api.openai.com/v1"
        )
        self.openai_model: str = os.environ.get("OPENAI_MODEL", "gpt-4o-mini")
        self.openai_timeout: float = float(os.environ.get("OPENAI_TIMEOUT", "30"))
        self.openai_max_tokens: int = int(os.environ.get("OPENAI_MAX_TOKENS", "256"))
        self.openai_temperature: float = float(os.environ.get("OPENAI_TEMPERATURE", "0.4"))

        cors = os.environ.get("DAYLOG_CORS_ORIGINS", "*")
        if cors.strip() == "*":
            self.cors_origins: List[str] = ["*"]
        else:
            self.cors_origins = [
                origin.strip() for origin in cors.split(",") if origin.strip()
            ]


settings = Settings()
