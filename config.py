"""Storefront web application settings."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from storefront.config import AppConfig, load_env


logger = logging.getLogger(__name__)


@dataclass
class StorefrontConfig:
    """Settings for the Flask layer plus the store settings it hands to services."""

    secret_key: str
    admin_username: str
    admin_password: str
    data_dir: Path
    store: AppConfig

    @property
    def settings_file(self) -> Path:
        return self.data_dir / "settings.json"

    @property
    def admin_credentials_file(self) -> Path:
        return self.data_dir / "admin.json"

    @classmethod
    def load(cls, data_dir: Optional[Path] = None) -> "StorefrontConfig":
        """Build settings from the environment and make sure the data directory exists."""

        data_dir = data_dir or Path(os.environ.get("STOREFRONT_DATA_DIR", Path(__file__).resolve().parent / "data"))
        data_dir.mkdir(parents=True, exist_ok=True)

        store = load_env(data_dir / "settings.json")
        config = cls(
            secret_key=store.secret_key,
            admin_username=os.environ.get("ADMIN_USERNAME", "admin"),
            admin_password=os.environ.get("ADMIN_PASSWORD", "change-me"),
            data_dir=data_dir,
            store=store,
        )

        # admin.json, when present, overrides the environment credentials
        if config.admin_credentials_file.exists():
            try:
                admin_data = json.loads(config.admin_credentials_file.read_text(encoding="utf-8"))
            except json.JSONDecodeError as exc:
                raise ValueError(f"admin credentials file is not valid JSON: {config.admin_credentials_file}") from exc
            if isinstance(admin_data, dict):
                config.admin_username = admin_data.get("username", config.admin_username)
                config.admin_password = admin_data.get("password", config.admin_password)
                logger.info("admin credentials loaded from %s", config.admin_credentials_file)

        return config
