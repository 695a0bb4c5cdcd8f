import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
import json
from typing import Dict, List, Optional

from dotenv import load_dotenv


@dataclass
class AppConfig:
    database_url: str
    secret_key: str
    log_level: str
    currency: str
    tax_rate: Decimal
    shipping_flat: Decimal
    enforce_stock: bool


ALLOWED_HOT_KEYS = {"CURRENCY", "TAX_RATE", "SHIPPING_FLAT"}
SENSITIVE_KEYS = {"DATABASE_URL", "SECRET_KEY", "ADMIN_PASSWORD"}


def validate_currency(value: Optional[str]) -> str:
    v = (value or "USD").strip().upper()
    if len(v) != 3:
        raise ValueError("Invalid currency code: expected ISO4217 length 3")
    return v


def _parse_decimal(value, field: str) -> Decimal:
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"{field} must be a decimal number") from exc


def validate_tax_rate(value) -> Decimal:
    rate = _parse_decimal("0.10" if value in (None, "") else value, "TAX_RATE")
    if rate < 0 or rate >= 1:
        raise ValueError("TAX_RATE must be in [0, 1)")
    return rate


def validate_shipping_flat(value) -> Decimal:
    fee = _parse_decimal("10.00" if value in (None, "") else value, "SHIPPING_FLAT")
    if fee < 0:
        raise ValueError("SHIPPING_FLAT must be >= 0")
    return fee


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in {"1", "true", "yes", "on"}


def _settings_path() -> Path:
    return Path(__file__).resolve().parents[1] / "data" / "settings.json"


def _load_settings_file(path: Optional[Path] = None) -> dict:
    path = path or _settings_path()
    if not path.exists():
        return {}
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"settings file is not valid JSON: {path}") from exc
    return payload if isinstance(payload, dict) else {}


def load_env(settings_path: Optional[Path] = None) -> AppConfig:
    # data/settings.json wins over the environment (.env is a fallback)
    load_dotenv()
    s = _load_settings_file(settings_path)
    database_url = os.getenv("DATABASE_URL", "sqlite:///data/storefront.db")
    secret_key = os.getenv("SECRET_KEY", "dev_secret")
    log_level = os.getenv("LOG_LEVEL", "INFO")
    currency = validate_currency(s.get("CURRENCY") or os.getenv("CURRENCY"))
    tax_rate = validate_tax_rate(s.get("TAX_RATE", os.getenv("TAX_RATE")))
    shipping_flat = validate_shipping_flat(s.get("SHIPPING_FLAT", os.getenv("SHIPPING_FLAT")))
    enforce_stock = _parse_bool(s.get("ENFORCE_STOCK", os.getenv("ENFORCE_STOCK")))
    return AppConfig(
        database_url=database_url,
        secret_key=secret_key,
        log_level=log_level,
        currency=currency,
        tax_rate=tax_rate,
        shipping_flat=shipping_flat,
        enforce_stock=enforce_stock,
    )


def refresh_non_sensitive(overrides: Dict[str, str], current: AppConfig) -> AppConfig:
    updates = {k: v for k, v in (overrides or {}).items() if k in ALLOWED_HOT_KEYS}
    return AppConfig(
        database_url=current.database_url,
        secret_key=current.secret_key,
        log_level=current.log_level,
        currency=validate_currency(updates.get("CURRENCY", current.currency)),
        tax_rate=validate_tax_rate(updates.get("TAX_RATE", current.tax_rate)),
        shipping_flat=validate_shipping_flat(updates.get("SHIPPING_FLAT", current.shipping_flat)),
        enforce_stock=current.enforce_stock,
    )


def requires_restart(changed_keys: List[str]) -> bool:
    if not changed_keys:
        return False
    return any(k in SENSITIVE_KEYS for k in changed_keys)
