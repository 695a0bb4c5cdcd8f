import json
from decimal import Decimal

import pytest

from storefront.config import load_env, refresh_non_sensitive, requires_restart


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ("CURRENCY", "TAX_RATE", "SHIPPING_FLAT", "ENFORCE_STOCK", "DATABASE_URL", "SECRET_KEY"):
        monkeypatch.delenv(key, raising=False)


def test_defaults(tmp_path):
    cfg = load_env(tmp_path / "settings.json")
    assert cfg.currency == "USD"
    assert cfg.tax_rate == Decimal("0.10")
    assert cfg.shipping_flat == Decimal("10.00")
    assert cfg.enforce_stock is False


def test_settings_file_wins_over_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("TAX_RATE", "0.2")
    monkeypatch.setenv("ENFORCE_STOCK", "yes")
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"TAX_RATE": "0.075", "CURRENCY": "eur"}), encoding="utf-8")

    cfg = load_env(path)
    assert cfg.tax_rate == Decimal("0.075")
    assert cfg.currency == "EUR"
    assert cfg.enforce_stock is True


@pytest.mark.parametrize("key,value", [("TAX_RATE", "1.5"), ("TAX_RATE", "abc"), ("SHIPPING_FLAT", "-1"), ("CURRENCY", "EURO")])
def test_invalid_values_are_rejected(tmp_path, monkeypatch, key, value):
    monkeypatch.setenv(key, value)
    with pytest.raises(ValueError):
        load_env(tmp_path / "settings.json")


def test_hot_reload_touches_only_non_sensitive_keys(tmp_path):
    cfg = load_env(tmp_path / "settings.json")
    fresh = refresh_non_sensitive({"SHIPPING_FLAT": "4.99", "SECRET_KEY": "nope"}, cfg)
    assert fresh.shipping_flat == Decimal("4.99")
    assert fresh.secret_key == cfg.secret_key
    assert requires_restart(["SECRET_KEY"]) is True
    assert requires_restart(["TAX_RATE"]) is False
    assert requires_restart([]) is False
