import pytest
from pydantic import ValidationError

from shopu.config import reload_settings


def test_defaults():
    settings = reload_settings()
    assert settings.PAYMENT_GATEWAY == "fake"
    assert settings.BOG_REQUIRE_SIGNATURE is True
    assert settings.main_domains == ["shopu.ge", "momigvare.ge", "localhost", "127.0.0.1"]


@pytest.mark.parametrize("value, expected", [("1", 2), ("15", 15), ("5000", 1440)])
def test_payment_ttl_is_clamped(monkeypatch, value, expected):
    monkeypatch.setenv("PAYMENT_TTL_MINUTES", value)
    assert reload_settings().PAYMENT_TTL_MINUTES == expected


def test_gateway_name_is_case_insensitive(monkeypatch):
    monkeypatch.setenv("PAYMENT_GATEWAY", "BOG")
    assert reload_settings().PAYMENT_GATEWAY == "bog"


def test_unknown_gateway(monkeypatch):
    monkeypatch.setenv("PAYMENT_GATEWAY", "paypal")
    with pytest.raises(ValidationError):
        reload_settings()


def test_main_domains_from_environment(monkeypatch):
    monkeypatch.setenv("MAIN_DOMAINS", " Shop.example , ,localhost")
    assert reload_settings().main_domains == ["shop.example", "localhost"]
