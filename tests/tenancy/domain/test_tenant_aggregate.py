"""Tests for the Tenant aggregate."""

import pytest
from protean.exceptions import ValidationError

from shopu.tenancy.events import (
    ApiKeyRotated,
    CustomDomainChanged,
    TenantActivated,
    TenantDeactivated,
    TenantRegistered,
)
from shopu.tenancy.tenant import Tenant, hash_api_key, is_valid_hostname, normalize_custom_domain


def _make_tenant(subdomain="teahouse"):
    tenant, api_key = Tenant.register(name="Tea House", subdomain=subdomain, owner_email="owner@teahouse.ge")
    tenant._events.clear()
    return tenant, api_key


class TestTenantRegistration:
    def test_register_creates_active_tenant(self):
        tenant, _ = Tenant.register(name="Tea House", subdomain="teahouse")
        assert tenant.is_active is True
        assert tenant.subdomain == "teahouse"
        assert tenant.created_at is not None

    def test_subdomain_is_lowercased(self):
        tenant, _ = Tenant.register(name="Tea House", subdomain="TeaHouse")
        assert tenant.subdomain == "teahouse"

    def test_only_the_api_key_hash_is_stored(self):
        tenant, api_key = Tenant.register(name="Tea House", subdomain="teahouse")
        assert tenant.api_key_hash == hash_api_key(api_key)
        assert api_key not in tenant.to_dict().values()

    def test_raises_registered_event(self):
        tenant, _ = Tenant.register(name="Tea House", subdomain="teahouse")
        assert len(tenant._events) == 1
        assert isinstance(tenant._events[0], TenantRegistered)
        assert tenant._events[0].subdomain == "teahouse"

    @pytest.mark.parametrize("subdomain", ["ab", "tea-house", "tea_house", "tea.house"])
    def test_rejects_invalid_subdomain(self, subdomain):
        with pytest.raises(ValidationError) as exc:
            Tenant.register(name="Tea House", subdomain=subdomain)
        assert "subdomain" in exc.value.messages

    @pytest.mark.parametrize("subdomain", ["tea", "t" * 50, "shop2024"])
    def test_accepts_length_bounds(self, subdomain):
        tenant, _ = Tenant.register(name="Tea House", subdomain=subdomain)
        assert tenant.subdomain == subdomain

    def test_rejects_subdomain_over_fifty_characters(self):
        with pytest.raises(ValidationError) as exc:
            Tenant.register(name="Tea House", subdomain="t" * 51)
        assert "subdomain" in exc.value.messages


class TestApiKey:
    def test_verify_api_key(self):
        tenant, api_key = _make_tenant()
        assert tenant.verify_api_key(api_key) is True
        assert tenant.verify_api_key("wrong") is False
        assert tenant.verify_api_key(None) is False

    def test_rotation_invalidates_old_key(self):
        tenant, old_key = _make_tenant()
        new_key = tenant.rotate_api_key()
        assert new_key != old_key
        assert tenant.verify_api_key(new_key) is True
        assert tenant.verify_api_key(old_key) is False
        assert isinstance(tenant._events[-1], ApiKeyRotated)


class TestCustomDomain:
    def test_set_custom_domain_normalizes(self):
        tenant, _ = _make_tenant()
        tenant.set_custom_domain("HTTPS://TeaHouse.ge/shop")
        assert tenant.custom_domain == "teahouse.ge"
        assert isinstance(tenant._events[-1], CustomDomainChanged)

    def test_invalid_custom_domain_rejected(self):
        tenant, _ = _make_tenant()
        with pytest.raises(ValidationError) as exc:
            tenant.set_custom_domain("not a domain")
        assert "custom_domain" in exc.value.messages

    def test_remove_custom_domain(self):
        tenant, _ = _make_tenant()
        tenant.set_custom_domain("teahouse.ge")
        tenant.remove_custom_domain()
        assert tenant.custom_domain is None
        assert tenant._events[-1].previous_custom_domain == "teahouse.ge"

    def test_remove_without_custom_domain_is_a_no_op(self):
        tenant, _ = _make_tenant()
        tenant.remove_custom_domain()
        assert tenant._events == []


class TestLifecycle:
    def test_deactivate_and_activate(self):
        tenant, _ = _make_tenant()
        tenant.deactivate()
        assert tenant.is_active is False
        assert isinstance(tenant._events[-1], TenantDeactivated)

        tenant.activate()
        assert tenant.is_active is True
        assert isinstance(tenant._events[-1], TenantActivated)

    def test_activate_active_tenant_raises_no_event(self):
        tenant, _ = _make_tenant()
        tenant.activate()
        assert tenant._events == []


class TestHostnameHelpers:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("TeaHouse.GE", "teahouse.ge"),
            ("https://teahouse.ge", "teahouse.ge"),
            ("teahouse.ge:8443", "teahouse.ge"),
            ("teahouse.ge.", "teahouse.ge"),
        ],
    )
    def test_normalize_custom_domain(self, raw, expected):
        assert normalize_custom_domain(raw) == expected

    def test_is_valid_hostname(self):
        assert is_valid_hostname("shop.teahouse.ge") is True
        assert is_valid_hostname("localhost") is False
        assert is_valid_hostname("-bad.ge") is False
