import json
import os
from pathlib import Path
from uuid import uuid4

import pytest
from protean.integrations.pytest import DomainFixture


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Select the protean config overlay before the domain is initialized."""
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)


@pytest.fixture(scope="session")
def shop_bed():
    from shopu.domain import shop

    bed = DomainFixture(shop)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(shop_bed):
    with shop_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def _settings():
    """Every test starts from settings read fresh from the environment."""
    from shopu.config import reload_settings

    reload_settings()
    yield
    reload_settings()


@pytest.fixture(autouse=True)
def fake_gateway():
    from shopu.payments.gateway import reset_gateway, set_gateway
    from shopu.payments.gateway.fake_adapter import FakeGateway

    gateway = FakeGateway()
    set_gateway(gateway)
    yield gateway
    reset_gateway()


# ---------------------------------------------------------------------------
# Tenants
# ---------------------------------------------------------------------------
def unique_subdomain(prefix="shop"):
    return f"{prefix}{uuid4().hex[:10]}"


@pytest.fixture()
def registered_tenant():
    """A freshly registered shop: `{"tenant": Tenant, "api_key": str}`."""
    from protean import current_domain

    from shopu.tenancy.registration import RegisterTenant
    from shopu.tenancy.tenant import Tenant

    result = current_domain.process(
        RegisterTenant(name="Tea House", subdomain=unique_subdomain(), owner_email="owner@teahouse.ge"),
        asynchronous=False,
    )
    tenant = current_domain.repository_for(Tenant).get(result["tenant_id"])
    return {"tenant": tenant, "api_key": result["api_key"]}


@pytest.fixture()
def tenant(registered_tenant):
    return registered_tenant["tenant"]


# ---------------------------------------------------------------------------
# Catalogue and cart
# ---------------------------------------------------------------------------
@pytest.fixture()
def make_product(tenant):
    """Create a product for the tenant and return it reloaded from the repository."""
    from protean import current_domain

    from shopu.catalogue.product import Product
    from shopu.catalogue.product_management import CreateProduct

    def _make(title="Green Tea", price=10.0, stock_quantity=10, variants=None, **kwargs):
        product_id = current_domain.process(
            CreateProduct(
                tenant_id=str(tenant.id),
                title=title,
                price=price,
                stock_quantity=stock_quantity,
                variants=json.dumps(variants) if variants else None,
                **kwargs,
            ),
            asynchronous=False,
        )
        return current_domain.repository_for(Product).get(product_id)

    return _make


@pytest.fixture()
def session_id():
    return f"sess-{uuid4().hex[:12]}"


@pytest.fixture()
def add_to_cart(tenant, session_id):
    from protean import current_domain

    from shopu.cart.items import AddToCart

    def _add(product, quantity=1, variant_id=None, session=None):
        return current_domain.process(
            AddToCart(
                tenant_id=str(tenant.id),
                session_id=session or session_id,
                product_id=str(product.id),
                variant_id=str(variant_id) if variant_id else None,
                quantity=quantity,
            ),
            asynchronous=False,
        )

    return _add


@pytest.fixture()
def place_order(tenant, session_id):
    """Place an order from the session cart and return it."""
    from protean import current_domain

    from shopu.ordering.order import Order
    from shopu.ordering.placement import PlaceOrder

    def _place(session=None, **kwargs):
        order_id = current_domain.process(
            PlaceOrder(
                tenant_id=str(tenant.id),
                session_id=session or session_id,
                customer_email=kwargs.pop("customer_email", "nino@example.ge"),
                customer_name=kwargs.pop("customer_name", "Nino Beridze"),
                **kwargs,
            ),
            asynchronous=False,
        )
        return current_domain.repository_for(Order).get(order_id)

    return _place


@pytest.fixture()
def stock_of():
    """Current stock of a product (or one of its variants), read from the repository."""
    from protean import current_domain

    from shopu.catalogue.product import Product

    def _stock(product, variant_id=None):
        return current_domain.repository_for(Product).get(product.id).available_stock(variant_id)

    return _stock


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------
@pytest.fixture()
def client():
    from fastapi import FastAPI
    from fastapi.testclient import TestClient

    from shopu.api.admin import router as admin_router
    from shopu.api.payments import router as payments_router
    from shopu.api.storefront import router as storefront_router
    from shopu.api.tenants import router as tenants_router
    from shopu.errors import register_exception_handlers

    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(tenants_router)
    app.include_router(storefront_router)
    app.include_router(admin_router)
    app.include_router(payments_router)
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture()
def store_headers(tenant, session_id):
    """Headers a storefront request carries through the platform proxy."""
    return {"X-Original-Host": f"{tenant.subdomain}.shopu.ge", "X-Session-Id": session_id}


@pytest.fixture()
def admin_headers(registered_tenant):
    tenant = registered_tenant["tenant"]
    return {
        "X-Original-Host": f"{tenant.subdomain}.shopu.ge",
        "Authorization": f"Bearer {registered_tenant['api_key']}",
    }
