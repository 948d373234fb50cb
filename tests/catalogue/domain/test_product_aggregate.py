"""Tests for the Product aggregate and its variants."""

import pytest
from protean.exceptions import ValidationError

from shopu.catalogue.events import ProductCreated, StockAdjusted, VariantAdded
from shopu.catalogue.product import Product

TENANT_ID = "tenant-001"


def _make_product(**overrides):
    data = {"tenant_id": TENANT_ID, "title": "Green Tea", "slug": "green-tea", "price": 12.5, "stock_quantity": 5}
    data.update(overrides)
    product = Product.create(**data)
    product._events.clear()
    return product


class TestProductCreation:
    def test_create_product(self):
        product = Product.create(tenant_id=TENANT_ID, title="Green Tea", slug="green-tea", price=12.5)
        assert product.is_active is True
        assert product.is_deleted is False
        assert product.stock_quantity == 0
        assert isinstance(product._events[0], ProductCreated)

    def test_attributes_and_images_are_stored_as_json(self):
        product = _make_product(attributes={"origin": "Guria"}, images=["https://img/1.jpg"])
        assert product.attribute_values == {"origin": "Guria"}
        assert product.image_urls == ["https://img/1.jpg"]

    def test_negative_stock_rejected(self):
        with pytest.raises(ValidationError) as exc:
            _make_product(stock_quantity=-1)
        assert "stock_quantity" in exc.value.messages

    @pytest.mark.parametrize("slug", ["Green Tea", "green--tea", "-green", "ჩაი"])
    def test_slug_must_be_url_safe(self, slug):
        with pytest.raises(ValidationError) as exc:
            _make_product(slug=slug)
        assert "slug" in exc.value.messages


class TestProductLifecycle:
    def test_update_details(self):
        product = _make_product()
        product.update(title="Black Tea", price=9.0, attributes={"origin": "Adjara"})
        assert product.title == "Black Tea"
        assert product.price == 9.0
        assert product.attribute_values == {"origin": "Adjara"}

    def test_soft_delete_and_restore(self):
        product = _make_product()
        product.mark_deleted()
        assert product.is_deleted is True
        assert product.deleted_at is not None

        product.restore()
        assert product.is_deleted is False
        assert product.deleted_at is None

    def test_deleted_product_cannot_be_updated(self):
        product = _make_product()
        product.mark_deleted()
        with pytest.raises(ValidationError):
            product.update(title="Sneaky")

    def test_double_delete_rejected(self):
        product = _make_product()
        product.mark_deleted()
        with pytest.raises(ValidationError):
            product.mark_deleted()

    def test_restore_requires_deleted_product(self):
        with pytest.raises(ValidationError):
            _make_product().restore()


class TestVariants:
    def test_add_variant(self):
        product = _make_product()
        variant = product.add_variant(sku="GT-100", options={"weight": "100g"}, price=15.0, stock_quantity=3)
        assert product.find_variant(variant.id).sku == "GT-100"
        assert variant.option_values == {"weight": "100g"}
        assert isinstance(product._events[-1], VariantAdded)

    def test_variant_price_overrides_product_price(self):
        product = _make_product()
        priced = product.add_variant(sku="GT-250", options={"weight": "250g"}, price=30.0)
        unpriced = product.add_variant(sku="GT-50", options={"weight": "50g"})
        assert product.unit_price(priced.id) == 30.0
        assert product.unit_price(unpriced.id) == 12.5
        assert product.unit_price() == 12.5

    def test_available_stock_is_per_variant(self):
        product = _make_product(stock_quantity=5)
        variant = product.add_variant(sku="GT-100", options={"weight": "100g"}, stock_quantity=2)
        assert product.available_stock() == 5
        assert product.available_stock(variant.id) == 2
        assert product.available_stock("missing") == 0

    def test_update_and_remove_variant(self):
        product = _make_product()
        variant = product.add_variant(sku="GT-100", options={"weight": "100g"})
        product.update_variant(variant.id, stock_quantity=7, is_active=False)
        assert product.find_variant(variant.id).stock_quantity == 7
        assert product.find_variant(variant.id).is_active is False

        product.remove_variant(variant.id)
        assert product.find_variant(variant.id) is None

    def test_unknown_variant(self):
        with pytest.raises(ValidationError) as exc:
            _make_product().update_variant("missing", stock_quantity=1)
        assert exc.value.messages["variant_id"] == ["Variant not found"]

    def test_inactive_variants_hidden_from_storefront_view(self):
        product = _make_product()
        product.add_variant(sku="ON", options={"size": "M"})
        product.add_variant(sku="OFF", options={"size": "L"}, is_active=False)
        assert [v["sku"] for v in product.to_dict(active_variants_only=True)["variants"]] == ["ON"]
        assert len(product.to_dict()["variants"]) == 2


class TestStockAdjustment:
    def test_adjust_product_stock(self):
        product = _make_product(stock_quantity=5)
        assert product.adjust_stock(-2, reason="order_placed", order_id="ord-1") == 3
        event = product._events[-1]
        assert isinstance(event, StockAdjusted)
        assert event.previous_quantity == 5
        assert event.new_quantity == 3
        assert event.reason == "order_placed"

    def test_adjust_variant_stock_leaves_product_stock(self):
        product = _make_product(stock_quantity=5)
        variant = product.add_variant(sku="GT-100", options={"weight": "100g"}, stock_quantity=4)
        product.adjust_stock(-3, variant_id=variant.id)
        assert product.available_stock(variant.id) == 1
        assert product.stock_quantity == 5

    def test_stock_can_go_negative(self):
        product = _make_product(stock_quantity=1)
        assert product.adjust_stock(-2, reason="payment_recovered") == -1
