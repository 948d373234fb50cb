"""Application tests for CSV catalogue import."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from shopu.catalogue.bulk_import import TEMPLATE, import_catalogue_csv
from shopu.catalogue.category import Category
from shopu.catalogue.product import Product

HEADER = "Category,Product Name,Variant Options,Product Description,Price,Stock,SKU,Status,Image URLs,Attributes\n"


def _products(tenant):
    return {p.title: p for p in current_domain.repository_for(Product).for_tenant(tenant.id)}


def _categories(tenant):
    return {c.name: c for c in current_domain.repository_for(Category).for_tenant(tenant.id)}


class TestTemplateImport:
    def test_imports_template(self, tenant):
        result = import_catalogue_csv(tenant.id, TEMPLATE)

        assert result["categories"] == {"created": 4, "updated": 0, "errors": []}
        assert result["products"]["created"] == 2
        assert result["variants"]["created"] == 2

        categories = _categories(tenant)
        assert str(categories["Phones"].parent_id) == str(categories["Electronics"].id)
        assert str(categories["Furniture"].parent_id) == str(categories["Home & Garden"].id)

        iphone = _products(tenant)["iPhone 14 Pro"]
        assert iphone.sku == "IPHONE14PRO"
        assert iphone.price == 999.99
        assert iphone.stock_quantity == 50
        assert str(iphone.category_id) == str(categories["Phones"].id)
        assert iphone.attribute_values == {"brand": "Apple", "warranty": "1 year"}
        assert iphone.image_urls == ["https://example.com/iphone.jpg"]
        assert sorted(v.sku for v in iphone.variants) == ["IPHONE14PRO-128-BLK", "IPHONE14PRO-256-BLK"]

    def test_second_import_updates_in_place(self, tenant):
        import_catalogue_csv(tenant.id, TEMPLATE)
        result = import_catalogue_csv(tenant.id, TEMPLATE.replace("999.99,50,IPHONE14PRO,", "949.99,40,IPHONE14PRO,"))

        assert result["categories"]["created"] == 0
        assert result["categories"]["updated"] == 4
        assert result["products"] == {"created": 0, "updated": 2, "errors": []}
        assert result["variants"]["updated"] == 2

        products = _products(tenant)
        assert len(products) == 2
        assert products["iPhone 14 Pro"].price == 949.99
        assert products["iPhone 14 Pro"].stock_quantity == 40


class TestRowHandling:
    def test_inactive_status_and_generated_variant_sku(self, tenant):
        csv_text = HEADER + (
            "Tea,Sencha,,Japanese green tea,20,5,,INACTIVE,,\n"
            "Tea,Sencha,weight:100g,,22,3,,INACTIVE,,\n"
        )
        import_catalogue_csv(tenant.id, csv_text)

        sencha = _products(tenant)["Sencha"]
        assert sencha.is_active is False
        assert sencha.sku is None
        assert len(sencha.variants) == 1
        assert sencha.variants[0].sku.startswith("SKU-")
        assert sencha.variants[0].option_values == {"weight": "100g"}

    def test_invalid_price_and_stock_default_to_zero(self, tenant):
        import_catalogue_csv(tenant.id, HEADER + "Tea,Mystery Tea,,,abc,-4,,,,\n")
        mystery = _products(tenant)["Mystery Tea"]
        assert mystery.price == 0.0
        assert mystery.stock_quantity == 0

    def test_sku_owned_by_another_product_is_reported(self, tenant, make_product):
        make_product(title="Existing", sku="TAKEN-1")
        csv_text = HEADER + "Tea,Newcomer,,,10,1,TAKEN-1,,,\nTea,Fine Tea,,,10,1,FINE-1,,,\n"

        result = import_catalogue_csv(tenant.id, csv_text)

        assert result["products"]["created"] == 1
        assert result["products"]["errors"][0]["product"] == "Newcomer"
        assert "TAKEN-1" in result["products"]["errors"][0]["error"]
        assert "Fine Tea" in _products(tenant)

    def test_category_only_rows(self, tenant):
        result = import_catalogue_csv(tenant.id, HEADER + "Drinks > Tea > Green,,,,,,,,,\n")
        assert result["categories"]["created"] == 3
        assert result["products"]["created"] == 0


class TestInvalidFiles:
    def test_empty_file(self, tenant):
        with pytest.raises(ValidationError):
            import_catalogue_csv(tenant.id, "   ")

    def test_wrong_header(self, tenant):
        with pytest.raises(ValidationError):
            import_catalogue_csv(tenant.id, "Name,Price\nTea,1\n")
