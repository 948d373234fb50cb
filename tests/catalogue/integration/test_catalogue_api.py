"""Catalogue endpoints through the FastAPI routers."""

from uuid import uuid4

from shopu.catalogue.bulk_import import TEMPLATE


class TestAdminProductsApi:
    def test_create_and_fetch_product(self, client, admin_headers):
        response = client.post(
            "/admin/products",
            json={
                "title": "Classic T-Shirt",
                "price": 29.99,
                "attributes": {"material": "Cotton"},
                "variants": [{"sku": "TSHIRT-M", "options": {"size": "M"}, "stock_quantity": 5}],
            },
            headers=admin_headers,
        )
        assert response.status_code == 201
        product_id = response.json()["product_id"]

        response = client.get(f"/admin/products/{product_id}", headers=admin_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["slug"] == "classic-t-shirt"
        assert data["attributes"] == {"material": "Cotton"}
        assert data["variants"][0]["options"] == {"size": "M"}

    def test_negative_price_rejected(self, client, admin_headers):
        response = client.post("/admin/products", json={"title": "Tea", "price": -1}, headers=admin_headers)
        assert response.status_code == 400
        assert "price" in response.json()["details"]

    def test_requires_api_key(self, client, store_headers):
        response = client.get("/admin/products", headers=store_headers)
        assert response.status_code == 401

    def test_update_with_no_changes(self, client, admin_headers, make_product):
        product = make_product()
        response = client.put(f"/admin/products/{product.id}", json={}, headers=admin_headers)
        assert response.status_code == 400

    def test_delete_hides_product_from_storefront(self, client, admin_headers, store_headers, make_product):
        product = make_product()
        assert client.delete(f"/admin/products/{product.id}", headers=admin_headers).status_code == 200

        assert client.get(f"/store/products/{product.slug}", headers=store_headers).status_code == 404
        listed = client.get("/admin/products", params={"is_deleted": True}, headers=admin_headers).json()
        assert [p["id"] for p in listed["products"]] == [str(product.id)]

    def test_unknown_product(self, client, admin_headers):
        response = client.get("/admin/products/00000000-0000-0000-0000-000000000000", headers=admin_headers)
        assert response.status_code == 404


class TestStorefrontCatalogueApi:
    def test_list_and_detail(self, client, store_headers, make_product):
        make_product(title="Green Tea", price=10.0)
        make_product(title="Hidden Tea", is_active=False)

        response = client.get("/store/products", headers=store_headers)
        assert response.status_code == 200
        body = response.json()
        assert [p["title"] for p in body["products"]] == ["Green Tea"]
        assert body["pagination"]["total"] == 1

        detail = client.get("/store/products/green-tea", headers=store_headers)
        assert detail.status_code == 200
        assert detail.json()["price"] == 10.0

    def test_products_are_tenant_scoped(self, client, make_product):
        make_product(title="Green Tea")
        other = f"other{uuid4().hex[:10]}"
        client.post("/tenants", json={"name": "Other Shop", "subdomain": other})

        response = client.get("/store/products", headers={"X-Original-Host": f"{other}.shopu.ge"})
        assert response.json()["products"] == []

    def test_category_tree(self, client, admin_headers, store_headers):
        parent = client.post("/admin/categories", json={"name": "Tea"}, headers=admin_headers).json()["category_id"]
        client.post("/admin/categories", json={"name": "Green", "parent_id": parent}, headers=admin_headers)

        tree = client.get("/store/categories", headers=store_headers).json()
        assert [c["name"] for c in tree] == ["Tea"]
        assert [c["name"] for c in tree[0]["children"]] == ["Green"]


class TestBulkUploadApi:
    def test_upload_template(self, client, admin_headers):
        response = client.post(
            "/admin/bulk-upload",
            content=TEMPLATE.encode("utf-8"),
            headers={**admin_headers, "Content-Type": "text/csv"},
        )
        assert response.status_code == 200
        assert response.json()["products"]["created"] == 2

    def test_empty_upload(self, client, admin_headers):
        response = client.post(
            "/admin/bulk-upload", content=b"", headers={**admin_headers, "Content-Type": "text/csv"}
        )
        assert response.status_code == 400
        assert response.json()["details"] == {"file": ["CSV file is empty"]}

    def test_download_template(self, client, admin_headers):
        response = client.get("/admin/bulk-upload/template", headers=admin_headers)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.text.startswith("Category,Product Name")
