"""Storefront cart endpoints."""


class TestCartApi:
    def test_session_header_required(self, client, tenant):
        response = client.get("/store/cart", headers={"X-Original-Host": f"{tenant.subdomain}.shopu.ge"})
        assert response.status_code == 400
        assert "session_id" in response.json()["details"]

    def test_empty_cart(self, client, store_headers):
        response = client.get("/store/cart", headers=store_headers)
        assert response.status_code == 200
        assert response.json()["items"] == []
        assert response.json()["total"] == 0.0

    def test_add_update_remove(self, client, store_headers, make_product):
        product = make_product(price=7.5, stock_quantity=4)

        response = client.post(
            "/store/cart/items", json={"product_id": str(product.id), "quantity": 2}, headers=store_headers
        )
        assert response.status_code == 201
        cart = response.json()
        assert cart["total"] == 15.0
        item_id = cart["items"][0]["id"]

        response = client.put(f"/store/cart/items/{item_id}", json={"quantity": 3}, headers=store_headers)
        assert response.json()["items"][0]["quantity"] == 3

        response = client.delete(f"/store/cart/items/{item_id}", headers=store_headers)
        assert response.json()["items"] == []

    def test_insufficient_stock(self, client, store_headers, make_product):
        product = make_product(stock_quantity=1)
        response = client.post(
            "/store/cart/items", json={"product_id": str(product.id), "quantity": 2}, headers=store_headers
        )
        assert response.status_code == 400
        assert response.json()["details"] == {"quantity": ["Insufficient stock available"]}

    def test_zero_quantity_rejected(self, client, store_headers, make_product):
        product = make_product()
        response = client.post(
            "/store/cart/items", json={"product_id": str(product.id), "quantity": 0}, headers=store_headers
        )
        assert response.status_code == 400
        assert "quantity" in response.json()["details"]

    def test_clear_cart(self, client, store_headers, make_product, add_to_cart):
        add_to_cart(make_product())
        response = client.delete("/store/cart", headers=store_headers)
        assert response.status_code == 200
        assert response.json()["items"] == []
