"""Tests for the product catalog API."""

def test_list_seeded_products(client, identity):
    body = client.get("/api/products").json()
    assert body["count"] == 5
    assert body["hostname"] == identity.machine_name
    assert body["products"][0]["name"] == "Laptop"
    assert body["products"][0]["stockQuantity"] == 50


def test_get_product(client):
    response = client.get("/api/products/2")
    assert response.status_code == 200
    assert response.json()["name"] == "Mechanical Keyboard"


def test_get_missing_product(client):
    response = client.get("/api/products/999")
    assert response.status_code == 404
    assert response.json() == {"message": "Product with ID 999 not found"}


def test_create_product(client):
    response = client.post(
        "/api/products",
        json={"name": "Webcam", "description": "1080p", "price": 49.5, "category": "Accessories", "stockQuantity": 12},
    )
    assert response.status_code == 201
    product = response.json()
    assert product["id"] == 6
    assert product["stockQuantity"] == 12
    assert response.headers["location"].endswith("/api/products/6")
    assert client.get("/api/products").json()["count"] == 6


def test_create_product_validation(client):
    response = client.post("/api/products", json={"name": " ", "price": 10})
    assert response.status_code == 400
    assert response.json() == {"message": "Product name is required"}

    response = client.post("/api/products", json={"name": "Desk", "price": -3})
    assert response.status_code == 400
    assert response.json() == {"message": "Price cannot be negative"}


def test_update_product(client):
    response = client.put("/api/products/1", json={"name": "Laptop Pro", "price": 1999.0, "stockQuantity": 5})
    assert response.status_code == 200
    assert response.json()["name"] == "Laptop Pro"
    assert client.get("/api/products/1").json()["price"] == 1999.0


def test_update_missing_product(client):
    response = client.put("/api/products/77", json={"name": "Ghost", "price": 1})
    assert response.status_code == 404


def test_update_product_validation(client):
    response = client.put("/api/products/1", json={"name": "", "price": 1})
    assert response.status_code == 400


def test_delete_product(client):
    response = client.delete("/api/products/5")
    assert response.status_code == 204
    assert client.get("/api/products/5").status_code == 404
    assert client.delete("/api/products/5").status_code == 404
