"""Tests for the in-memory product catalog."""

import threading

from podprobe.catalog import ProductCatalog, ProductFields, SEED_PRODUCTS, validate_product


def test_seed_is_idempotent():
    catalog = ProductCatalog()
    assert catalog.seed() == len(SEED_PRODUCTS)
    assert catalog.seed() == 0
    assert [p.id for p in catalog.list()] == [1, 2, 3, 4, 5]


def test_create_assigns_sequential_ids():
    catalog = ProductCatalog()
    first = catalog.create(ProductFields(name="Cable", price=5))
    second = catalog.create(ProductFields(name="Dock", price=120))
    assert (first.id, second.id) == (1, 2)
    assert first.created_at == first.updated_at


def test_update_replaces_fields_and_touches_timestamp():
    catalog = ProductCatalog()
    product = catalog.create(ProductFields(name="Cable", price=5, stock_quantity=3))
    updated = catalog.update(product.id, ProductFields(name="Long cable", price=7, stock_quantity=1))
    assert updated.name == "Long cable"
    assert updated.stock_quantity == 1
    assert updated.created_at == product.created_at
    assert updated.updated_at >= product.updated_at
    assert catalog.get(product.id) == updated


def test_update_and_delete_missing_product():
    catalog = ProductCatalog()
    assert catalog.update(42, ProductFields(name="x")) is None
    assert catalog.delete(42) is False


def test_delete_removes_product():
    catalog = ProductCatalog()
    catalog.seed()
    assert catalog.delete(3) is True
    assert catalog.get(3) is None
    assert len(catalog.list()) == 4


def test_validate_product():
    assert validate_product(ProductFields(name="  ")) == "Product name is required"
    assert validate_product(ProductFields(name="Mouse", price=-1)) == "Price cannot be negative"
    assert validate_product(ProductFields(name="Mouse", price=0)) is None


def test_concurrent_creates_get_unique_ids():
    catalog = ProductCatalog()

    def worker():
        for _ in range(50):
            catalog.create(ProductFields(name="item", price=1))

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    ids = [p.id for p in catalog.list()]
    assert len(ids) == 200
    assert len(set(ids)) == 200
