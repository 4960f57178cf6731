"""In-memory product catalog shared by all requests of one replica."""

import threading
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from podprobe.identity import utcnow


class ProductFields(BaseModel):
    """Writable product fields as sent by clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = ""
    description: str = ""
    price: float = 0.0
    category: str = ""
    stock_quantity: int = 0


class Product(ProductFields):
    id: int
    created_at: datetime
    updated_at: datetime


def validate_product(fields: ProductFields) -> Optional[str]:
    """Return an error message for invalid input, or ``None``."""
    if not fields.name or not fields.name.strip():
        return "Product name is required"
    if fields.price < 0:
        return "Price cannot be negative"
    return None


SEED_PRODUCTS = [
    ProductFields(
        name="Laptop",
        description="High-performance laptop for developers",
        price=1299.99,
        category="Electronics",
        stock_quantity=50,
    ),
    ProductFields(
        name="Mechanical Keyboard",
        description="RGB mechanical keyboard with Cherry MX switches",
        price=149.99,
        category="Accessories",
        stock_quantity=100,
    ),
    ProductFields(
        name="Wireless Mouse",
        description="Ergonomic wireless mouse with precision tracking",
        price=59.99,
        category="Accessories",
        stock_quantity=150,
    ),
    ProductFields(
        name="4K Monitor",
        description="27-inch 4K IPS monitor with HDR support",
        price=599.99,
        category="Electronics",
        stock_quantity=30,
    ),
    ProductFields(
        name="USB-C Hub",
        description="Multi-port USB-C hub with HDMI and ethernet",
        price=79.99,
        category="Accessories",
        stock_quantity=200,
    ),
]


class ProductCatalog:
    """Thread-safe list of products with sequential ids."""

    def __init__(self):
        self._products: List[Product] = []
        self._next_id = 1
        self._lock = threading.Lock()

    def list(self) -> List[Product]:
        with self._lock:
            return list(self._products)

    def get(self, product_id: int) -> Optional[Product]:
        with self._lock:
            return self._find(product_id)

    def create(self, fields: ProductFields) -> Product:
        with self._lock:
            return self._insert(fields)

    def update(self, product_id: int, fields: ProductFields) -> Optional[Product]:
        with self._lock:
            existing = self._find(product_id)
            if existing is None:
                return None
            updated = existing.model_copy(update={**fields.model_dump(), "updated_at": utcnow()})
            self._products[self._products.index(existing)] = updated
            return updated

    def delete(self, product_id: int) -> bool:
        with self._lock:
            existing = self._find(product_id)
            if existing is None:
                return False
            self._products.remove(existing)
            return True

    def seed(self) -> int:
        """Insert the sample products if the catalog is empty."""
        with self._lock:
            if self._products:
                return 0
            for fields in SEED_PRODUCTS:
                self._insert(fields)
            return len(SEED_PRODUCTS)

    def _find(self, product_id: int) -> Optional[Product]:
        return next((p for p in self._products if p.id == product_id), None)

    def _insert(self, fields: ProductFields) -> Product:
        now = utcnow()
        product = Product(id=self._next_id, created_at=now, updated_at=now, **fields.model_dump())
        self._next_id += 1
        self._products.append(product)
        return product
