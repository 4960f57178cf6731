"""Product catalog CRUD backed by the replica's in-memory store."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from podprobe.catalog import Product, ProductCatalog, ProductFields, validate_product
from podprobe.identity import InstanceIdentity, get_identity

logger = structlog.get_logger(__name__)

# Router configuration
product_router = APIRouter(prefix="/api/products", tags=["Products"])


def get_catalog(request: Request) -> ProductCatalog:
    return request.app.state.catalog


Catalog = Annotated[ProductCatalog, Depends(get_catalog)]
Identity = Annotated[InstanceIdentity, Depends(get_identity)]


def dump(product: Product) -> dict:
    return product.model_dump(mode="json", by_alias=True)


def not_found(product_id: int) -> JSONResponse:
    return JSONResponse({"message": f"Product with ID {product_id} not found"}, status_code=404)


@product_router.get("")
def list_products(catalog: Catalog, identity: Identity) -> dict:
    """All products, tagged with the pod that served them."""
    logger.info("Fetching all products", pod=identity.machine_name)
    products = catalog.list()
    return {
        "count": len(products),
        "hostname": identity.machine_name,
        "products": [dump(p) for p in products],
    }


@product_router.get("/{product_id}")
def get_product(product_id: int, catalog: Catalog, identity: Identity):
    logger.info("Fetching product", product_id=product_id, pod=identity.machine_name)
    product = catalog.get(product_id)
    if product is None:
        logger.warning("Product not found", product_id=product_id)
        return not_found(product_id)
    return dump(product)


@product_router.post("", status_code=201)
def create_product(fields: ProductFields, request: Request, catalog: Catalog, identity: Identity):
    error = validate_product(fields)
    if error:
        return JSONResponse({"message": error}, status_code=400)

    logger.info("Creating product", name=fields.name, pod=identity.machine_name)
    product = catalog.create(fields)
    location = request.url_for("get_product", product_id=product.id)
    return JSONResponse(dump(product), status_code=201, headers={"Location": str(location)})


@product_router.put("/{product_id}")
def update_product(product_id: int, fields: ProductFields, catalog: Catalog, identity: Identity):
    error = validate_product(fields)
    if error:
        return JSONResponse({"message": error}, status_code=400)

    logger.info("Updating product", product_id=product_id, pod=identity.machine_name)
    product = catalog.update(product_id, fields)
    if product is None:
        logger.warning("Product not found for update", product_id=product_id)
        return not_found(product_id)
    return dump(product)


@product_router.delete("/{product_id}", status_code=204)
def delete_product(product_id: int, catalog: Catalog, identity: Identity):
    logger.info("Deleting product", product_id=product_id, pod=identity.machine_name)
    if not catalog.delete(product_id):
        logger.warning("Product not found for deletion", product_id=product_id)
        return not_found(product_id)
    return Response(status_code=204)
