"""Main FastAPI application for the pod probe service."""

import time
from contextlib import asynccontextmanager
from http import HTTPStatus
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from podprobe.cache import ResponseCache
from podprobe.catalog import ProductCatalog
from podprobe.config import Settings, get_settings
from podprobe.db import dispose_engines, get_sync_db_session, init_models, seed_posts
from podprobe.endpoints.post_endpoints import POSTS_CACHE_KEY, post_router
from podprobe.endpoints.probe_endpoints import probe_router
from podprobe.endpoints.product_endpoints import product_router
from podprobe.endpoints.task_endpoints import task_router
from podprobe.identity import InstanceIdentity, capture_identity
from podprobe.load import MemoryLoadError
from podprobe.logging_config import configure_logging

logger = structlog.get_logger(__name__)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
    "Last-Modified": "Thu, 01 Jan 1970 00:00:00 GMT",
}


def seed_database(app: FastAPI) -> dict:
    with get_sync_db_session() as session:
        inserted = seed_posts(session)
    app.state.cache.forget(POSTS_CACHE_KEY)
    return inserted


@asynccontextmanager
async def lifespan(app: FastAPI):
    identity = app.state.identity
    await run_in_threadpool(init_models)
    if app.state.settings.seed_on_startup:
        products = app.state.catalog.seed()
        posts = await run_in_threadpool(seed_database, app)
        logger.info("Seeded sample data", products=products, **posts)
    logger.info(
        "Instance started",
        instance_id=identity.instance_id,
        pod_name=identity.pod_name,
        node_name=identity.node_name,
        pod_ip=identity.pod_ip,
        namespace=identity.namespace,
    )
    yield
    logger.info("Instance stopping", instance_id=identity.instance_id)
    await dispose_engines()


def create_app(settings: Optional[Settings] = None, identity: Optional[InstanceIdentity] = None) -> FastAPI:
    """Build the application. The identity is captured here, once per process."""
    settings = settings or get_settings()
    configure_logging("podprobe", settings.log_level, settings.log_format)

    app = FastAPI(
        title=settings.app_title,
        description="Pod identity, synthetic load and workshop CRUD APIs for Kubernetes exercises",
        version=settings.version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.identity = identity or capture_identity()
    app.state.catalog = ProductCatalog()
    app.state.cache = ResponseCache(ttl=settings.posts_cache_ttl)

    # Allow calls from any workshop dashboard
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(probe_router)
    app.include_router(product_router)
    app.include_router(task_router)
    app.include_router(post_router)

    # Responses must never be cached, or load balancing demos show a stale pod
    @app.middleware("http")
    async def no_cache_middleware(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        response.headers.update(NO_CACHE_HEADERS)
        logger.info(
            "Request handled",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
            instance_id=app.state.identity.instance_id,
        )
        return response

    @app.exception_handler(MemoryLoadError)
    async def memory_load_error_handler(request: Request, exc: MemoryLoadError):
        logger.error("Memory load failed", requested_mb=exc.requested_mb, allocated_blocks=exc.allocated_blocks)
        return JSONResponse(
            {
                "error": "Memory allocation failed",
                "message": str(exc),
                "instanceId": app.state.identity.instance_id,
                "requestedMB": exc.requested_mb,
            },
            status_code=503,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        body = {
            "error": HTTPStatus(exc.status_code).phrase,
            "path": request.url.path,
            "pod": app.state.identity.pod_name,
        }
        if exc.status_code != 404:
            body["message"] = exc.detail
        return JSONResponse(body, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error", path=request.url.path)
        return JSONResponse(
            {"error": "Internal Server Error", "message": str(exc), "pod": app.state.identity.pod_name},
            status_code=500,
            headers=NO_CACHE_HEADERS,
        )

    @app.get("/api", tags=["Probe"])
    async def api_index() -> dict:
        """Map of the available APIs."""
        return {
            "name": settings.app_title,
            "version": settings.version,
            "endpoints": {
                "info": "/info",
                "health": "/health",
                "ready": "/ready",
                "cpuLoad": "/cpu-load?duration=10&intensity=50",
                "memoryLoad": "/memory-load?size=10",
                "products": "/api/products",
                "tasks": "/api/tasks",
                "posts": "/api/posts",
                "comments": "/api/posts/{id}/comments",
            },
            "pod": app.state.identity.pod_name,
        }

    @app.post("/api/seed", tags=["Probe"])
    def seed() -> dict:
        """Insert the sample posts and comments if the database is empty."""
        return {"inserted": seed_database(app)}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)
