"""Shared pytest configuration and fixtures."""

import os
import tempfile

# The engines are built at import time, so point them at a scratch database first
_DB_DIR = tempfile.mkdtemp(prefix="podprobe-tests-")
os.environ.setdefault("PODPROBE_DATABASE_URL", f"sqlite:///{_DB_DIR}/podprobe.db")
os.environ.setdefault("PODPROBE_ASYNC_DATABASE_URL", f"sqlite+aiosqlite:///{_DB_DIR}/podprobe.db")
os.environ.setdefault("PODPROBE_LOG_FORMAT", "console")
os.environ.setdefault("PODPROBE_LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from podprobe.identity import capture_identity
from podprobe.main import create_app

POD_ENV = {
    "HOSTNAME": "web-7d9f-abcde",
    "NODE_NAME": "worker-1",
    "POD_IP": "10.244.1.17",
    "NAMESPACE": "workshop",
}


@pytest.fixture
def identity():
    return capture_identity(POD_ENV)


@pytest.fixture
def app(identity):
    return create_app(identity=identity)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
