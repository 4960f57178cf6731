"""
Instance identity and synthetic load endpoints.

Hit /info repeatedly through a Service to watch requests rotate across pods,
and use /cpu-load or /memory-load to push a HorizontalPodAutoscaler over its
target.
"""

import time
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, PlainTextResponse

from podprobe.db import ping
from podprobe.identity import InstanceIdentity, get_identity, info_timestamp, utcnow
from podprobe.load import DEFAULT_DURATION, DEFAULT_INTENSITY, DEFAULT_SIZE_MB, generate_cpu_load, generate_memory_load
from podprobe.runtime import process_snapshot

logger = structlog.get_logger(__name__)

# Router configuration
probe_router = APIRouter(tags=["Probe"])

Identity = Annotated[InstanceIdentity, Depends(get_identity)]


@probe_router.get("/", response_class=PlainTextResponse)
async def banner(identity: Identity) -> str:
    """Plain text line naming the instance that answered."""
    return f"Pod Load Balancer Demo API - Instance {identity.instance_id} {identity.node_name}"


@probe_router.get("/info")
async def info(request: Request, identity: Identity) -> dict:
    """Identity of the serving pod plus a few process statistics."""
    now = utcnow()
    return {
        "environment": request.app.state.settings.app_title,
        "instanceId": identity.instance_id,
        "podName": identity.pod_name,
        "nodeName": identity.node_name,
        "podIP": identity.pod_ip,
        "namespace": identity.namespace,
        "timestamp": info_timestamp(now),
        "machineName": identity.machine_name,
        "processId": identity.process_id,
        "startedAt": identity.process_start_time.isoformat(),
        "uptimeSeconds": round((now - identity.process_start_time).total_seconds(), 3),
        **process_snapshot(),
    }


@probe_router.get("/health")
async def health(identity: Identity) -> dict:
    """Liveness check. Does not touch any dependency."""
    return {
        "status": "healthy",
        "instanceId": identity.instance_id,
        "timestamp": utcnow().isoformat(),
    }


@probe_router.get("/ready")
def ready(identity: Identity):
    """Readiness check: the database must answer a trivial query."""
    body = {
        "status": "ready",
        "instanceId": identity.instance_id,
        "timestamp": utcnow().isoformat(),
    }
    try:
        ping()
    except Exception as e:
        logger.warning("Readiness check failed", error=str(e))
        body.update(status="unhealthy", database="disconnected", databaseError=str(e))
        return JSONResponse(body, status_code=503)
    body["database"] = "connected"
    return body


@probe_router.get("/cpu-load")
async def cpu_load(identity: Identity, duration: int = DEFAULT_DURATION, intensity: int = DEFAULT_INTENSITY) -> dict:
    """
    Burn CPU for ``duration`` seconds (1-60, else 10) at ``intensity`` (1-100, else 50).

    The loop yields to the event loop between batches, so health probes against
    this pod keep answering while the load runs.
    """
    logger.info("CPU load requested", duration=duration, intensity=intensity, instance_id=identity.instance_id)
    started = time.monotonic()
    report = await generate_cpu_load(duration, intensity)
    logger.info(
        "CPU load finished",
        duration=report.duration,
        intensity=report.intensity,
        operations=report.operations,
        elapsed=round(time.monotonic() - started, 3),
    )
    return {
        "instanceId": identity.instance_id,
        "podName": identity.pod_name,
        "duration": report.duration,
        "intensity": report.intensity,
        "operations": report.operations,
        "completedAt": report.completed_at.isoformat(),
        "cpuLoadGenerated": True,
    }


@probe_router.get("/memory-load")
async def memory_load(identity: Identity, size: int = DEFAULT_SIZE_MB) -> dict:
    """Allocate ``size`` MB (1-100, else 10) for the duration of the request."""
    report = await run_in_threadpool(generate_memory_load, size)
    logger.info(
        "Memory load finished",
        memory_allocated=report.memory_allocated,
        total_memory_mb=report.total_memory_mb,
        instance_id=identity.instance_id,
    )
    return {
        "instanceId": identity.instance_id,
        "podName": identity.pod_name,
        "memoryAllocated": report.memory_allocated,
        "totalMemoryMB": report.total_memory_mb,
        "memoryBlocks": report.memory_blocks,
        "timestamp": utcnow().isoformat(),
    }
