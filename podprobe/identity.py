"""Pod identity captured once per process.

The snapshot tells a caller which replica answered a request, which is how
round-robin load balancing is made visible in the workshop.
"""

import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping, Optional

from fastapi import Request

from podprobe.runtime import machine_name as current_machine_name

INFO_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S UTC"


@dataclass(frozen=True)
class InstanceIdentity:
    """Read-only facts about the running replica."""

    instance_id: str
    pod_name: str
    node_name: str
    pod_ip: str
    namespace: str
    machine_name: str
    process_id: int
    process_start_time: datetime


def resolve(env_var: str, fallback: str, environ: Optional[Mapping[str, str]] = None) -> str:
    """Return ``env_var`` from the environment, or ``fallback`` when it is unset."""
    environ = os.environ if environ is None else environ
    value = environ.get(env_var)
    return fallback if value is None else value


def new_instance_id() -> str:
    return uuid.uuid4().hex[:8]


def capture_identity(environ: Optional[Mapping[str, str]] = None) -> InstanceIdentity:
    """Build the identity snapshot. Call once at process start."""
    machine_name = current_machine_name()
    return InstanceIdentity(
        instance_id=new_instance_id(),
        pod_name=resolve("HOSTNAME", "unknown-pod", environ),
        node_name=resolve("NODE_NAME", machine_name, environ),
        pod_ip=resolve("POD_IP", "unknown-ip", environ),
        namespace=resolve("NAMESPACE", "default", environ),
        machine_name=machine_name,
        process_id=os.getpid(),
        process_start_time=utcnow(),
    )


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def info_timestamp(moment: Optional[datetime] = None) -> str:
    """Timestamp in the ``2024-01-31 12:00:00 UTC`` form used by ``/info``."""
    return (moment or utcnow()).strftime(INFO_TIMESTAMP_FORMAT)


def get_identity(request: Request) -> InstanceIdentity:
    """FastAPI dependency returning the snapshot stored by the app factory."""
    return request.app.state.identity
