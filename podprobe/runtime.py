"""Process information read on demand through psutil."""

import platform
import socket

import psutil

BYTES_PER_MB = 1024 * 1024


def machine_name() -> str:
    return socket.gethostname()


def memory_usage_mb() -> int:
    """Resident set size of this process in whole megabytes."""
    return psutil.Process().memory_info().rss // BYTES_PER_MB


def process_snapshot() -> dict:
    """CPU time, memory and thread count of the current process."""
    proc = psutil.Process()
    with proc.oneshot():
        cpu = proc.cpu_times()
        return {
            "cpuTime": round((cpu.user + cpu.system) * 1000, 1),
            "memoryUsage": proc.memory_info().rss // BYTES_PER_MB,
            "threadCount": proc.num_threads(),
            "pythonVersion": platform.python_version(),
        }
