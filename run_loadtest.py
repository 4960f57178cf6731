#!/usr/bin/env python3
"""
Load driver for a deployed pod probe service.

Modes:
- spread: call /info many times and count which pods answered (load balancing check)
- cpu:    fire concurrent /cpu-load calls while probing /health latency (autoscaling check)
- memory: fire concurrent /memory-load calls
"""

import argparse
import asyncio
import json
import time
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

import httpx


async def fetch_json(client: httpx.AsyncClient, path: str, params: Dict[str, Any] = None) -> Dict[str, Any]:
    """GET ``path`` and return the decoded body, or an error record."""
    started = time.perf_counter()
    try:
        response = await client.get(path, params=params)
        response.raise_for_status()
        body = response.json()
    except (httpx.HTTPError, ValueError) as e:
        return {"ok": False, "error": str(e), "latency_ms": (time.perf_counter() - started) * 1000}
    return {"ok": True, "body": body, "latency_ms": (time.perf_counter() - started) * 1000}


async def gather_limited(coros: List, concurrency: int) -> List[Dict[str, Any]]:
    semaphore = asyncio.Semaphore(concurrency)

    async def run(coro):
        async with semaphore:
            return await coro

    return await asyncio.gather(*(run(c) for c in coros))


def tally_instances(results: List[Dict[str, Any]]) -> Dict[str, int]:
    """Count successful responses per ``instanceId (podName)``."""
    counts = Counter()
    for result in results:
        if result["ok"]:
            body = result["body"]
            counts[f"{body.get('instanceId', '?')} ({body.get('podName', '?')})"] += 1
    return dict(counts.most_common())


def latency_stats(results: List[Dict[str, Any]]) -> Dict[str, float]:
    latencies = sorted(r["latency_ms"] for r in results if r["ok"])
    if not latencies:
        return {"avg_ms": 0.0, "p50_ms": 0.0, "p95_ms": 0.0, "max_ms": 0.0}
    return {
        "avg_ms": sum(latencies) / len(latencies),
        "p50_ms": latencies[len(latencies) // 2],
        "p95_ms": latencies[min(len(latencies) - 1, int(len(latencies) * 0.95))],
        "max_ms": latencies[-1],
    }


async def run_spread(client: httpx.AsyncClient, args) -> Dict[str, Any]:
    print(f"🔍 Calling /info {args.requests} times (concurrency {args.concurrency})...")
    results = await gather_limited([fetch_json(client, "/info") for _ in range(args.requests)], args.concurrency)
    return {"instances": tally_instances(results), "latency": latency_stats(results), "failures": sum(not r["ok"] for r in results)}


async def probe_health(client: httpx.AsyncClient, stop: asyncio.Event) -> List[Dict[str, Any]]:
    """Hit /health once per second until ``stop`` is set."""
    samples = []
    while not stop.is_set():
        samples.append(await fetch_json(client, "/health"))
        try:
            await asyncio.wait_for(stop.wait(), timeout=1)
        except asyncio.TimeoutError:
            pass
    return samples


async def run_cpu(client: httpx.AsyncClient, args) -> Dict[str, Any]:
    print(f"🔥 Sending {args.requests} /cpu-load calls (duration={args.duration}s, intensity={args.intensity})...")
    stop = asyncio.Event()
    health_task = asyncio.create_task(probe_health(client, stop))
    params = {"duration": args.duration, "intensity": args.intensity}
    results = await gather_limited([fetch_json(client, "/cpu-load", params) for _ in range(args.requests)], args.requests)
    stop.set()
    health = await health_task

    operations = sum(r["body"].get("operations", 0) for r in results if r["ok"])
    return {
        "instances": tally_instances(results),
        "operations": operations,
        "failures": sum(not r["ok"] for r in results),
        "health_latency": latency_stats(health),
        "health_failures": sum(not r["ok"] for r in health),
    }


async def run_memory(client: httpx.AsyncClient, args) -> Dict[str, Any]:
    print(f"🧠 Sending {args.requests} /memory-load calls (size={args.size} MB)...")
    results = await gather_limited(
        [fetch_json(client, "/memory-load", {"size": args.size}) for _ in range(args.requests)], args.concurrency
    )
    peak = max((r["body"].get("totalMemoryMB", 0) for r in results if r["ok"]), default=0)
    return {"instances": tally_instances(results), "peak_total_memory_mb": peak, "failures": sum(not r["ok"] for r in results)}


def print_summary(mode: str, summary: Dict[str, Any]) -> None:
    print("\n" + "=" * 70)
    print(f"📊 {mode.upper()} RESULTS")
    print("=" * 70)

    instances = summary.get("instances", {})
    total = sum(instances.values())
    if instances:
        width = max(25, max(len(name) for name in instances) + 2)
        print(f"{'Instance':<{width}} {'Responses':<10} {'Share%':<8}")
        print("-" * (width + 20))
        for name, count in instances.items():
            print(f"{name:<{width}} {count:<10} {count / total * 100:<8.1f}")

    for key, value in summary.items():
        if key == "instances":
            continue
        if isinstance(value, dict):
            rendered = ", ".join(f"{k}={v:.1f}" for k, v in value.items())
            print(f"  {key:<20}: {rendered}")
        else:
            print(f"  {key:<20}: {value}")


async def run(args) -> Dict[str, Any]:
    timeout = httpx.Timeout(args.duration + 30 if args.mode == "cpu" else 30)
    async with httpx.AsyncClient(base_url=args.url, timeout=timeout) as client:
        if args.mode == "spread":
            return await run_spread(client, args)
        if args.mode == "cpu":
            return await run_cpu(client, args)
        return await run_memory(client, args)


def main():
    parser = argparse.ArgumentParser(description="Drive load against a pod probe service")
    parser.add_argument("mode", choices=["spread", "cpu", "memory"], help="What to exercise")
    parser.add_argument("--url", default="http://127.0.0.1:8080", help="Service base URL (default: http://127.0.0.1:8080)")
    parser.add_argument("--requests", type=int, default=20, help="Number of calls (default: 20)")
    parser.add_argument("--concurrency", type=int, default=5, help="Parallel calls for spread/memory (default: 5)")
    parser.add_argument("--duration", type=int, default=10, help="CPU load seconds per call (default: 10)")
    parser.add_argument("--intensity", type=int, default=50, help="CPU load intensity (default: 50)")
    parser.add_argument("--size", type=int, default=10, help="Memory load MB per call (default: 10)")
    args = parser.parse_args()

    print("🚀 Pod probe load test")
    print(f"🌐 Target: {args.url}")

    started = time.time()
    summary = asyncio.run(run(args))
    print_summary(args.mode, summary)

    out_dir = Path(f".tmp/loadtest_{datetime.now().strftime('%Y%m%d_%H%M%S')}")
    out_dir.mkdir(parents=True, exist_ok=True)
    results_path = out_dir / "results.json"
    with open(results_path, "w") as f:
        json.dump(
            {
                "metadata": {"mode": args.mode, "url": args.url, "requests": args.requests, "timestamp": datetime.now().isoformat()},
                "results": summary,
            },
            f,
            indent=2,
        )

    print(f"\n💾 Results saved: {results_path}")
    print(f"🎉 Completed in {time.time() - started:.1f}s")


if __name__ == "__main__":
    main()
