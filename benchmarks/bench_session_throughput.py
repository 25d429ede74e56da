"""Benchmark: Session set/get throughput and reap duration.

Measures how many set+get round-trips per second the file store
completes in a temporary directory, then times one reap over a directory
where half of the sessions have expired.
"""
from __future__ import annotations

import asyncio
import json
import sys
import tempfile
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from session_file_store.config import REAP_DISABLED
from session_file_store.expiry import LAST_ACCESS_KEY
from session_file_store.store import FileSessionStore

_ITERATIONS: int = 2_000
_REAP_FILES: int = 2_000


async def bench_set_get_throughput(path: Path) -> dict[str, object]:
    """Benchmark FileSessionStore set+get round-trip throughput.

    Returns
    -------
    dict with keys: operation, iterations, total_seconds, ops_per_second,
    avg_latency_ms, p99_latency_ms.
    """
    store = FileSessionStore(path=path, retries=0, reap_interval=REAP_DISABLED)

    latencies_ms: list[float] = []
    for index in range(_ITERATIONS):
        t0 = time.perf_counter()
        await store.set(f"bench-{index}", {"cookie": {"path": "/"}, "views": index})
        await store.get(f"bench-{index}")
        latencies_ms.append((time.perf_counter() - t0) * 1000)

    total = sum(latencies_ms) / 1000
    sorted_lats = sorted(latencies_ms)
    n = len(sorted_lats)

    result: dict[str, object] = {
        "operation": "session_set_get_throughput",
        "iterations": _ITERATIONS,
        "total_seconds": round(total, 4),
        "ops_per_second": round(_ITERATIONS / total, 1),
        "avg_latency_ms": round(sum(latencies_ms) / n, 4),
        "p99_latency_ms": round(sorted_lats[min(int(n * 0.99), n - 1)], 4),
    }
    print(
        f"[bench_session_throughput] {result['operation']}: "
        f"{result['ops_per_second']:,.0f} ops/sec  "
        f"avg {result['avg_latency_ms']:.4f} ms"
    )
    return result


async def bench_reap(path: Path) -> dict[str, object]:
    """Time one reap over ``_REAP_FILES`` sessions, half of them expired."""
    path.mkdir(parents=True, exist_ok=True)
    for index in range(_REAP_FILES):
        record = {"cookie": {}, LAST_ACCESS_KEY: 0 if index % 2 else int(time.time() * 1000)}
        (path / f"reap-{index}.json").write_text(json.dumps(record), encoding="utf-8")

    store = FileSessionStore(path=path, ttl=60, retries=0, reap_interval=REAP_DISABLED)
    t0 = time.perf_counter()
    reaped = await store.reap()
    elapsed = time.perf_counter() - t0

    result: dict[str, object] = {
        "operation": "session_reap",
        "files": reaped.scanned,
        "deleted": reaped.deleted,
        "total_seconds": round(elapsed, 4),
        "files_per_second": round(reaped.scanned / elapsed, 1),
    }
    print(
        f"[bench_session_throughput] {result['operation']}: "
        f"{result['deleted']} of {result['files']} deleted in {result['total_seconds']}s"
    )
    return result


def run_benchmark() -> dict[str, object]:
    """Entry point returning the benchmark result dict."""

    async def run_all() -> dict[str, object]:
        with tempfile.TemporaryDirectory() as tmp:
            throughput = await bench_set_get_throughput(Path(tmp) / "throughput")
            reap = await bench_reap(Path(tmp) / "reap")
        return {"throughput": throughput, "reap": reap}

    return asyncio.run(run_all())


if __name__ == "__main__":
    result = run_benchmark()
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)
    output_path = results_dir / "throughput_baseline.json"
    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(result, fh, indent=2)
    print(f"Results saved to {output_path}")
