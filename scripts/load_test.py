from __future__ import annotations

import argparse
import asyncio
import random
import time
from collections import Counter

import httpx


KINDS = ("p", "f", "e", "r")


def _check_invariants(body: dict, window_size: int) -> list[str]:
    problems = []
    current = body.get("windowCurrState", [])
    if len(current) > window_size:
        problems.append(f"window length {len(current)} exceeds {window_size}")
    if len(set(current)) != len(current):
        problems.append("duplicate values in window")
    expected_avg = round(sum(current) / len(current), 2) if current else 0
    if abs(body.get("avg", 0) - expected_avg) > 0.005:
        problems.append(f"avg {body.get('avg')} != {expected_avg}")
    return problems


async def main() -> None:
    parser = argparse.ArgumentParser(description="Number window service load test runner")
    parser.add_argument("--base-url", default="http://localhost:9876")
    parser.add_argument("--requests", type=int, default=500)
    parser.add_argument("--concurrency", type=int, default=25)
    parser.add_argument("--window-size", type=int, default=10)
    parser.add_argument("--kinds", default=",".join(KINDS))
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()

    rng = random.Random(args.seed)
    kinds = [kind for kind in args.kinds.split(",") if kind]
    statuses: Counter[int] = Counter()
    violations: list[str] = []
    latencies: list[float] = []
    semaphore = asyncio.Semaphore(args.concurrency)

    async with httpx.AsyncClient(base_url=args.base_url, timeout=10.0) as client:

        async def _hit(kind: str) -> None:
            async with semaphore:
                start = time.perf_counter()
                response = await client.get(
                    f"/numbers/{kind}", params={"windowSize": args.window_size}
                )
                latencies.append(time.perf_counter() - start)
                statuses[response.status_code] += 1
                if response.status_code == 200:
                    for problem in _check_invariants(response.json(), args.window_size):
                        violations.append(f"{kind}: {problem}")

        await asyncio.gather(*[_hit(rng.choice(kinds)) for _ in range(args.requests)])

        health = await client.get("/health")

    latencies.sort()
    p95 = latencies[int(len(latencies) * 0.95) - 1] if latencies else 0.0
    print({"statuses": dict(statuses), "p95_ms": round(p95 * 1000, 2), "health": health.json()})
    if violations:
        print(f"{len(violations)} invariant violations, first: {violations[:5]}")
        raise SystemExit(1)


if __name__ == "__main__":
    asyncio.run(main())
