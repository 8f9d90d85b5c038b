#!/usr/bin/env python3
"""Benchmark captcha rendering and PNG encoding latency."""

from __future__ import annotations

import argparse
import json
import math
import secrets
import statistics
import sys
import time
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def percentile(values: list[float], q: float) -> float:
    if not values:
        return 0.0
    points = sorted(values)
    if len(points) == 1:
        return points[0]
    pos = max(0.0, min(1.0, q)) * (len(points) - 1)
    low = int(math.floor(pos))
    high = int(math.ceil(pos))
    if low == high:
        return points[low]
    frac = pos - low
    return points[low] * (1.0 - frac) + points[high] * frac


def summarize_latencies(values: list[float]) -> dict[str, Any]:
    if not values:
        return {"count": 0, "mean_ms": 0.0, "p50_ms": 0.0, "p95_ms": 0.0, "max_ms": 0.0}
    return {
        "count": len(values),
        "mean_ms": round(statistics.fmean(values), 3),
        "p50_ms": round(percentile(values, 0.5), 3),
        "p95_ms": round(percentile(values, 0.95), 3),
        "max_ms": round(max(values), 3),
    }


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run captcha render benchmark")
    parser.add_argument("--renders", type=int, default=50, help="Number of images to render")
    parser.add_argument("--length", type=int, default=6, help="Digits per challenge")
    parser.add_argument("--width", type=int, default=240)
    parser.add_argument("--height", type=int, default=80)
    parser.add_argument("--output", default="", help="Optional JSON output path")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    if args.renders < 1:
        raise SystemExit("--renders must be >= 1")

    from packages.dotcaptcha_core.render import encode_png, render

    key = secrets.token_bytes(32)
    timings_ms: dict[str, list[float]] = {"render": [], "encode": []}
    total_bytes = 0
    for i in range(args.renders):
        digits = [secrets.randbelow(10) for _ in range(args.length)]
        started = time.perf_counter()
        image = render(f"bench-{i}", digits, args.width, args.height, key=key)
        rendered = time.perf_counter()
        total_bytes += len(encode_png(image))
        encoded = time.perf_counter()
        timings_ms["render"].append((rendered - started) * 1000.0)
        timings_ms["encode"].append((encoded - rendered) * 1000.0)

    report = {
        "renders": args.renders,
        "canvas": {"width": args.width, "height": args.height},
        "length": args.length,
        "avg_png_bytes": round(total_bytes / args.renders, 1),
        "latency": {name: summarize_latencies(values) for name, values in timings_ms.items()},
    }
    text = json.dumps(report, indent=2)
    if args.output:
        out = Path(args.output)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text, encoding="utf-8")
    print(text)


if __name__ == "__main__":
    main()
