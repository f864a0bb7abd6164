#!/usr/bin/env python3
import argparse
import csv
import logging
import math
import os
import sys
from dataclasses import dataclass
from typing import Dict, List, Optional


logger = logging.getLogger(__name__)

NAME_KEYS = ["Name", "name"]
REQUEST_KEYS = ["Request Count", "Requests", "# requests", "# reqs", "num_requests"]
FAILURE_KEYS = ["Failure Count", "Failures", "# failures", "# fails", "num_failures"]
AVG_KEYS = ["Average Response Time", "avg_response_time"]
P95_KEYS = ["95%", "95th percentile", "p95"]


@dataclass
class EndpointStats:
    name: str
    requests: int = 0
    failures: int = 0
    avg_ms: float = 0.0
    p95_ms: float = 0.0

    @property
    def fail_ratio(self) -> float:
        return self.failures / self.requests if self.requests > 0 else 0.0


@dataclass
class Report:
    endpoints: List[EndpointStats]
    total: EndpointStats


def read_stats_csv(csv_path: str) -> List[Dict[str, str]]:
    if not os.path.exists(csv_path):
        logger.warning("Stats CSV not found (defaulting to zeros): %s", csv_path)
        return []
    with open(csv_path, newline="", encoding="utf-8") as f:
        return list(csv.DictReader(f))


def normalize_key(key: str) -> str:
    return "".join(ch for ch in key.lower() if ch.isalnum() or ch == "%")


def get_value(row: Dict[str, str], candidates: List[str]) -> Optional[str]:
    norm_map = {normalize_key(k): v for k, v in row.items() if k is not None}
    for cand in candidates:
        v = norm_map.get(normalize_key(cand))
        if v is not None and v != "":
            return v
    return None


def to_int(value: Optional[str]) -> int:
    try:
        return int(float(value)) if value is not None else 0
    except (ValueError, OverflowError):
        return 0


def to_float(value: Optional[str]) -> float:
    try:
        result = float(value) if value is not None else 0.0
    except ValueError:
        # locust writes "N/A" percentiles for endpoints with no samples
        return 0.0
    return result if math.isfinite(result) else 0.0


def row_stats(row: Dict[str, str]) -> EndpointStats:
    return EndpointStats(
        name=(get_value(row, NAME_KEYS) or "").strip(),
        requests=to_int(get_value(row, REQUEST_KEYS)),
        failures=to_int(get_value(row, FAILURE_KEYS)),
        avg_ms=to_float(get_value(row, AVG_KEYS)),
        p95_ms=to_float(get_value(row, P95_KEYS)),
    )


def build_report(rows: List[Dict[str, str]]) -> Report:
    endpoints = []
    total = EndpointStats(name="Aggregated")
    for row in rows:
        if not row:
            continue
        stats = row_stats(row)
        if stats.name.lower() == "aggregated":
            total = stats
        else:
            endpoints.append(stats)
    return Report(endpoints=endpoints, total=total)


def check_thresholds(report: Report, max_fail_ratio: Optional[float],
                     max_p95_ms: Optional[float]) -> List[str]:
    problems = []
    total = report.total
    if max_fail_ratio is not None and total.fail_ratio > max_fail_ratio:
        problems.append(f"fail_ratio {total.fail_ratio:.6f} exceeds {max_fail_ratio:.6f}")
    if max_p95_ms is not None and total.p95_ms > max_p95_ms:
        problems.append(f"p95_response_time {total.p95_ms:.2f} ms exceeds {max_p95_ms:.2f} ms")
    return problems


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Summarise a Locust run against the price store"
    )
    parser.add_argument(
        "--csv-path",
        required=True,
        help="Path to *_stats.csv produced by Locust --csv",
    )
    parser.add_argument(
        "--output",
        required=False,
        help="File to append key=value summary lines to",
    )
    parser.add_argument("--max-fail-ratio", type=float, default=None)
    parser.add_argument("--max-p95-ms", type=float, default=None)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    report = build_report(read_stats_csv(args.csv_path))
    total = report.total

    outputs = {
        "fail_ratio": f"{total.fail_ratio:.6f}",
        "avg_response_time": f"{total.avg_ms:.2f}",
        "p95_response_time": f"{total.p95_ms:.2f}",
        "total_requests": str(total.requests),
        "total_failures": str(total.failures),
    }
    if args.output:
        with open(args.output, "a", encoding="utf-8") as f:
            for k, v in outputs.items():
                f.write(f"{k}={v}\n")

    print("Price store load test summary:")
    for ep in report.endpoints:
        print(f"  {ep.name:<24} {ep.requests:6d} req {ep.failures:5d} fail"
              f"  avg {ep.avg_ms:8.2f} ms  p95 {ep.p95_ms:8.2f} ms")
    print(f"  total_requests: {total.requests}")
    print(f"  total_failures: {total.failures}")
    print(f"  fail_ratio: {total.fail_ratio:.6f}")
    print(f"  avg_response_time: {total.avg_ms:.2f} ms")
    print(f"  p95_response_time: {total.p95_ms:.2f} ms")

    problems = check_thresholds(report, args.max_fail_ratio, args.max_p95_ms)
    for problem in problems:
        logger.error("Threshold exceeded: %s", problem)
    return 1 if problems else 0


if __name__ == "__main__":
    sys.exit(main())
