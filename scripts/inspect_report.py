#!/usr/bin/env python3

from __future__ import annotations

import argparse
import json
import sys
from decimal import Decimal
from pathlib import Path
from typing import Any

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from payroll_corrector.core import TimeEntry, extract_report_text, parse_report


def employee_summary(entries: list[TimeEntry]) -> dict[str, dict[str, Any]]:
    summary: dict[str, dict[str, Any]] = {}
    for entry in entries:
        row = summary.setdefault(entry.employee_name, {"id": entry.employee_id, "count": 0, "hours": Decimal("0")})
        row["count"] += 1
        row["hours"] += entry.hours
    return summary


def write_json(path: Path, payload: list[dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def main() -> None:
    parser = argparse.ArgumentParser(description="Parse a time-entry report and show what was recovered.")
    parser.add_argument("report", type=Path, help="Report PDF or extracted text file.")
    parser.add_argument("--out", type=Path, default=None, help="Write parsed entries JSON here.")
    parser.add_argument("--limit", type=int, default=10, help="Employees to list (default: 10).")
    args = parser.parse_args()

    if args.report.suffix.lower() == ".txt":
        text = args.report.read_text(encoding="utf-8")
    else:
        text = extract_report_text(args.report)
    print(f"Text extracted, length: {len(text)}")

    parsed = parse_report(text)
    summary = employee_summary(parsed.entries)
    print(f"Total employees parsed: {len(summary)}")
    print(f"Total time entries parsed: {len(parsed.entries)}")
    print(f"Pay Period Id: {parsed.pay_period_id or 'n/a'}  Report Date: {parsed.report_date or 'n/a'}")

    for name, row in list(summary.items())[: args.limit]:
        print(f"  {name} (ID: {row['id']}): {row['count']} entries, {row['hours']:.2f} hours")
    if len(summary) > args.limit:
        print(f"  ... and {len(summary) - args.limit} more employees")

    for anomaly in parsed.anomalies:
        print(f"  [line {anomaly['line_index']}] {anomaly['code']}: {anomaly['evidence']}")

    if args.out:
        write_json(args.out, [entry.to_json() for entry in parsed.entries])
        print(f"Parsed entries JSON: {args.out}")


if __name__ == "__main__":
    main()
