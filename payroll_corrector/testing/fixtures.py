#!/usr/bin/env python3
"""
Generates synthetic payroll time-entry report PDFs for E2E testing.
"""

import sys
from pathlib import Path

from reportlab.lib.pagesizes import LETTER
from reportlab.pdfgen import canvas

SAMPLE_EMPLOYEES: list[tuple[str, str, list[str]]] = [
    (
        "John Smith",
        "101",
        [
            "(J1001)Walk-in cooler 08/04/2025 8.00 - Regular - Tech - SERVICE - DirLab - Compressor swap",
            "(J1002)Ice machine 08/05/2025 2.50 - Call - WN TECH - SERVICE - DirLab - After hours call",
        ],
    ),
    (
        "Jane Doe",
        "202",
        [
            "(J2001)Rooftop unit 08/03/2025 4.00 - Regular - SCH_TECH - SERVICE - DirLab - Sunday repair",
            "(J2002)Office 08/06/2025 1.00 - Overtime - Tech - 1COAD - Office - Paperwork",
        ],
    ),
]


def report_lines(employees: list[tuple[str, str, list[str]]] = SAMPLE_EMPLOYEES) -> list[str]:
    """The text lines of a report, in the order the exporter prints them."""
    lines = [
        "Mon Aug 11, 2025",
        "Time Entry Report",
        "Pay Period Id: 2025-32",
    ]
    for name, employee_id, entries in employees:
        lines.append(f"{name} - {employee_id}")
        lines.append("Job Date Hours Pay Type Labor Rate Cost Code")
        lines.extend(entries)
        lines.append("Employee Totals")
    lines.append("Report Totals")
    return lines


def generate_report(path: Path, lines: list[str] | None = None) -> None:
    c = canvas.Canvas(str(path), pagesize=LETTER)
    c.setFont("Courier", 8)

    y = 750
    for line in lines or report_lines():
        if y < 50:
            c.showPage()
            c.setFont("Courier", 8)
            y = 750
        c.drawString(30, y, line)
        y -= 14

    c.save()
    print(f"Generated Report: {path}")


def main_gen(output_dir: Path) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    generate_report(output_dir / "time_entry_report.pdf")


if __name__ == "__main__":
    if len(sys.argv) > 1:
        out = Path(sys.argv[1])
    else:
        out = Path("e2e_fixtures")
    main_gen(out)
