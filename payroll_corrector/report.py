#!/usr/bin/env python3

from __future__ import annotations

import csv
import io
import textwrap
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from reportlab.lib.pagesizes import LETTER
from reportlab.pdfgen import canvas

from payroll_corrector.core import Change, PayType, TimeEntry
from payroll_corrector.summary import ChangeSummary, format_field_name

REPORT_TITLE = "Payroll Time-Entry Report (CORRECTED)"
TOTAL_PAY_TYPES = (
    PayType.REGULAR.value,
    PayType.OVERTIME.value,
    PayType.CALL.value,
    PayType.DOUBLE_TIME.value,
    PayType.UNAPPLIED.value,
)
CSV_FIELDNAMES = [
    "employeeName",
    "employeeId",
    "jobCode",
    "jobDescription",
    "date",
    "hours",
    "payType",
    "laborRate",
    "costCode",
    "costCategory",
    "description",
    "payPeriodId",
    "reportDate",
]

MARGIN = 50
LINE_HEIGHT = 12
WRAP_CHARS = 95


def format_hours(value: Decimal) -> str:
    return f"{value.quantize(Decimal('0.01'))}"


def group_by_employee(entries: list[TimeEntry]) -> dict[str, list[TimeEntry]]:
    grouped: dict[str, list[TimeEntry]] = {}
    for entry in entries:
        grouped.setdefault(f"{entry.employee_name} - {entry.employee_id}", []).append(entry)
    return grouped


def employee_totals(entries: list[TimeEntry]) -> dict[str, Decimal]:
    """Hours per pay type plus a ``total`` key; unknown pay types count only toward the total."""
    totals = {pay_type: Decimal("0.00") for pay_type in TOTAL_PAY_TYPES}
    totals["total"] = Decimal("0.00")
    for entry in entries:
        totals["total"] += entry.hours
        for pay_type in TOTAL_PAY_TYPES:
            if entry.pay_type.lower() == pay_type.lower():
                totals[pay_type] += entry.hours
                break
    return totals


def format_entry_line(entry: TimeEntry) -> str:
    parts = [
        f"({entry.job_code})" if entry.job_code else "",
        entry.job_description,
        entry.date,
        format_hours(entry.hours),
        entry.pay_type,
        entry.labor_rate,
        entry.cost_code,
        entry.cost_category,
        entry.description,
    ]
    return " - ".join(part for part in parts if part)


def wrap_text(text: str, width: int = WRAP_CHARS) -> list[str]:
    """Split on spaces only; hyphenated and over-long words stay whole."""
    return textwrap.wrap(text, width=width, break_long_words=False, break_on_hyphens=False) or [""]


class _ReportWriter:
    def __init__(self, buffer: io.BytesIO) -> None:
        self.canvas = canvas.Canvas(buffer, pagesize=LETTER)
        self.width, self.height = LETTER
        self.y = self.height - MARGIN

    def ensure_room(self, needed: float) -> None:
        if self.y - needed < MARGIN:
            self.canvas.showPage()
            self.y = self.height - MARGIN

    def line(self, text: str, x: float = MARGIN, font: str = "Helvetica", size: int = 9) -> None:
        self.ensure_room(LINE_HEIGHT)
        self.canvas.setFont(font, size)
        self.canvas.drawString(x, self.y, text)
        self.y -= LINE_HEIGHT

    def centered(self, text: str, font: str = "Helvetica", size: int = 12) -> None:
        self.canvas.setFont(font, size)
        self.canvas.drawCentredString(self.width / 2, self.y, text)
        self.y -= size + 4

    def gap(self, amount: float) -> None:
        self.y -= amount

    def save(self) -> None:
        self.canvas.save()


def build_corrected_report_pdf(
    entries: list[TimeEntry],
    original_filename: str | None = None,
    generated_at: datetime | None = None,
) -> bytes:
    buffer = io.BytesIO()
    writer = _ReportWriter(buffer)
    stamp = generated_at or datetime.now()

    writer.centered(REPORT_TITLE, font="Helvetica-Bold", size=16)
    writer.centered(f"Generated: {stamp.strftime('%a %b %d, %Y %I:%M:%S %p')}")
    if original_filename:
        writer.centered(f"Source: {original_filename}")
    writer.canvas.setLineWidth(1)
    writer.canvas.line(MARGIN, writer.y, writer.width - MARGIN, writer.y)
    writer.gap(20)

    for employee_key, employee_entries in group_by_employee(entries).items():
        writer.ensure_room(LINE_HEIGHT * 4)
        writer.line(employee_key, font="Helvetica-Bold", size=10)
        writer.gap(3)
        for entry in employee_entries:
            for chunk in wrap_text(format_entry_line(entry)):
                writer.line(chunk, x=MARGIN + 20)
            writer.gap(3)

        totals = employee_totals(employee_entries)
        for pay_type in TOTAL_PAY_TYPES:
            if totals[pay_type] > 0:
                writer.line(f"{format_hours(totals[pay_type])} {pay_type}", x=MARGIN + 20)
        writer.line(f"Employee Totals {format_hours(totals['total'])}", x=MARGIN + 20, font="Helvetica-Bold")
        writer.gap(15)

    report_totals = employee_totals(entries)
    writer.ensure_room(LINE_HEIGHT * 8)
    writer.line("Report Totals", font="Helvetica-Bold", size=11)
    for pay_type in TOTAL_PAY_TYPES:
        if report_totals[pay_type] > 0:
            writer.line(f"{format_hours(report_totals[pay_type])} {pay_type}", x=MARGIN + 20)
    writer.line(f"Total Hours {format_hours(report_totals['total'])}", x=MARGIN + 20, font="Helvetica-Bold")
    writer.save()
    return buffer.getvalue()


def write_entries_csv(path: Path, entries: list[TimeEntry]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=CSV_FIELDNAMES, extrasaction="ignore")
        writer.writeheader()
        for entry in entries:
            writer.writerow(entry.to_json())


def changes_to_markdown(summary: ChangeSummary, changes: list[Change], filename: str | None = None) -> str:
    lines: list[str] = []

    lines.append("# Payroll Correction Summary")
    lines.append("")
    if filename:
        lines.append(f"- Source: {filename}")
    lines.append(f"- Total Corrections: {summary.total_changes}")
    lines.append(f"- Employees Affected: {summary.employees_affected} of {summary.total_employees}")
    lines.append(f"- Employees Needing Corrections: {summary.percent_employees_affected}%")
    lines.append("")

    if not changes:
        lines.append("No corrections were needed.")
        lines.append("")
        return "\n".join(lines)

    lines.append("## Changes by Rule")
    lines.append("| Rule | Changes |")
    lines.append("| :--- | ---: |")
    for rule, count in summary.changes_by_rule.items():
        lines.append(f"| {rule} | {count} |")
    lines.append("")

    lines.append("## Changes by Field")
    lines.append("| Field | Changes |")
    lines.append("| :--- | ---: |")
    for field_name, count in summary.changes_by_field.items():
        lines.append(f"| {format_field_name(field_name)} | {count} |")
    lines.append("")

    lines.append("## Most Corrected Employees")
    for name, count in summary.top_employees():
        lines.append(f"- {name}: {count}")
    lines.append("")

    lines.append("## Change Log")
    lines.append("| Employee | Date | Field | Original | Corrected | Rule |")
    lines.append("| :--- | :--- | :--- | :--- | :--- | :--- |")
    for change in changes:
        lines.append(
            f"| {change.employee_name} ({change.employee_id}) | {change.date} | "
            f"{format_field_name(change.field)} | {change.original_value} | "
            f"{change.corrected_value} | {change.rule}: {change.rule_name} |"
        )
    lines.append("")

    return "\n".join(lines)
