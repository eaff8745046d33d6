#!/usr/bin/env python3

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import Path
from typing import Any

import pypdfium2 as pdfium

logger = logging.getLogger(__name__)

PAY_PERIOD_RE = re.compile(r"Pay Period Id:\s*(\S+)")
REPORT_DATE_RE = re.compile(
    r"\b(?:Mon|Tue|Wed|Thu|Fri|Sat|Sun)\w*\s+"
    r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)\w*\s+\d{1,2},\s+\d{4}"
)
EMPLOYEE_HEADER_RE = re.compile(r"^([A-Za-z',.\s-]+?)\s+-\s+(\d+)")
EMPLOYEE_TOTALS_RE = re.compile(r"Employee Totals\s+(\d+\.?\d*)")
ENTRY_DATE_RE = re.compile(r"\d{1,2}/\d{1,2}/\d{4}")
BARE_DATE_RE = re.compile(r"^(\d{1,2}/\d{1,2}/\d{4})$")
BARE_HOURS_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*$")
HOURS_AFTER_DATE_RE = re.compile(r"^\s+(\d+(?:\.\d+)?)(?=\s|$)")
JOB_CODE_PREFIX_RE = re.compile(r"^\(([^)]+)\)")
JOB_CODE_LINE_RE = re.compile(r"^\(([A-Z][^)]*)\)(.*)$")
DAMAGED_JOB_CODE_LINE_RE = re.compile(r"^([A-Z]+)\)(.*)$")
TRAILING_COUNT_RE = re.compile(r"^\d+$")
FIELD_SEPARATOR = " - "

DEFAULT_PAY_TYPE = "Regular"
DEFAULT_LABOR_RATE = "Tech"
DEFAULT_COST_CODE = "SERVICE"
DEFAULT_COST_CATEGORY = "DirLab"


class DocumentReadError(RuntimeError):
    """Raised when a report document cannot be turned into text."""


class PayType(str, Enum):
    REGULAR = "Regular"
    OVERTIME = "Overtime"
    DOUBLE_TIME = "Double Time"
    CALL = "Call"
    UNAPPLIED = "Unapplied"
    OT_CLEARING = "OTClearing"


# Substring search order used when a pay type is embedded in a larger field.
PAY_TYPE_SEARCH_ORDER = (
    PayType.REGULAR,
    PayType.OVERTIME,
    PayType.DOUBLE_TIME,
    PayType.CALL,
    PayType.UNAPPLIED,
    PayType.OT_CLEARING,
)


class LineKind(str, Enum):
    PAY_PERIOD = "pay_period"
    REPORT_DATE = "report_date"
    EMPLOYEE_HEADER = "employee_header"
    TIME_ENTRY = "time_entry"
    EMPLOYEE_TOTALS = "employee_totals"
    REPORT_TOTALS = "report_totals"
    NOISE = "noise"


@dataclass
class TimeEntry:
    job_code: str
    job_description: str
    date: str
    hours: Decimal
    pay_type: str = DEFAULT_PAY_TYPE
    labor_rate: str = DEFAULT_LABOR_RATE
    cost_code: str = DEFAULT_COST_CODE
    cost_category: str = DEFAULT_COST_CATEGORY
    description: str = ""
    employee_name: str = ""
    employee_id: str = ""
    pay_period_id: str | None = None
    report_date: str | None = None
    original_line: str = ""

    @property
    def work_date(self) -> date | None:
        return parse_entry_date(self.date)

    def to_json(self) -> dict[str, Any]:
        return {
            "employeeName": self.employee_name,
            "employeeId": self.employee_id,
            "jobCode": self.job_code,
            "jobDescription": self.job_description,
            "date": self.date,
            "hours": as_float(self.hours),
            "payType": self.pay_type,
            "laborRate": self.labor_rate,
            "costCode": self.cost_code,
            "costCategory": self.cost_category,
            "description": self.description,
            "payPeriodId": self.pay_period_id,
            "reportDate": self.report_date,
            "originalLine": self.original_line,
        }

    @classmethod
    def from_json(cls, payload: dict[str, Any]) -> TimeEntry:
        hours = parse_hours(str(payload.get("hours", "")))
        return cls(
            job_code=payload.get("jobCode", ""),
            job_description=payload.get("jobDescription", ""),
            date=payload.get("date", ""),
            hours=hours if hours is not None else Decimal("0"),
            pay_type=payload.get("payType", DEFAULT_PAY_TYPE),
            labor_rate=payload.get("laborRate", DEFAULT_LABOR_RATE),
            cost_code=payload.get("costCode", DEFAULT_COST_CODE),
            cost_category=payload.get("costCategory", DEFAULT_COST_CATEGORY),
            description=payload.get("description", ""),
            employee_name=payload.get("employeeName", ""),
            employee_id=str(payload.get("employeeId", "")),
            pay_period_id=payload.get("payPeriodId"),
            report_date=payload.get("reportDate"),
            original_line=payload.get("originalLine", ""),
        )


@dataclass(frozen=True)
class Change:
    employee_name: str
    employee_id: str
    date: str
    field: str
    original_value: str
    corrected_value: str
    rule: str
    rule_name: str
    description: str

    def to_json(self) -> dict[str, Any]:
        return {
            "employeeName": self.employee_name,
            "employeeId": self.employee_id,
            "date": self.date,
            "field": self.field,
            "originalValue": self.original_value,
            "correctedValue": self.corrected_value,
            "rule": self.rule,
            "ruleName": self.rule_name,
            "description": self.description,
        }


@dataclass
class ParseResult:
    entries: list[TimeEntry]
    employee_count: int = 0
    pay_period_id: str | None = None
    report_date: str | None = None
    anomalies: list[dict[str, str]] = field(default_factory=list)


def as_float(value: Decimal | None) -> float | None:
    if value is None:
        return None
    return float(value.quantize(Decimal("0.01")))


def parse_hours(token: str) -> Decimal | None:
    try:
        value = Decimal(token.strip())
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def parse_entry_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), "%m/%d/%Y").date()
    except ValueError:
        return None


def match_pay_period_id(line: str) -> str | None:
    match = PAY_PERIOD_RE.search(line)
    return match.group(1) if match else None


def match_report_date(line: str) -> str | None:
    match = REPORT_DATE_RE.search(line)
    return match.group(0) if match else None


def match_employee_header(line: str) -> tuple[str, str] | None:
    if "Date" in line or "Hours" in line:
        return None
    match = EMPLOYEE_HEADER_RE.match(line)
    if match is None:
        return None
    return match.group(1).strip(), match.group(2).strip()


def match_employee_totals_hours(line: str) -> Decimal | None:
    match = EMPLOYEE_TOTALS_RE.search(line)
    return parse_hours(match.group(1)) if match else None


def classify_line(line: str) -> LineKind:
    """Classify one report line by pattern alone.

    Markers are checked from the strongest boundary down, so a line that
    ends the report is never mistaken for an entry that happens to carry a
    date.
    """
    text = line.strip()
    if not text:
        return LineKind.NOISE
    if "Report Totals" in text:
        return LineKind.REPORT_TOTALS
    if "Employee Totals" in text:
        return LineKind.EMPLOYEE_TOTALS
    if "Pay Period Id:" in text:
        return LineKind.PAY_PERIOD
    if REPORT_DATE_RE.search(text) and not ENTRY_DATE_RE.search(text):
        return LineKind.REPORT_DATE
    if match_employee_header(text) is not None:
        return LineKind.EMPLOYEE_HEADER
    if ENTRY_DATE_RE.search(text):
        return LineKind.TIME_ENTRY
    return LineKind.NOISE


def match_pay_type(value: str) -> str:
    for pay_type in PAY_TYPE_SEARCH_ORDER:
        if pay_type.value in value:
            return pay_type.value
    return DEFAULT_PAY_TYPE


def extract_single_line_entry(line: str) -> TimeEntry | None:
    """Parse `(JOB)desc MM/DD/YYYY HOURS - PayType - Rate - Code - Category - Desc`."""
    text = line.strip()
    date_match = ENTRY_DATE_RE.search(text)
    if date_match is None:
        return None
    date_str = date_match.group(0)

    hours_match = HOURS_AFTER_DATE_RE.match(text[date_match.end() :])
    if hours_match is None:
        logger.debug("No hours after %s in line: %s", date_str, text)
        return None
    hours = parse_hours(hours_match.group(1))
    if hours is None or hours <= 0:
        logger.debug("Rejected non-positive hours in line: %s", text)
        return None

    pay_type = DEFAULT_PAY_TYPE
    labor_rate = DEFAULT_LABOR_RATE
    cost_code = DEFAULT_COST_CODE
    cost_category = DEFAULT_COST_CATEGORY
    description = ""

    parts = text.split(FIELD_SEPARATOR)
    start = next(
        (index + 1 for index, part in enumerate(parts) if date_str in part and index < len(parts) - 1),
        None,
    )
    if start is not None:
        trailing = [part.strip() for part in parts[start:]]
        pay_type = match_pay_type(trailing[0])
        if len(trailing) > 1:
            labor_rate = trailing[1]
        if len(trailing) > 2:
            cost_code = trailing[2]
        if len(trailing) > 3:
            cost_category = trailing[3]
        if len(trailing) > 4:
            description = FIELD_SEPARATOR.join(trailing[4:])

    job_code = ""
    job_description = ""
    job_match = JOB_CODE_PREFIX_RE.match(text)
    if job_match:
        job_code = job_match.group(1)
        job_description = text[job_match.end() :].split(date_str)[0].strip()

    return TimeEntry(
        job_code=job_code,
        job_description=job_description,
        date=date_str,
        hours=hours,
        pay_type=pay_type,
        labor_rate=labor_rate,
        cost_code=cost_code,
        cost_category=cost_category,
        description=description,
        original_line=text,
    )


def match_job_code_line(line: str) -> tuple[str, str] | None:
    match = JOB_CODE_LINE_RE.match(line) or DAMAGED_JOB_CODE_LINE_RE.match(line)
    if match is None:
        return None
    return match.group(1), (match.group(2) or "").strip()


def extract_four_line_entry(lines: list[str], index: int) -> tuple[TimeEntry | None, int]:
    """Parse the job/date/hours/fields layout starting at ``lines[index]``.

    Returns the entry and the number of lines it consumed, including the
    trailing ``Source``/``Labor`` and bare counter lines the exporter prints
    beneath some entries.
    """
    job = match_job_code_line(lines[index])
    if job is None or index + 3 >= len(lines):
        return None, 0
    job_code, job_description = job
    date_line, hours_line, fields_line = lines[index + 1], lines[index + 2], lines[index + 3]

    date_match = BARE_DATE_RE.match(date_line)
    hours_match = BARE_HOURS_RE.match(hours_line)
    if date_match is None or hours_match is None or FIELD_SEPARATOR not in fields_line:
        return None, 0
    hours = parse_hours(hours_match.group(1))
    if hours is None or hours <= 0:
        return None, 0

    parts = [part.strip() for part in fields_line.split(FIELD_SEPARATOR)]
    entry = TimeEntry(
        job_code=job_code,
        job_description=job_description,
        date=date_match.group(1),
        hours=hours,
        pay_type=parts[0] or DEFAULT_PAY_TYPE,
        labor_rate=parts[1] if len(parts) > 1 and parts[1] else DEFAULT_LABOR_RATE,
        cost_code=parts[2] if len(parts) > 2 and parts[2] else DEFAULT_COST_CODE,
        cost_category=parts[3] if len(parts) > 3 and parts[3] else DEFAULT_COST_CATEGORY,
        description=FIELD_SEPARATOR.join(parts[4:]),
        original_line=" ".join(lines[index : index + 4]),
    )

    consumed = 4
    cursor = index + consumed
    if cursor < len(lines) and (lines[cursor] == "Source" or lines[cursor].startswith("Labor")):
        consumed += 1
        cursor += 1
    if cursor < len(lines) and TRAILING_COUNT_RE.match(lines[cursor]):
        consumed += 1
    return entry, consumed


def extract_time_entry(lines: list[str], index: int) -> tuple[TimeEntry | None, int]:
    """Try the single-line layout first, then the four-line window."""
    try:
        entry = extract_single_line_entry(lines[index])
        if entry is not None:
            return entry, 1
        return extract_four_line_entry(lines, index)
    except (ArithmeticError, IndexError, ValueError) as exc:
        logger.debug("Extraction failed at line %d: %s", index + 1, exc)
        return None, 0


def stamp_entries(
    entries: list[TimeEntry],
    employee: tuple[str, str],
    pay_period_id: str | None,
    report_date: str | None,
) -> list[TimeEntry]:
    name, employee_id = employee
    return [
        replace(
            entry,
            employee_name=name,
            employee_id=employee_id,
            pay_period_id=pay_period_id,
            report_date=report_date,
        )
        for entry in entries
    ]


def normalize_report_lines(text: str) -> list[str]:
    lines = [line.strip() for line in text.splitlines()]
    return [line for line in lines if line]


def parse_report(text: str) -> ParseResult:
    """Recover the report -> employee -> time entry hierarchy from raw text.

    Best effort: a line that matches nothing is skipped, and whatever was
    recovered is returned. Lines after ``Report Totals`` are never read.
    """
    lines = normalize_report_lines(text)
    logger.debug("Total lines to process: %d", len(lines))

    entries: list[TimeEntry] = []
    anomalies: list[dict[str, str]] = []
    employee: tuple[str, str] | None = None
    buffered: list[TimeEntry] = []
    pay_period_id: str | None = None
    report_date: str | None = None
    employee_count = 0

    def flush() -> None:
        if employee is not None and buffered:
            logger.debug("Saving %d entries for %s", len(buffered), employee[0])
            entries.extend(stamp_entries(buffered, employee, pay_period_id, report_date))
        buffered.clear()

    index = 0
    while index < len(lines):
        line = lines[index]
        kind = classify_line(line)

        if kind is LineKind.REPORT_TOTALS:
            logger.debug("Reached Report Totals at line %d", index + 1)
            break

        if kind in (LineKind.PAY_PERIOD, LineKind.REPORT_DATE):
            found_period = match_pay_period_id(line)
            if found_period:
                pay_period_id = found_period
                logger.debug("Found Pay Period ID: %s", pay_period_id)
            found_date = match_report_date(line)
            if found_date and report_date is None:
                report_date = found_date
                logger.debug("Found Report Date: %s", report_date)
            index += 1
            continue

        if kind is LineKind.EMPLOYEE_HEADER:
            flush()
            employee = match_employee_header(line)
            employee_count += 1
            logger.debug("Found employee #%d: %s", employee_count, employee)
            index += 1
            continue

        if kind is LineKind.EMPLOYEE_TOTALS:
            total_hours = match_employee_totals_hours(line)
            if employee is not None and total_hours is not None:
                logger.debug("Employee %s total hours: %s", employee[0], total_hours)
            flush()
            employee = None
            index += 1
            continue

        if employee is not None:
            entry, consumed = extract_time_entry(lines, index)
            if entry is not None:
                buffered.append(entry)
                index += consumed
                continue
            if kind is LineKind.TIME_ENTRY:
                anomalies.append(
                    {
                        "code": "unparsed_time_entry",
                        "severity": "warning",
                        "message": f"Line with a date did not yield a time entry for {employee[0]}.",
                        "evidence": line,
                        "line_index": str(index + 1),
                    }
                )
        index += 1

    flush()

    average = len(entries) / employee_count if employee_count else 0
    logger.info(
        "Parsed %d employees, %d time entries (%.1f per employee)",
        employee_count,
        len(entries),
        average,
    )
    if not entries:
        logger.warning("No time entries were parsed from the report text.")

    return ParseResult(
        entries=entries,
        employee_count=employee_count,
        pay_period_id=pay_period_id,
        report_date=report_date,
        anomalies=anomalies,
    )


def parse_employee_entries(text: str) -> list[TimeEntry]:
    return parse_report(text).entries


def extract_report_text(source: Path | bytes) -> str:
    """Render every page of a PDF into plain text with pdfium."""
    try:
        document = pdfium.PdfDocument(source if isinstance(source, bytes) else str(source))
    except (pdfium.PdfiumError, OSError) as exc:
        raise DocumentReadError(f"Failed to extract text from PDF: {exc}") from exc

    pages_text: list[str] = []
    try:
        for page in document:
            textpage = page.get_textpage()
            pages_text.append(textpage.get_text_range())
    except pdfium.PdfiumError as exc:
        raise DocumentReadError(f"Failed to extract text from PDF: {exc}") from exc
    finally:
        document.close()

    text = "\n".join(pages_text)
    if not text.strip():
        raise DocumentReadError("PDF contains no extractable text.")
    logger.info("PDF text extracted successfully, length: %d", len(text))
    return text
