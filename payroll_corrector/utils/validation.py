from __future__ import annotations

import logging
import re
from dataclasses import replace
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

from payroll_corrector.core import PayType, TimeEntry

logger = logging.getLogger(__name__)

STRICT_DATE_RE = re.compile(r"^(0[1-9]|1[0-2])/(0[1-9]|[12]\d|3[01])/\d{4}$")
COST_CODE_RE = re.compile(r"^[A-Za-z0-9_]+$")
UNSAFE_TEXT_RE = re.compile(r"[<>\"'&]")
VALID_PAY_TYPES = {pay_type.value for pay_type in PayType}
ALLOWED_EXTENSIONS = {".pdf", ".txt", ".json"}
MAX_FILE_SIZE = 10 * 1024 * 1024


def is_valid_date(value: str | None) -> bool:
    """Strict MM/DD/YYYY check that also rejects impossible calendar days."""
    if not value or not STRICT_DATE_RE.match(value):
        return False
    month, day, year = (int(part) for part in value.split("/"))
    try:
        date(year, month, day)
    except ValueError:
        return False
    return True


def is_valid_hours(hours: Any) -> bool:
    try:
        value = Decimal(str(hours))
    except InvalidOperation:
        return False
    return value.is_finite() and Decimal("0") <= value <= Decimal("24")


def is_valid_pay_type(pay_type: str) -> bool:
    return pay_type in VALID_PAY_TYPES


def is_valid_cost_code(cost_code: str) -> bool:
    return bool(COST_CODE_RE.match(cost_code))


def sanitize_text(text: Any) -> str:
    if not isinstance(text, str):
        return ""
    return UNSAFE_TEXT_RE.sub("", text.strip())[:255]


def validate_entry_fields(entry: TimeEntry) -> list[str]:
    errors: list[str] = []
    if not entry.employee_name.strip():
        errors.append("Employee name is required")
    if not is_valid_date(entry.date):
        errors.append("Valid date is required (MM/DD/YYYY format)")
    if entry.hours is None or not is_valid_hours(entry.hours):
        errors.append("Valid hours value is required")
    if not entry.pay_type.strip():
        errors.append("Pay type is required")
    elif not is_valid_pay_type(entry.pay_type):
        errors.append(f"Unknown pay type: {entry.pay_type}")
    if not is_valid_cost_code(entry.cost_code):
        errors.append(f"Invalid cost code: {entry.cost_code!r}")
    if not entry.labor_rate.strip():
        errors.append("Labor rate is required")
    return errors


def sanitize_entry(entry: TimeEntry) -> TimeEntry:
    """Clean the free-text fields of an entry supplied as JSON."""
    return replace(
        entry,
        job_description=sanitize_text(entry.job_description),
        description=sanitize_text(entry.description),
    )


def validate_parsed_entries(entries: list[TimeEntry]) -> list[str]:
    """Collect indexed field errors; partial data is still allowed through."""
    errors: list[str] = []
    for index, entry in enumerate(entries):
        errors.extend(f"Entry {index}: {error}" for error in validate_entry_fields(entry))
    if errors:
        logger.error("Validation errors found: %d (first: %s)", len(errors), "; ".join(errors[:5]))
    return errors


def validate_input_file(path: Path, max_bytes: int = MAX_FILE_SIZE) -> list[str]:
    errors: list[str] = []
    if not path.exists():
        return [f"File not found: {path}"]
    if not path.name.strip():
        errors.append("File must have a valid name")
    if path.suffix.lower() not in ALLOWED_EXTENSIONS:
        errors.append(f"File must be one of: {', '.join(sorted(ALLOWED_EXTENSIONS))}")
    size = path.stat().st_size
    if size == 0:
        errors.append("File is empty")
    elif size > max_bytes:
        errors.append(f"File size must be less than {max_bytes // (1024 * 1024)}MB")
    return errors
