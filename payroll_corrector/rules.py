"""
Correction Rules Module

Ordered business rules applied to every parsed time entry. Each rule owns a
single field, checks a guard and rewrites that field, so the pipeline can be
re-run over its own output without producing further changes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable

from payroll_corrector.config import DEFAULT_RULE_TABLES, RuleTables
from payroll_corrector.core import Change, PayType, TimeEntry

logger = logging.getLogger(__name__)

PAY_TYPE = "payType"
LABOR_RATE = "laborRate"
FIELD_ATTRIBUTES = {PAY_TYPE: "pay_type", LABOR_RATE: "labor_rate"}
SCHEMA_VERSION = "1.0.0"

Guard = Callable[[TimeEntry, RuleTables], bool]
Rewrite = Callable[[TimeEntry, RuleTables], str]
Explain = Callable[[TimeEntry, RuleTables], str]


@dataclass(frozen=True)
class Rule:
    rule_id: str
    name: str
    field: str
    guard: Guard
    rewrite: Rewrite
    explain: Explain

    def current_value(self, entry: TimeEntry) -> str:
        return str(getattr(entry, FIELD_ATTRIBUTES[self.field]))

    def proposed_value(self, entry: TimeEntry, tables: RuleTables) -> str | None:
        """Value this rule would write, or None when it has nothing to change."""
        if not self.guard(entry, tables):
            return None
        value = self.rewrite(entry, tables)
        if value == self.current_value(entry):
            return None
        return value


@dataclass
class ProcessResult:
    original: list[TimeEntry]
    corrected: list[TimeEntry]
    changes: list[Change] = field(default_factory=list)

    def to_json(self, filename: str | None = None, processed_at: datetime | None = None) -> dict[str, Any]:
        stamp = processed_at or datetime.now(timezone.utc)
        first = self.original[0] if self.original else None
        return {
            "schema_version": SCHEMA_VERSION,
            "success": True,
            "originalCount": len(self.original),
            "correctedCount": len(self.corrected),
            "changesCount": len(self.changes),
            "data": {
                "original": [entry.to_json() for entry in self.original],
                "corrected": [entry.to_json() for entry in self.corrected],
                "changes": [change.to_json() for change in self.changes],
            },
            "metadata": {
                "filename": filename,
                "processedAt": stamp.isoformat(),
                "payPeriodId": first.pay_period_id if first else None,
                "reportDate": first.report_date if first else None,
            },
        }


def is_office(entry: TimeEntry, tables: RuleTables) -> bool:
    return entry.cost_code.upper() in tables.office_cost_codes


def is_sunday(entry: TimeEntry, warn: bool = False) -> bool:
    work_date = entry.work_date
    if work_date is None:
        if warn:
            logger.warning("Failed to parse date for Sunday rule: %r (%s)", entry.date, entry.employee_name)
        return False
    return work_date.weekday() == 6


# Rule 1
def tech_unapplied_guard(entry: TimeEntry, tables: RuleTables) -> bool:
    # Sunday and office entries have their pay type set by Rule 4 / Rule 7.
    return (
        entry.cost_category == tables.tech_unapplied_category
        and entry.pay_type != PayType.UNAPPLIED.value
        and not is_sunday(entry)
        and not is_office(entry, tables)
    )


# Rule 2
def service_install_guard(entry: TimeEntry, tables: RuleTables) -> bool:
    return (
        entry.cost_code.upper() in tables.service_install_cost_codes
        and entry.labor_rate not in tables.service_install_rates
    )


def explain_service_install(entry: TimeEntry, tables: RuleTables) -> str:
    return (
        f"Cost Code is {entry.cost_code.upper()}, Labor Rate must be one of the approved "
        f"service/install rates (default {tables.default_service_rate})"
    )


# Rule 3
def pm_guard(entry: TimeEntry, tables: RuleTables) -> bool:
    return entry.cost_code.upper() in tables.pm_cost_codes and entry.labor_rate not in tables.pm_rates


def explain_pm(entry: TimeEntry, tables: RuleTables) -> str:
    return (
        f"Cost Code is {entry.cost_code.upper()}, Labor Rate must be one of the approved "
        f"PM rates (default {tables.default_pm_rate})"
    )


# Rule 4
def sunday_pay_guard(entry: TimeEntry, tables: RuleTables) -> bool:
    return (
        is_sunday(entry, warn=True)
        and entry.pay_type != PayType.DOUBLE_TIME.value
        and not is_office(entry, tables)
    )


def sunday_rate_guard(entry: TimeEntry, tables: RuleTables) -> bool:
    return is_sunday(entry) and "PREM" not in entry.labor_rate.upper()


# Rule 5
def call_work_guard(entry: TimeEntry, tables: RuleTables) -> bool:
    # Office work on a Sunday keeps its pay type until Rule 7, and already carries a PREM rate.
    return (
        entry.pay_type == PayType.CALL.value
        and not (is_office(entry, tables) and is_sunday(entry))
        and "OT" not in entry.labor_rate.upper()
    )


def explain_call_work(entry: TimeEntry, tables: RuleTables) -> str:
    return f"Call work requires the overtime variant of {entry.labor_rate}"


# Rule 6
def no_bill_guard(entry: TimeEntry, tables: RuleTables) -> bool:
    return (
        "no bill" in entry.description.lower()
        and not entry.labor_rate.upper().endswith("NB")
        and tables.no_bill_rate_for(entry.labor_rate) is not None
    )


def no_bill_rewrite(entry: TimeEntry, tables: RuleTables) -> str:
    return tables.no_bill_rate_for(entry.labor_rate) or entry.labor_rate


# Rule 7
def office_guard(entry: TimeEntry, tables: RuleTables) -> bool:
    return is_office(entry, tables) and entry.pay_type != PayType.REGULAR.value


def explain_office(entry: TimeEntry, tables: RuleTables) -> str:
    return f"Office cost code {entry.cost_code.upper()} is always paid as Regular time"


DEFAULT_RULES: tuple[Rule, ...] = (
    Rule(
        rule_id="Rule 1",
        name="TechUnapplied Pay Type",
        field=PAY_TYPE,
        guard=tech_unapplied_guard,
        rewrite=lambda entry, tables: PayType.UNAPPLIED.value,
        explain=lambda entry, tables: "Cost Category is TechUnapplyd, so Pay Type must be Unapplied",
    ),
    Rule(
        rule_id="Rule 2",
        name="Service/Install Labor Rate Validation",
        field=LABOR_RATE,
        guard=service_install_guard,
        rewrite=lambda entry, tables: tables.default_service_rate,
        explain=explain_service_install,
    ),
    Rule(
        rule_id="Rule 3",
        name="PM Labor Rate Validation",
        field=LABOR_RATE,
        guard=pm_guard,
        rewrite=lambda entry, tables: tables.default_pm_rate,
        explain=explain_pm,
    ),
    Rule(
        rule_id="Rule 4",
        name="Sunday Premium Pay",
        field=PAY_TYPE,
        guard=sunday_pay_guard,
        rewrite=lambda entry, tables: PayType.DOUBLE_TIME.value,
        explain=lambda entry, tables: "Work on Sunday requires Double Time pay type",
    ),
    Rule(
        rule_id="Rule 4",
        name="Sunday Premium Rate",
        field=LABOR_RATE,
        guard=sunday_rate_guard,
        rewrite=lambda entry, tables: tables.premium_rate_for(entry.labor_rate),
        explain=lambda entry, tables: "Work on Sunday requires a PREM labor rate",
    ),
    Rule(
        rule_id="Rule 5",
        name="Call Work Overtime Rate",
        field=LABOR_RATE,
        guard=call_work_guard,
        rewrite=lambda entry, tables: tables.overtime_rate_for(entry.labor_rate),
        explain=explain_call_work,
    ),
    Rule(
        rule_id="Rule 6",
        name="No-Bill Detection",
        field=LABOR_RATE,
        guard=no_bill_guard,
        rewrite=no_bill_rewrite,
        explain=lambda entry, tables: "Description marks the work as No Bill, so the NB labor rate applies",
    ),
    Rule(
        rule_id="Rule 7",
        name="Office Override",
        field=PAY_TYPE,
        guard=office_guard,
        rewrite=lambda entry, tables: PayType.REGULAR.value,
        explain=explain_office,
    ),
)


class RuleEngine:
    """Apply the ordered rule pipeline to entries without touching the originals."""

    def __init__(self, tables: RuleTables = DEFAULT_RULE_TABLES, rules: tuple[Rule, ...] = DEFAULT_RULES) -> None:
        self.tables = tables
        self.rules = rules

    def apply_to_entry(self, entry: TimeEntry) -> tuple[TimeEntry, list[Change]]:
        corrected = replace(entry)
        changes: list[Change] = []
        for rule in self.rules:
            value = rule.proposed_value(corrected, self.tables)
            if value is None:
                continue
            changes.append(
                Change(
                    employee_name=corrected.employee_name,
                    employee_id=corrected.employee_id,
                    date=corrected.date,
                    field=rule.field,
                    original_value=rule.current_value(corrected),
                    corrected_value=value,
                    rule=rule.rule_id,
                    rule_name=rule.name,
                    description=rule.explain(corrected, self.tables),
                )
            )
            setattr(corrected, FIELD_ATTRIBUTES[rule.field], value)
        return corrected, changes

    def apply(self, entries: list[TimeEntry]) -> ProcessResult:
        corrected_entries: list[TimeEntry] = []
        changes: list[Change] = []
        for entry in entries:
            corrected, entry_changes = self.apply_to_entry(entry)
            corrected_entries.append(corrected)
            changes.extend(entry_changes)
        logger.info("Rules applied to %d entries, changes made: %d", len(entries), len(changes))
        return ProcessResult(original=list(entries), corrected=corrected_entries, changes=changes)

    def validate_entry(self, entry: TimeEntry) -> list[str]:
        """Report every rule the entry violates as it stands, without correcting it."""
        issues: list[str] = []
        for rule in self.rules:
            value = rule.proposed_value(entry, self.tables)
            if value is None:
                continue
            issues.append(
                f"{rule.rule_id} ({rule.name}): {rule.field} is '{rule.current_value(entry)}', "
                f"expected '{value}'. {rule.explain(entry, self.tables)}"
            )
        return issues


def apply_rules(
    entries: list[TimeEntry], tables: RuleTables = DEFAULT_RULE_TABLES
) -> tuple[list[TimeEntry], list[Change]]:
    result = RuleEngine(tables).apply(entries)
    return result.corrected, result.changes


def validate_entry(entry: TimeEntry, tables: RuleTables = DEFAULT_RULE_TABLES) -> list[str]:
    return RuleEngine(tables).validate_entry(entry)
