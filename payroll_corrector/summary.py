#!/usr/bin/env python3

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable

from payroll_corrector.core import Change, TimeEntry

FIELD_LABELS = {
    "payType": "Pay Type",
    "laborRate": "Labor Rate",
    "costCode": "Cost Code",
    "costCategory": "Cost Category",
}


@dataclass
class ChangeSummary:
    total_changes: int
    changes_by_rule: dict[str, int] = field(default_factory=dict)
    changes_by_employee: dict[str, int] = field(default_factory=dict)
    changes_by_field: dict[str, int] = field(default_factory=dict)
    employees_affected: int = 0
    total_employees: int = 0

    @property
    def percent_employees_affected(self) -> int:
        if self.total_employees <= 0:
            return 0
        return round(self.employees_affected / self.total_employees * 100)

    def top_employees(self, limit: int = 5) -> list[tuple[str, int]]:
        return Counter(self.changes_by_employee).most_common(limit)

    def to_json(self) -> dict[str, Any]:
        return {
            "totalChanges": self.total_changes,
            "employeesAffected": self.employees_affected,
            "totalEmployees": self.total_employees,
            "changesByRule": dict(self.changes_by_rule),
            "changesByEmployee": dict(self.changes_by_employee),
            "changesByField": dict(self.changes_by_field),
        }


def format_field_name(field_name: str) -> str:
    return FIELD_LABELS.get(field_name, field_name)


def count_by(values: Iterable[str]) -> dict[str, int]:
    return dict(Counter(values))


def summarize_changes(changes: list[Change], entries: list[TimeEntry] | None = None) -> ChangeSummary:
    employees = {(entry.employee_name, entry.employee_id) for entry in entries or []}
    return ChangeSummary(
        total_changes=len(changes),
        changes_by_rule=count_by(change.rule for change in changes),
        changes_by_employee=count_by(change.employee_name for change in changes),
        changes_by_field=count_by(change.field for change in changes),
        employees_affected=len({change.employee_name for change in changes}),
        total_employees=len(employees),
    )
