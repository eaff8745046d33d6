"""
Rule Tables

Labor-rate allow-lists, cost-code families and branch-prefix mapping tables
used by the correction rules. Tables are built once and never mutated; a
JSON overlay can replace the base lists to produce a new instance.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from jsonschema.exceptions import ValidationError

from payroll_corrector.utils.contracts import load_schema, validate_against_schema

logger = logging.getLogger(__name__)

PrefixTable = tuple[tuple[str, str], ...]

SERVICE_INSTALL_BASE_RATES = (
    "Tech",
    "TechNB",
    "MNTech",
    "SCH_MNTECH",
    "SCH_TECH",
    "SCHTECHNB",
    "WN MN TECH",
    "WN TECH",
    "WN TECHNB",
    "HELPER",
    "WN HELPER",
    "SCH_HELPER",
    "MN HELPER",
)

PM_BASE_RATES = (
    "MN PMTECH",
    "PMTECH",
    "TechNB",
    "Sch MN PM Tech",
    "SCH_MN PMTECH",
    "SCH_PMTECH",
    "WN MN PM TECH",
    "WN PM TECH",
)

# Checked in order against the upper-cased current rate.
PREMIUM_PREFIXES: PrefixTable = (
    ("WN ", "WN PREM"),
    ("SCH_", "SCH PREM"),
    ("SCH ", "SCH PREM"),
    ("MN ", "MN PREM"),
    ("MNTECH", "MN PREM"),
)

OVERTIME_PREFIXES: PrefixTable = (
    ("WN MN ", "WN MN TECHOT"),
    ("WN ", "WN TECHOT"),
    ("SCH_MN", "SCH_MNTECHOT"),
    ("SCH_", "SCH_TECHOT"),
    ("SCH ", "SCH_TECHOT"),
    ("MN ", "MN TECHOT"),
    ("MNTECH", "MN TECHOT"),
)

HELPER_OVERTIME_PREFIXES: PrefixTable = (
    ("WN ", "WN HELPEROT"),
    ("SCH_", "SCH_HELPEROT"),
    ("SCH ", "SCH_HELPEROT"),
    ("MN ", "MN HELPEROT"),
)

NO_BILL_RATES = {
    "TECH": "TechNB",
    "WN TECH": "WN TECHNB",
    "SCH_TECH": "SCHTECHNB",
    "MNTECH": "MNTechNB",
    "PMTECH": "PMTECHNB",
    "MN PMTECH": "MN PMTECHNB",
}


class RuleTablesError(ValueError):
    """Raised when a rule-table overlay cannot be loaded."""


@dataclass(frozen=True)
class RuleTables:
    service_install_cost_codes: frozenset[str]
    pm_cost_codes: frozenset[str]
    office_cost_codes: frozenset[str]
    tech_unapplied_category: str
    service_install_rates: frozenset[str]
    pm_rates: frozenset[str]
    default_service_rate: str
    default_pm_rate: str
    premium_prefixes: PrefixTable
    default_premium_rate: str
    overtime_prefixes: PrefixTable
    overtime_exact: Mapping[str, str]
    default_overtime_rate: str
    helper_overtime_prefixes: PrefixTable
    default_helper_overtime_rate: str
    no_bill_rates: Mapping[str, str]

    def premium_rate_for(self, labor_rate: str) -> str:
        return lookup_prefix(self.premium_prefixes, labor_rate.upper(), self.default_premium_rate)

    def overtime_rate_for(self, labor_rate: str) -> str:
        upper = labor_rate.upper()
        if "HELPER" in upper:
            return lookup_prefix(self.helper_overtime_prefixes, upper, self.default_helper_overtime_rate)
        if upper in self.overtime_exact:
            return self.overtime_exact[upper]
        return lookup_prefix(self.overtime_prefixes, upper, self.default_overtime_rate)

    def no_bill_rate_for(self, labor_rate: str) -> str | None:
        return self.no_bill_rates.get(labor_rate.upper())


def lookup_prefix(table: PrefixTable, value: str, default: str) -> str:
    for prefix, mapped in table:
        if value.startswith(prefix):
            return mapped
    return default


def derived_rates(
    premium_prefixes: PrefixTable,
    default_premium_rate: str,
    overtime_prefixes: PrefixTable,
    overtime_exact: Mapping[str, str],
    default_overtime_rate: str,
    helper_overtime_prefixes: PrefixTable,
    default_helper_overtime_rate: str,
    no_bill_rates: Mapping[str, str],
) -> frozenset[str]:
    """Every rate a later rule can write; allow-lists must accept them all."""
    rates = {default_premium_rate, default_overtime_rate, default_helper_overtime_rate}
    for table in (premium_prefixes, overtime_prefixes, helper_overtime_prefixes):
        rates.update(mapped for _, mapped in table)
    rates.update(overtime_exact.values())
    rates.update(no_bill_rates.values())
    return frozenset(rates)


def build_rule_tables(
    service_install_rates: Iterable[str] = SERVICE_INSTALL_BASE_RATES,
    pm_rates: Iterable[str] = PM_BASE_RATES,
    office_cost_codes: Iterable[str] = ("1COAD", "1SCHOF", "1WNOF"),
    no_bill_rates: Mapping[str, str] | None = None,
) -> RuleTables:
    no_bill = {key.upper(): value for key, value in (no_bill_rates or NO_BILL_RATES).items()}
    overtime_exact = {"TECH": "TechOT"}
    generated = derived_rates(
        PREMIUM_PREFIXES,
        "PREM",
        OVERTIME_PREFIXES,
        overtime_exact,
        "TechOT",
        HELPER_OVERTIME_PREFIXES,
        "HELPEROT",
        no_bill,
    )
    return RuleTables(
        service_install_cost_codes=frozenset({"SERVICE", "INSTALL"}),
        pm_cost_codes=frozenset({"PM", "PMF", "FTPM"}),
        office_cost_codes=frozenset(code.upper() for code in office_cost_codes),
        tech_unapplied_category="TechUnapplyd",
        service_install_rates=frozenset(service_install_rates) | generated,
        pm_rates=frozenset(pm_rates) | generated,
        default_service_rate="Tech",
        default_pm_rate="PMTECH",
        premium_prefixes=PREMIUM_PREFIXES,
        default_premium_rate="PREM",
        overtime_prefixes=OVERTIME_PREFIXES,
        overtime_exact=MappingProxyType(overtime_exact),
        default_overtime_rate="TechOT",
        helper_overtime_prefixes=HELPER_OVERTIME_PREFIXES,
        default_helper_overtime_rate="HELPEROT",
        no_bill_rates=MappingProxyType(no_bill),
    )


DEFAULT_RULE_TABLES = build_rule_tables()


def load_rule_tables(path: Path) -> RuleTables:
    """
    Build rule tables from a JSON overlay file.

    Keys left out of the file keep their built-in values. The overlay is
    validated against ``schemas/rule_tables.json`` before use.

    Raises:
        RuleTablesError: If the file is missing, unreadable or invalid.
    """
    try:
        with path.open("r", encoding="utf-8") as handle:
            overlay: dict[str, Any] = json.load(handle)
    except (OSError, json.JSONDecodeError) as e:
        raise RuleTablesError(f"Could not read rule tables {path}: {e}") from e

    try:
        validate_against_schema(overlay, load_schema("rule_tables"))
    except ValidationError as e:
        raise RuleTablesError(f"Invalid rule tables {path}: {e.message}") from e

    logger.info("Loaded rule table overlay from %s (keys: %s)", path, ", ".join(sorted(overlay)) or "none")
    return build_rule_tables(
        service_install_rates=overlay.get("service_install_rates", SERVICE_INSTALL_BASE_RATES),
        pm_rates=overlay.get("pm_rates", PM_BASE_RATES),
        office_cost_codes=overlay.get("office_cost_codes", DEFAULT_RULE_TABLES.office_cost_codes),
        no_bill_rates=overlay.get("no_bill_rates"),
    )
