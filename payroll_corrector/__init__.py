from payroll_corrector.core import (
    Change,
    DocumentReadError,
    LineKind,
    ParseResult,
    PayType,
    TimeEntry,
    classify_line,
    extract_four_line_entry,
    extract_report_text,
    extract_single_line_entry,
    extract_time_entry,
    parse_employee_entries,
    parse_report,
)
from payroll_corrector.config import DEFAULT_RULE_TABLES, RuleTables, RuleTablesError, load_rule_tables
from payroll_corrector.rules import ProcessResult, Rule, RuleEngine, apply_rules, validate_entry
from payroll_corrector.summary import ChangeSummary, summarize_changes

__all__ = [
    "Change",
    "ChangeSummary",
    "DEFAULT_RULE_TABLES",
    "DocumentReadError",
    "LineKind",
    "ParseResult",
    "PayType",
    "ProcessResult",
    "Rule",
    "RuleEngine",
    "RuleTables",
    "RuleTablesError",
    "TimeEntry",
    "apply_rules",
    "classify_line",
    "extract_four_line_entry",
    "extract_report_text",
    "extract_single_line_entry",
    "extract_time_entry",
    "load_rule_tables",
    "parse_employee_entries",
    "parse_report",
    "summarize_changes",
    "validate_entry",
]
