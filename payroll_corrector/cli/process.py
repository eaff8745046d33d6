"""
CLI Entry Point: payroll-correct

Parses a payroll time-entry report, applies the correction rules and
writes the corrected dataset together with its change log.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from payroll_corrector.config import DEFAULT_RULE_TABLES, RuleTables, RuleTablesError, load_rule_tables
from payroll_corrector.core import DocumentReadError, TimeEntry, extract_report_text, parse_report
from payroll_corrector.report import build_corrected_report_pdf, changes_to_markdown, write_entries_csv
from payroll_corrector.rules import ProcessResult, RuleEngine
from payroll_corrector.summary import ChangeSummary, format_field_name, summarize_changes
from payroll_corrector.utils import console
from payroll_corrector.utils.contracts import ContractError, validate_output
from payroll_corrector.utils.validation import sanitize_entry, validate_input_file, validate_parsed_entries

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )


def read_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def write_json(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def read_entry_records(path: Path) -> list[dict[str, Any]]:
    """Entry records from a JSON list, or from the `testData` list of an object."""
    payload = read_json(path)
    records = payload.get("testData") if isinstance(payload, dict) else payload
    if not isinstance(records, list) or not all(isinstance(record, dict) for record in records):
        raise ValueError("expected a list of entry objects or an object with a 'testData' list")
    return records


def load_entries(path: Path, treat_as_text: bool) -> list[TimeEntry]:
    """
    Turn the input file into time entries.

    Raises:
        DocumentReadError: If a PDF cannot be read.
        ValueError: If a JSON entries file is malformed.
    """
    if path.suffix.lower() == ".json":
        return [sanitize_entry(TimeEntry.from_json(record)) for record in read_entry_records(path)]

    if treat_as_text or path.suffix.lower() == ".txt":
        text = path.read_text(encoding="utf-8", errors="replace")
    else:
        text = extract_report_text(path)

    parsed = parse_report(text)
    for anomaly in parsed.anomalies:
        logger.debug("Parse anomaly line %s: %s", anomaly["line_index"], anomaly["evidence"])
    return parsed.entries


def output_human(result: ProcessResult, summary: ChangeSummary) -> None:
    console.print_step("Payroll Corrections")
    console.print_success(
        f"{len(result.original)} entries parsed, {summary.total_changes} corrections, "
        f"{summary.employees_affected} of {summary.total_employees} employees affected "
        f"({summary.percent_employees_affected}%)."
    )
    if not result.original:
        console.print_warning("No time entries were recognised; no corrections are possible.")
        return

    console.print_counts("Changes by Rule", summary.changes_by_rule)
    console.print_counts(
        "Changes by Field",
        {format_field_name(name): count for name, count in summary.changes_by_field.items()},
    )
    console.print_table(
        "Change Log",
        ["Employee", "Date", "Field", "Original", "Corrected", "Rule"],
        [
            [
                f"{change.employee_name} ({change.employee_id})",
                change.date,
                format_field_name(change.field),
                change.original_value,
                change.corrected_value,
                change.rule,
            ]
            for change in result.changes
        ],
        empty_message="No corrections needed.",
    )


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Correct payroll time entries from a time-entry report.")
    parser.add_argument("report", type=Path, help="Report PDF, extracted text (.txt) or entries JSON.")
    parser.add_argument("--text", action="store_true", help="Treat the input as already-extracted report text.")
    parser.add_argument("--rules-config", type=Path, default=None, help="JSON overlay for labor-rate tables.")
    parser.add_argument("--json", action="store_true", help="Print the machine-readable result.")
    parser.add_argument("--out-json", type=Path, default=None, help="Write the result JSON here.")
    parser.add_argument("--out-csv", type=Path, default=None, help="Write corrected entries as CSV here.")
    parser.add_argument("--out-pdf", type=Path, default=None, help="Write the corrected report PDF here.")
    parser.add_argument("--out-md", type=Path, default=None, help="Write a Markdown change summary here.")
    parser.add_argument("--max-size-mb", type=int, default=10, help="Largest accepted input file (default: 10).")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING).")
    args = parser.parse_args(argv)

    configure_logging(args.log_level)

    errors = validate_input_file(args.report, max_bytes=args.max_size_mb * 1024 * 1024)
    if errors:
        raise SystemExit(f"Invalid input file: {'; '.join(errors)}")

    tables: RuleTables = DEFAULT_RULE_TABLES
    if args.rules_config:
        try:
            tables = load_rule_tables(args.rules_config)
        except RuleTablesError as e:
            raise SystemExit(str(e))

    try:
        entries = load_entries(args.report, args.text)
    except DocumentReadError as e:
        raise SystemExit(f"Could not read document: {e}")
    except ValueError as e:
        raise SystemExit(f"Could not read entries JSON: {e}")

    validate_parsed_entries(entries)
    result = RuleEngine(tables).apply(entries)
    summary = summarize_changes(result.changes, result.original)

    payload = result.to_json(filename=args.report.name)
    payload["summary"] = summary.to_json()
    try:
        validate_output(payload, "process_result", mode="FILING")
    except ContractError as e:
        raise SystemExit(str(e))

    if args.out_json:
        write_json(args.out_json, payload)
    if args.out_csv:
        write_entries_csv(args.out_csv, result.corrected)
    if args.out_pdf:
        args.out_pdf.parent.mkdir(parents=True, exist_ok=True)
        args.out_pdf.write_bytes(build_corrected_report_pdf(result.corrected, args.report.name))
    if args.out_md:
        args.out_md.parent.mkdir(parents=True, exist_ok=True)
        args.out_md.write_text(changes_to_markdown(summary, result.changes, args.report.name), encoding="utf-8")

    if args.json:
        sys.stdout.write(json.dumps(payload, indent=2) + "\n")
    else:
        output_human(result, summary)


if __name__ == "__main__":
    main()
