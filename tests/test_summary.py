import pytest

from payroll_corrector.core import Change, parse_report
from payroll_corrector.rules import RuleEngine
from payroll_corrector.summary import count_by, format_field_name, summarize_changes


def make_change(name: str, rule: str, field: str = "laborRate") -> Change:
    return Change(
        employee_name=name,
        employee_id="1",
        date="08/04/2025",
        field=field,
        original_value="Tech",
        corrected_value="TechOT",
        rule=rule,
        rule_name="Call Work Overtime Rate",
        description="",
    )


@pytest.mark.unit
def test_summarize_pipeline_changes(report_text):
    result = RuleEngine().apply(parse_report(report_text).entries)
    summary = summarize_changes(result.changes, result.original)

    assert summary.total_changes == 4
    assert summary.changes_by_rule == {"Rule 5": 1, "Rule 4": 2, "Rule 7": 1}
    assert list(summary.changes_by_rule) == ["Rule 5", "Rule 4", "Rule 7"]
    assert summary.changes_by_employee == {"John Smith": 1, "Jane Doe": 3}
    assert summary.changes_by_field == {"laborRate": 2, "payType": 2}
    assert summary.employees_affected == 2
    assert summary.total_employees == 3
    assert summary.percent_employees_affected == 67


@pytest.mark.unit
def test_summarize_empty():
    summary = summarize_changes([])
    assert summary.total_changes == 0
    assert summary.changes_by_rule == {}
    assert summary.employees_affected == 0
    assert summary.percent_employees_affected == 0
    assert summary.top_employees() == []


@pytest.mark.unit
def test_counts_sum_to_total():
    changes = [make_change("A", "Rule 5"), make_change("B", "Rule 2"), make_change("A", "Rule 5", "payType")]
    summary = summarize_changes(changes)
    for counts in (summary.changes_by_rule, summary.changes_by_employee, summary.changes_by_field):
        assert sum(counts.values()) == summary.total_changes


@pytest.mark.unit
def test_top_employees_orders_by_count():
    changes = [make_change("A", "Rule 5"), make_change("B", "Rule 5"), make_change("B", "Rule 2")]
    summary = summarize_changes(changes)
    assert summary.top_employees() == [("B", 2), ("A", 1)]
    assert summary.top_employees(limit=1) == [("B", 2)]


@pytest.mark.unit
def test_summary_json_keys():
    payload = summarize_changes([make_change("A", "Rule 5")]).to_json()
    assert payload == {
        "totalChanges": 1,
        "employeesAffected": 1,
        "totalEmployees": 0,
        "changesByRule": {"Rule 5": 1},
        "changesByEmployee": {"A": 1},
        "changesByField": {"laborRate": 1},
    }


@pytest.mark.unit
def test_helpers():
    assert count_by(["x", "y", "x"]) == {"x": 2, "y": 1}
    assert list(count_by(["y", "x", "y"])) == ["y", "x"]
    assert format_field_name("payType") == "Pay Type"
    assert format_field_name("laborRate") == "Labor Rate"
    assert format_field_name("other") == "other"
