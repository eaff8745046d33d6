import json

import pytest
from rich.console import Console

from payroll_corrector.cli.process import load_entries, main
from payroll_corrector.utils import console


@pytest.fixture
def report_file(tmp_path, report_text):
    path = tmp_path / "report.txt"
    path.write_text(report_text, encoding="utf-8")
    return path


@pytest.fixture
def recorded():
    previous = (console._console, console._error_console)
    out = Console(record=True, width=160, force_terminal=False)
    console.use_consoles(out)
    yield out
    console.use_consoles(*previous)


def test_cli_json_output(report_file, capsys):
    main([str(report_file), "--json"])

    payload = json.loads(capsys.readouterr().out)
    assert payload["originalCount"] == 5
    assert payload["changesCount"] == 4
    assert payload["summary"]["changesByRule"] == {"Rule 5": 1, "Rule 4": 2, "Rule 7": 1}
    assert payload["metadata"]["filename"] == "report.txt"
    assert payload["metadata"]["payPeriodId"] == "2025-32"


def test_cli_writes_outputs(report_file, tmp_path, recorded):
    out_dir = tmp_path / "out"
    main(
        [
            str(report_file),
            "--out-json",
            str(out_dir / "result.json"),
            "--out-csv",
            str(out_dir / "corrected.csv"),
            "--out-pdf",
            str(out_dir / "corrected.pdf"),
            "--out-md",
            str(out_dir / "summary.md"),
        ]
    )

    result = json.loads((out_dir / "result.json").read_text(encoding="utf-8"))
    assert result["changesCount"] == 4
    assert (out_dir / "corrected.csv").read_text(encoding="utf-8").startswith("employeeName,")
    assert (out_dir / "corrected.pdf").read_bytes().startswith(b"%PDF")
    assert "## Change Log" in (out_dir / "summary.md").read_text(encoding="utf-8")

    text = recorded.export_text()
    assert "5 entries parsed, 4 corrections" in text
    assert "Changes by Rule" in text
    assert "SCH PREM" in text


def test_cli_text_flag_reads_any_extension(tmp_path, report_text, capsys):
    path = tmp_path / "report.pdf"
    path.write_text(report_text, encoding="utf-8")
    main([str(path), "--text", "--json"])
    assert json.loads(capsys.readouterr().out)["originalCount"] == 5


def test_cli_json_entries_input(tmp_path, capsys):
    records = [
        {
            "employeeName": "Jane Doe",
            "employeeId": "202",
            "date": "08/05/2025",
            "hours": 2,
            "payType": "Call",
            "laborRate": "SCH_TECH",
            "costCode": "SERVICE",
            "costCategory": "DirLab",
        },
        {
            "employeeName": "Jane Doe",
            "employeeId": "202",
            "date": "08/03/2025",
            "hours": 4,
            "payType": "Regular",
            "laborRate": "WN TECH",
            "costCode": "SERVICE",
            "costCategory": "DirLab",
        },
        {
            "employeeName": "Jane Doe",
            "employeeId": "202",
            "date": "08/05/2025",
            "hours": 1,
            "payType": "Call",
            "laborRate": "TechOT",
            "costCode": "SERVICE",
            "costCategory": "DirLab",
        },
    ]
    path = tmp_path / "entries.json"
    path.write_text(json.dumps({"testData": records}), encoding="utf-8")

    main([str(path), "--json"])

    payload = json.loads(capsys.readouterr().out)
    corrected = payload["data"]["corrected"]
    assert corrected[0]["laborRate"] == "SCH_TECHOT"
    assert corrected[1]["laborRate"] == "WN PREM"
    assert corrected[1]["payType"] == "Double Time"
    assert corrected[2]["laborRate"] == "TechOT"
    assert all(change["rule"] != "Rule 2" for change in payload["data"]["changes"])


def test_load_entries_accepts_plain_list(tmp_path):
    path = tmp_path / "entries.json"
    path.write_text(json.dumps([{"employeeName": "A", "date": "08/04/2025", "hours": "1.5"}]), encoding="utf-8")
    entries = load_entries(path, treat_as_text=False)
    assert len(entries) == 1
    assert entries[0].labor_rate == "Tech"
    assert str(entries[0].hours) == "1.5"


def test_load_entries_sanitizes_json_text(tmp_path):
    path = tmp_path / "entries.json"
    record = {"employeeName": "A", "date": "08/04/2025", "description": '<b>"No Bill"</b>', "jobDescription": "R&D lab"}
    path.write_text(json.dumps([record]), encoding="utf-8")
    entry = load_entries(path, treat_as_text=False)[0]
    assert entry.description == "bNo Bill/b"
    assert entry.job_description == "RD lab"


@pytest.mark.parametrize(
    "content",
    ["{not json", json.dumps({"testData": "x"}), json.dumps([1, 2]), json.dumps({"entries": []})],
)
def test_cli_rejects_malformed_entries_json(tmp_path, content):
    path = tmp_path / "entries.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(SystemExit, match="Could not read entries JSON"):
        main([str(path)])


def test_cli_rules_config(report_file, tmp_path, capsys):
    rules = tmp_path / "rules.json"
    rules.write_text(json.dumps({"office_cost_codes": ["1SCHOF"]}), encoding="utf-8")

    main([str(report_file), "--rules-config", str(rules), "--json"])

    payload = json.loads(capsys.readouterr().out)
    assert "Rule 7" not in payload["summary"]["changesByRule"]


def test_cli_rejects_bad_rules_config(report_file, tmp_path):
    rules = tmp_path / "rules.json"
    rules.write_text(json.dumps({"unknown": []}), encoding="utf-8")
    with pytest.raises(SystemExit, match="Invalid rule tables"):
        main([str(report_file), "--rules-config", str(rules)])


def test_cli_rejects_invalid_input(tmp_path):
    path = tmp_path / "report.docx"
    path.write_text("x", encoding="utf-8")
    with pytest.raises(SystemExit, match="Invalid input file"):
        main([str(path)])


def test_cli_rejects_unreadable_pdf(tmp_path):
    path = tmp_path / "report.pdf"
    path.write_bytes(b"not a pdf at all")
    with pytest.raises(SystemExit, match="Could not read document"):
        main([str(path)])


def test_cli_no_entries_is_not_an_error(tmp_path, recorded):
    path = tmp_path / "report.txt"
    path.write_text("Time Entry Report\nReport Totals\n", encoding="utf-8")
    main([str(path)])
    assert "No time entries were recognised" in recorded.export_text()
