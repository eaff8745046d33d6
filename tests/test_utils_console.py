import pytest
from rich.console import Console

from payroll_corrector.utils import console


@pytest.fixture
def recorded():
    previous = (console._console, console._error_console)
    out = Console(record=True, width=120, force_terminal=False)
    err = Console(record=True, width=120, force_terminal=False)
    console.use_consoles(out, err)
    yield out, err
    console.use_consoles(*previous)


def test_print_messages(recorded):
    out, err = recorded
    console.print_success("done")
    console.print_warning("careful")
    console.print_error("broken")

    text = out.export_text()
    assert "SUCCESS: done" in text
    assert "WARNING: careful" in text
    assert "ERROR: broken" in err.export_text()


def test_print_error_exits(recorded):
    with pytest.raises(SystemExit) as excinfo:
        console.print_error("fatal", exit_code=2)
    assert excinfo.value.code == 2


def test_print_table(recorded):
    out, _ = recorded
    console.print_table("Change Log", ["Employee", "Rule"], [["Jane Doe", "Rule 7"]])
    text = out.export_text()
    assert "Change Log" in text
    assert "Jane Doe" in text
    assert "Rule 7" in text


def test_print_table_empty(recorded):
    out, _ = recorded
    console.print_table("Change Log", ["Employee"], [], empty_message="No corrections needed.")
    assert "Change Log: No corrections needed." in out.export_text()


def test_print_counts(recorded):
    out, _ = recorded
    console.print_step("Summary")
    console.print_counts("Changes by Rule", {"Rule 4": 2})
    text = out.export_text()
    assert "Summary" in text
    assert "Rule 4" in text
    assert "Changes" in text
