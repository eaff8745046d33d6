from decimal import Decimal

import pytest

from payroll_corrector.core import TimeEntry


@pytest.fixture
def report_text() -> str:
    """Returns sample text mimicking pdfium output of a time-entry report."""
    return """
    Mon Aug 11, 2025
    Time Entry Report
    Pay Period Id: 2025-32

    John Smith - 101
    Job Date Hours Pay Type Labor Rate Cost Code
    (J1001)Walk-in cooler 08/04/2025 8.00 - Regular - Tech - SERVICE - DirLab - Compressor swap
    (J1002)Ice machine 08/05/2025 2.50 - Call - WN TECH - SERVICE - DirLab - After hours call
    Employee Totals 10.50

    Jane Doe - 202
    Job Date Hours Pay Type Labor Rate Cost Code
    (J2001)Rooftop unit 08/03/2025 4.00 - Regular - SCH_TECH - SERVICE - DirLab - Sunday repair
    (J2002)Office 08/06/2025 1.00 - Overtime - Tech - 1COAD - Office - Paperwork
    Employee Totals 5.00

    Bob Jones - 303
    (J3001)Boiler
    08/07/2025
    3.50
    Overtime - HELPER - INSTALL - DirLab - Valve
    Source
    7
    Employee Totals 3.50

    Report Totals 19.00
    Ghost Person - 999
    (J9999)Should not parse 08/08/2025 9.00 - Regular - Tech - SERVICE - DirLab
    """


@pytest.fixture
def make_entry():
    """Factory for TimeEntry with workday defaults."""

    def _make(**overrides) -> TimeEntry:
        values = {
            "job_code": "J1",
            "job_description": "Walk-in cooler",
            "date": "08/04/2025",
            "hours": Decimal("8.00"),
            "pay_type": "Regular",
            "labor_rate": "Tech",
            "cost_code": "SERVICE",
            "cost_category": "DirLab",
            "description": "",
            "employee_name": "John Smith",
            "employee_id": "101",
            "pay_period_id": "2025-32",
            "report_date": "Mon Aug 11, 2025",
        }
        values.update(overrides)
        return TimeEntry(**values)

    return _make
