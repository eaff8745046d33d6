import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from payroll_corrector.testing.fixtures import generate_report


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python generate_sample_report.py <output_dir>")
        sys.exit(1)

    output_dir = Path(sys.argv[1])
    output_dir.mkdir(parents=True, exist_ok=True)
    generate_report(output_dir / "time_entry_report.pdf")
