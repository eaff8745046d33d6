import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema
from jsonschema.exceptions import ValidationError

logger = logging.getLogger(__name__)

SCHEMA_DIR = Path(__file__).parent.parent / "schemas"


class ContractError(Exception):
    """Raised when a payload violates its data contract."""

    def __init__(self, message: str, schema_name: str, location: Optional[str] = None) -> None:
        super().__init__(message)
        self.schema_name = schema_name
        self.location = location


def load_schema(schema_name: str) -> Dict[str, Any]:
    """Load a JSON schema from the package."""
    schema_path = SCHEMA_DIR / f"{schema_name}.json"
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema not found: {schema_name}")

    with open(schema_path, "r", encoding="utf-8") as f:
        return dict(json.load(f))


def validate_against_schema(data: Any, schema: Dict[str, Any]) -> None:
    jsonschema.validate(instance=data, schema=schema)


def error_location(error: ValidationError) -> str:
    """Render the failing instance path, e.g. ``data.changes[0].rule``."""
    location = ""
    for part in error.absolute_path:
        location += f"[{part}]" if isinstance(part, int) else f".{part}" if location else str(part)
    return location or "<root>"


def validate_output(data: Dict[str, Any], schema_name: str, mode: str = "FILING") -> None:
    """
    Validate a payload against a packaged JSON schema.

    Args:
        data: The dictionary to validate.
        schema_name: Name of the schema file (without .json extension).
        mode: 'FILING' (raises error) or 'REVIEW' (logs warning).

    Raises:
        ContractError: If validation fails and mode is FILING.
    """
    location: Optional[str] = None
    try:
        validate_against_schema(data, load_schema(schema_name))
        return
    except ValidationError as e:
        location = error_location(e)
        msg = f"Data Contract Violation ({schema_name}) at {location}: {e.message}"
    except FileNotFoundError as e:
        msg = f"Data Contract Violation ({schema_name}): {e}"

    if mode == "FILING":
        raise ContractError(msg, schema_name, location)
    logger.warning(msg)
