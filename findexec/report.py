"""
findexec Run Report - JSON record of a finished run.

Responsibilities:
- Build the report object from a RunConfig and RunResult
- Validate against schemas/report.schema.json
- Serialize JSON deterministically

Forbidden:
- No pipeline execution
- No statistics arithmetic (the tally is taken as-is)
"""

import json
from pathlib import Path
from typing import Any

import jsonschema

from findexec.context import RunConfig
from findexec.scheduler import RunResult
from findexec.utils import serialize_json


SCHEMA_PATH = Path(__file__).parent / "schemas" / "report.schema.json"
REPORT_VERSION = "v1"


class ReportValidationError(Exception):
    """Raised when a report does not conform to the schema."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("Report validation failed: " + "; ".join(errors))


def load_report_schema() -> dict[str, Any]:
    with open(SCHEMA_PATH) as f:
        return json.load(f)


def build_report(
    config: RunConfig,
    result: RunResult,
    started_at: str,
    completed_at: str,
) -> dict[str, Any]:
    """
    Build the report object.

    Args:
        config: Options the run used.
        result: Finished run.
        started_at: ISO-8601 timestamp taken before the first file.
        completed_at: ISO-8601 timestamp taken after the last reap.

    Returns:
        Report dictionary with exact required shape.
    """
    return {
        "version": REPORT_VERSION,
        "command": config.command,
        "directory": config.directory,
        "mode": result.mode.value,
        "started_at": started_at,
        "completed_at": completed_at,
        "interrupted": result.interrupted,
        "disposition": result.disposition.value,
        "statistics": result.tally.to_dict(),
        "files": [record.to_dict() for record in result.records],
    }


def validate_report(report: dict[str, Any]) -> list[str]:
    """
    Validate a report against the schema.

    Returns:
        List of validation error messages (empty if valid).
    """
    validator = jsonschema.Draft7Validator(load_report_schema())
    errors = []
    for error in validator.iter_errors(report):
        path = ".".join(str(p) for p in error.absolute_path) or "(root)"
        errors.append(f"{path}: {error.message}")
    return errors


def write_report(path: Path, report: dict[str, Any]) -> None:
    """
    Validate and write a report.

    Raises:
        ReportValidationError: If the report does not match the schema.
        OSError: If the file cannot be written.
    """
    errors = validate_report(report)
    if errors:
        raise ReportValidationError(errors)
    Path(path).write_text(serialize_json(report))
