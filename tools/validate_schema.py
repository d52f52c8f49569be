#!/usr/bin/env python3
"""
findexec Report Checker

Checks run reports saved with --report against the report schema shipped in
the findexec package. The schema check itself lives in findexec.report; this
script only reads files and turns problems into an exit status.

Usage:
    python tools/validate_schema.py <report.json> [<report.json> ...]

findexec must be importable (for example after `pip install -e .`).

Exit status:
    0   every report is valid
    1   at least one report is unreadable or invalid
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

from findexec.report import validate_report


def check_report(path: Path) -> list[str]:
    """
    Load one saved report and list its problems.

    Returns:
        Problem descriptions (empty if the report is valid).
    """
    try:
        report = json.loads(Path(path).read_text())
    except OSError as e:
        return [f"cannot read file: {e.strerror or e}"]
    except json.JSONDecodeError as e:
        return [f"not valid JSON: {e}"]
    return validate_report(report)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Check saved findexec run reports against the report schema"
    )
    parser.add_argument("reports", nargs="+", type=Path, metavar="report")
    args = parser.parse_args(argv)

    status = 0
    for path in args.reports:
        problems = check_report(path)
        if problems:
            status = 1
            print(f"INVALID {path}: {len(problems)} problem(s)")
            for problem in problems:
                print(f"  - {problem}")
        else:
            print(f"VALID {path}")
    return status


if __name__ == "__main__":
    sys.exit(main())
