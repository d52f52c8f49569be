"""
findexec Placeholders - Per-file argument resolution.

Responsibilities:
- Replace every "{}" in an argument template with a file path
- Resolve whole stage templates into fresh argument lists

Invariants:
- Scanning is literal (no escaping), left to right, non-overlapping
- Text coming from the file path is never rescanned
- Templates are never mutated
"""

from typing import Sequence


PLACEHOLDER = "{}"


def count_placeholders(template: str) -> int:
    """Count non-overlapping placeholder occurrences in a template."""
    return template.count(PLACEHOLDER)


def substitute(template: str, path: str) -> str:
    """
    Replace every placeholder in template with path.
    
    Args:
        template: Argument template, e.g. "{}.out"
        path: File currently being processed.
    
    Returns:
        New string; equal to template when it holds no placeholder.
    """
    # str.replace scans the original template only, so a "{}" inside
    # path is copied through untouched.
    return template.replace(PLACEHOLDER, path)


def resolve_command(tokens: Sequence[str], path: str) -> list[str]:
    """Resolve every token of one stage template for path."""
    return [substitute(token, path) for token in tokens]
