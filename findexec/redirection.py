"""
findexec Redirection - Per-file redirect pre-flight and opening.

Responsibilities:
- Open redirect targets in the mode the pipeline will use them
- Pre-flight validation before any process of a file is spawned
- Diagnostics naming the failed target and the file being processed

Invariants:
- Input is opened read-only; output is created/truncated with mode 0600
- Validation stops at the first failure
- Descriptors opened for validation are closed before returning
"""

import os

from findexec.command import RedirectionPlan
from findexec.log import get_logger
from findexec.messages import READ_ERROR, WRITE_ERROR, emit


logger = get_logger(__name__)

OUTPUT_FLAGS = os.O_WRONLY | os.O_CREAT | os.O_TRUNC
OUTPUT_MODE = 0o600


def open_input(target: str) -> int:
    """Open a stdin redirect target; raises OSError on failure."""
    return os.open(target, os.O_RDONLY)


def open_output(target: str) -> int:
    """Open (create/truncate) a stdout redirect target; raises OSError on failure."""
    return os.open(target, OUTPUT_FLAGS, OUTPUT_MODE)


def report_input_failure(target: str, path: str) -> None:
    emit(READ_ERROR.format(target=target, path=path))


def report_output_failure(target: str, path: str) -> None:
    emit(WRITE_ERROR.format(target=target, path=path))


def validate_redirection(plan: RedirectionPlan, path: str) -> bool:
    """
    Check that every redirect target of plan can be opened.

    Args:
        plan: Resolved redirect targets for this file.
        path: File being processed (for the diagnostic).

    Returns:
        True if every specified target opened, False otherwise.

    Note:
        Output targets are truncated here, exactly as the real run will.
    """
    if plan.stdin_path is not None:
        try:
            os.close(open_input(plan.stdin_path))
        except OSError as e:
            logger.debug("stdin redirect %s failed: %s", plan.stdin_path, e)
            report_input_failure(plan.stdin_path, path)
            return False

    if plan.stdout_path is not None:
        try:
            os.close(open_output(plan.stdout_path))
        except OSError as e:
            logger.debug("stdout redirect %s failed: %s", plan.stdout_path, e)
            report_output_failure(plan.stdout_path, path)
            return False

    return True
