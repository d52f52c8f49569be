"""
findexec Messages - Fixed user-facing text.

Responsibilities:
- Diagnostic and statistics message templates
- Immediate, unbatched writes to stderr

Invariants:
- Message text is stable (tests match it verbatim)
- Every write is flushed before returning
"""

import sys


PROG = "findexec"

USAGE = (
    f"Usage: {PROG} [--dir dir] [--parallel] [--statistics] [--allfiles] "
    "[--descend] [--report path] [--verbose] [cmd]"
)

DIR_ERROR = PROG + ': directory "{directory}" can not be accessed'
CMD_ERROR = PROG + ": command is not valid"
EXEC_ERROR = PROG + ': unable to execute "{program}" when processing "{path}"'
READ_ERROR = PROG + ': unable to open "{target}" for reading when processing "{path}"'
WRITE_ERROR = PROG + ': unable to write "{target}" while processing "{path}"'
REPORT_ERROR = PROG + ': unable to write report "{target}": {reason}'

STATISTICS = (
    "Attempted to process a total of {total} files\n"
    " - operations succeeded for {succeeded} files\n"
    " - processing may have failed for {failed} files\n"
    " - processing was terminated by signal for {signalled} files\n"
    " - pipeline not executed for {not_executed} files"
)


def emit(message: str) -> None:
    """Write one diagnostic line to stderr and flush."""
    print(message, file=sys.stderr, flush=True)
