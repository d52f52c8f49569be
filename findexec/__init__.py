"""
findexec — Per-file Command Pipeline Runner

Runs one command pipeline per file found in a directory.

Components (leaves first):
    placeholders  — {} substitution
    command       — pipeline string parsing
    files         — directory enumeration
    redirection   — per-file redirect pre-flight
    spawner       — one child process per stage, pipe wiring
    runner        — one file's stage chain
    outcomes      — reaping, classification, statistics
    scheduler     — sequential / parallel execution
    cancel        — SIGINT cancellation flag

Invariants:
    - Every spawned process is reaped, including after SIGINT
    - Stages are reaped in stage order, files in file order
    - Outcome precedence: NotExecuted > SignalTerminated > Failure > Success
    - Same FileSet = same statistics in both modes
"""

__version__ = "1.0.0.dev0"
