"""
findexec Scheduler - Sequential or parallel execution over a FileSet.

MODES (selected once, fixed for the run):

    sequential  — validate, spawn, reap, classify one file before the next;
                  the cancel flag is polled between files and, once set,
                  the remaining files are abandoned (not attempted, not
                  counted)
    parallel    — validate and spawn every file without waiting, then reap
                  every retained pipeline in file order; cancellation never
                  abandons work and only shows in the disposition

INVARIANTS:
    - A file failing redirect validation is never spawned and is recorded
      as NotExecuted
    - Records are returned in file order in both modes
    - Every spawned process is reaped before run_files returns
    - Disposition precedence: NotExecuted > Interrupted > Normal
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from findexec.cancel import CancelFlag
from findexec.command import PipelineSpec
from findexec.log import get_logger
from findexec.outcomes import (
    OutcomeRecord,
    StatsTally,
    not_executed_record,
    reap_file,
)
from findexec.redirection import validate_redirection
from findexec.runner import FileRun, run_file_pipeline


logger = get_logger(__name__)


class Mode(str, Enum):
    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"


class Disposition(str, Enum):
    NORMAL = "normal"
    PROCESS_ERROR = "process_error"
    INTERRUPTED = "interrupted"


@dataclass
class RunResult:
    """
    Everything a finished run produced.

    Attributes:
        mode: Execution mode used
        tally: Run statistics
        records: One OutcomeRecord per attempted file, in file order
        interrupted: True if SIGINT cut the run short (sequential) or
            arrived at any point before the end (parallel)
    """
    mode: Mode
    tally: StatsTally = field(default_factory=StatsTally)
    records: list[OutcomeRecord] = field(default_factory=list)
    interrupted: bool = False

    @property
    def disposition(self) -> Disposition:
        # Policy: a file that could not be executed outranks an interrupt.
        if self.tally.not_executed:
            return Disposition.PROCESS_ERROR
        if self.interrupted:
            return Disposition.INTERRUPTED
        return Disposition.NORMAL


def _launch(spec: PipelineSpec, path: str, index: int, result: RunResult) -> Optional[FileRun]:
    """Validate redirection, then spawn; None if the file was not executed."""
    plan = spec.redirection_for(path)
    if not validate_redirection(plan, path):
        result.records.append(not_executed_record(index, path, result.tally))
        return None
    return run_file_pipeline(spec, plan, path, index=index)


def run_sequential(
    spec: PipelineSpec,
    files: Sequence[str],
    cancel: CancelFlag,
) -> RunResult:
    result = RunResult(mode=Mode.SEQUENTIAL)
    for index, path in enumerate(files):
        if index > 0 and cancel.is_set():
            logger.debug("interrupted; abandoning %d file(s)", len(files) - index)
            result.interrupted = True
            break
        file_run = _launch(spec, path, index, result)
        if file_run is not None:
            result.records.append(reap_file(file_run, result.tally))
    return result


def run_parallel(
    spec: PipelineSpec,
    files: Sequence[str],
    cancel: CancelFlag,
) -> RunResult:
    result = RunResult(mode=Mode.PARALLEL)
    pending: list[FileRun] = []
    try:
        for index, path in enumerate(files):
            file_run = _launch(spec, path, index, result)
            if file_run is not None:
                pending.append(file_run)
        logger.debug("spawned %d pipeline(s); reaping", len(pending))
    finally:
        # Reap even if spawning a later file raised, so nothing is left behind.
        for file_run in pending:
            result.records.append(reap_file(file_run, result.tally))
    result.records.sort(key=lambda record: record.index)
    result.interrupted = cancel.is_set()
    return result


def run_files(
    spec: PipelineSpec,
    files: Sequence[str],
    parallel: bool = False,
    cancel: Optional[CancelFlag] = None,
) -> RunResult:
    """
    Run the pipeline once per file.

    Args:
        spec: Pipeline template.
        files: Ordered FileSet.
        parallel: Use parallel mode.
        cancel: Flag polled for SIGINT; a fresh, never-set flag if omitted.

    Returns:
        RunResult with statistics and per-file records.
    """
    if cancel is None:
        cancel = CancelFlag()
    if parallel:
        return run_parallel(spec, files, cancel)
    return run_sequential(spec, files, cancel)
