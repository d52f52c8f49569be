"""
findexec Outcomes - Reaping, classification and run statistics.

This module provides:
- TerminationStatus: How one stage process ended
- Outcome: Closed set of per-file results
- classify: Ordered precedence over all stage statuses of a file
- reap / reap_file: Wait for a file's stages in stage order
- StatsTally: The five run counters

INVARIANTS:
- Stages are reaped in stage order, whatever order they really exit in
- Precedence is fixed: NotExecuted > SignalTerminated > Failure > Success
- Each classified file bumps exactly one bucket plus the total
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Optional, Protocol, Sequence

from findexec.log import get_logger
from findexec.messages import STATISTICS


logger = get_logger(__name__)


# =============================================================================
# Outcome
# =============================================================================


class Outcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    SIGNAL_TERMINATED = "signal_terminated"
    NOT_EXECUTED = "not_executed"


# First match wins; a file with no stage in this table is a success.
OUTCOME_PRECEDENCE = (
    Outcome.NOT_EXECUTED,
    Outcome.SIGNAL_TERMINATED,
    Outcome.FAILURE,
)


# =============================================================================
# TerminationStatus
# =============================================================================


@dataclass(frozen=True)
class TerminationStatus:
    """
    How one stage process terminated.

    Attributes:
        exit_code: Exit code for a normal exit, else None
        signal: Number of the terminating signal, else None
        executed: False when the program could not be started at all

    Rules:
        - "Could not execute" is its own state, never an exit code, so a
          program that genuinely exits with any code is never confused
          with one that never ran
    """
    exit_code: Optional[int] = None
    signal: Optional[int] = None
    executed: bool = True

    @classmethod
    def from_returncode(cls, returncode: int) -> "TerminationStatus":
        """Build from a subprocess returncode (negative means signalled)."""
        if returncode < 0:
            return cls(signal=-returncode)
        return cls(exit_code=returncode)

    @classmethod
    def not_executed(cls) -> "TerminationStatus":
        return cls(executed=False)

    @property
    def outcome(self) -> Outcome:
        """Outcome of this stage taken on its own."""
        if not self.executed:
            return Outcome.NOT_EXECUTED
        if self.signal is not None:
            return Outcome.SIGNAL_TERMINATED
        if self.exit_code:
            return Outcome.FAILURE
        return Outcome.SUCCESS

    def to_dict(self) -> dict:
        return asdict(self)


def classify(statuses: Sequence[TerminationStatus]) -> Outcome:
    """
    Classify a file from the statuses of all of its stages.

    Args:
        statuses: One status per stage, in stage order.

    Returns:
        The highest-precedence stage outcome, or SUCCESS.
    """
    stage_outcomes = {status.outcome for status in statuses}
    for outcome in OUTCOME_PRECEDENCE:
        if outcome in stage_outcomes:
            return outcome
    return Outcome.SUCCESS


# =============================================================================
# Reaping
# =============================================================================


class Waitable(Protocol):
    def wait(self) -> TerminationStatus: ...


def reap(processes: Sequence[Waitable]) -> list[TerminationStatus]:
    """Wait for every process in order and collect their statuses."""
    return [process.wait() for process in processes]


@dataclass(frozen=True)
class OutcomeRecord:
    """
    Result of one file's pipeline run.

    Attributes:
        index: Position of the file in the FileSet
        path: File that was processed
        outcome: Classified result
        statuses: Stage statuses in stage order (empty if never spawned)
        commands: Resolved argument lists in stage order (empty if never spawned)
    """
    index: int
    path: str
    outcome: Outcome
    statuses: tuple[TerminationStatus, ...] = ()
    commands: tuple[tuple[str, ...], ...] = ()

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "outcome": self.outcome.value,
            "stages": [
                {"argv": list(argv), **status.to_dict()}
                for argv, status in zip(self.commands, self.statuses)
            ],
        }


# =============================================================================
# StatsTally
# =============================================================================


@dataclass
class StatsTally:
    """Run-wide counters; mutate only through record()."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    signalled: int = 0
    not_executed: int = 0

    def record(self, outcome: Outcome) -> None:
        if outcome is Outcome.SUCCESS:
            self.succeeded += 1
        elif outcome is Outcome.FAILURE:
            self.failed += 1
        elif outcome is Outcome.SIGNAL_TERMINATED:
            self.signalled += 1
        else:
            self.not_executed += 1
        self.total += 1

    def to_dict(self) -> dict[str, int]:
        return asdict(self)

    def render(self) -> str:
        """Five-line statistics report."""
        return STATISTICS.format(**self.to_dict())


def reap_file(file_run, tally: StatsTally) -> OutcomeRecord:
    """
    Reap one file's stage processes, classify and tally the file.

    Args:
        file_run: A runner.FileRun (index, path, processes).
        tally: Run statistics to update.

    Returns:
        OutcomeRecord for the file.
    """
    statuses = reap(file_run.processes)
    outcome = classify(statuses)
    tally.record(outcome)
    logger.debug("%s: %s %s", file_run.path, outcome.value, statuses)
    return OutcomeRecord(
        index=file_run.index,
        path=file_run.path,
        outcome=outcome,
        statuses=tuple(statuses),
        commands=tuple(tuple(p.argv) for p in file_run.processes),
    )


def not_executed_record(index: int, path: str, tally: StatsTally) -> OutcomeRecord:
    """Tally a file whose pipeline was never spawned."""
    tally.record(Outcome.NOT_EXECUTED)
    return OutcomeRecord(index=index, path=path, outcome=Outcome.NOT_EXECUTED)
