"""
findexec Stage Spawner - One child process per pipeline stage.

Responsibilities:
- PipeLink: ownership-tracked pipe between two adjacent stages
- StageProcess: a launched stage (or a stage that could not start)
- spawn_stage: wire stdin/stdout by stage position and launch

Invariants:
- First stage reads the stdin redirect if given, otherwise inherits stdin
- Later stages read the upstream pipe
- Last stage writes the stdout redirect if given, otherwise inherits stdout
- Earlier stages write the downstream pipe
- The coordinator releases the downstream write end and the upstream read
  end as soon as the stage is spawned, whether or not the spawn succeeded
- Pipe ends are non-inheritable; children see only their own two streams
"""

import os
import subprocess
from dataclasses import dataclass, field
from typing import Optional

from findexec.command import RedirectionPlan
from findexec.log import get_logger
from findexec.messages import EXEC_ERROR, emit
from findexec.outcomes import TerminationStatus
from findexec.redirection import (
    open_input,
    open_output,
    report_input_failure,
    report_output_failure,
)


logger = get_logger(__name__)


# =============================================================================
# PipeLink
# =============================================================================


class PipeLink:
    """
    One pipe between stage i (writer) and stage i+1 (reader).

    Each end is handed to exactly one child and released exactly once by
    the coordinator. close() releases whatever ends are still held, so a
    link used as a context manager can never leak a descriptor.
    """

    def __init__(self):
        self._read_fd: Optional[int]
        self._write_fd: Optional[int]
        self._read_fd, self._write_fd = os.pipe()

    @property
    def read_fd(self) -> int:
        if self._read_fd is None:
            raise ValueError("read end already released")
        return self._read_fd

    @property
    def write_fd(self) -> int:
        if self._write_fd is None:
            raise ValueError("write end already released")
        return self._write_fd

    @property
    def is_open(self) -> bool:
        return self._read_fd is not None or self._write_fd is not None

    def release_read(self) -> None:
        if self._read_fd is not None:
            fd, self._read_fd = self._read_fd, None
            os.close(fd)

    def release_write(self) -> None:
        if self._write_fd is not None:
            fd, self._write_fd = self._write_fd, None
            os.close(fd)

    def close(self) -> None:
        self.release_write()
        self.release_read()

    def __enter__(self) -> "PipeLink":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


# =============================================================================
# StageProcess
# =============================================================================


@dataclass
class StageProcess:
    """
    One stage of one file's pipeline.

    Attributes:
        index: Stage position in the pipeline
        argv: Resolved argument list
        process: Running child, or None if it could not be started
    """
    index: int
    argv: list[str]
    process: Optional[subprocess.Popen] = None
    _status: Optional[TerminationStatus] = field(default=None, init=False, repr=False)

    @property
    def pid(self) -> Optional[int]:
        return self.process.pid if self.process is not None else None

    def wait(self) -> TerminationStatus:
        """Block until the stage terminates; safe to call more than once."""
        if self._status is None:
            if self.process is None:
                self._status = TerminationStatus.not_executed()
            else:
                self._status = TerminationStatus.from_returncode(self.process.wait())
            logger.debug("reaped stage %d (pid %s): %s", self.index, self.pid, self._status)
        return self._status


# =============================================================================
# spawn_stage
# =============================================================================


def _stdin_for(index: int, plan: RedirectionPlan, upstream: Optional[PipeLink], path: str):
    """Return (fd or None, owned) for the stage's standard input."""
    if index == 0:
        if plan.stdin_path is None:
            return None, False
        try:
            return open_input(plan.stdin_path), True
        except OSError:
            report_input_failure(plan.stdin_path, path)
            raise
    return upstream.read_fd, False


def _stdout_for(
    index: int,
    count: int,
    plan: RedirectionPlan,
    downstream: Optional[PipeLink],
    path: str,
):
    """Return (fd or None, owned) for the stage's standard output."""
    if index == count - 1:
        if plan.stdout_path is None:
            return None, False
        try:
            return open_output(plan.stdout_path), True
        except OSError:
            report_output_failure(plan.stdout_path, path)
            raise
    return downstream.write_fd, False


def spawn_stage(
    argv: list[str],
    index: int,
    count: int,
    path: str,
    plan: RedirectionPlan,
    upstream: Optional[PipeLink] = None,
    downstream: Optional[PipeLink] = None,
) -> StageProcess:
    """
    Launch one stage of one file's pipeline.

    Args:
        argv: Resolved argument list (argv[0] is the program).
        index: Stage position, 0-based.
        count: Number of stages in the pipeline.
        path: File being processed (for diagnostics).
        plan: Validated redirect targets for this file.
        upstream: Pipe from the previous stage (None for the first stage).
        downstream: Pipe to the next stage (None for the last stage).

    Returns:
        StageProcess; its process is None if the stage could not start.

    Note:
        A stage that cannot start (unknown program, permission denied,
        redirect target gone since validation) gets a diagnostic on stderr
        and a "could not execute" status. The rest of the pipeline still
        runs and sees EOF / a closed pipe, as it would in a shell.
    """
    owned: list[int] = []
    stage = StageProcess(index=index, argv=argv)
    try:
        try:
            stdin, own_in = _stdin_for(index, plan, upstream, path)
            if own_in:
                owned.append(stdin)
            stdout, own_out = _stdout_for(index, count, plan, downstream, path)
            if own_out:
                owned.append(stdout)
        except OSError as e:
            logger.debug("redirect for stage %d failed: %s", index, e)
            return stage

        try:
            stage.process = subprocess.Popen(argv, stdin=stdin, stdout=stdout)
        except OSError as e:
            logger.debug("exec of %r failed: %s", argv[0], e)
            emit(EXEC_ERROR.format(program=argv[0], path=path))
        else:
            logger.debug("spawned stage %d/%d pid %d: %s", index + 1, count, stage.pid, argv)
    finally:
        for fd in owned:
            os.close(fd)
        if downstream is not None:
            downstream.release_write()
        if upstream is not None:
            upstream.close()
    return stage
