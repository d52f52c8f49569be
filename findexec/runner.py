"""
findexec Pipeline Runner - Launch one file's full stage chain.

INVARIANTS:
    - One fresh PipeLink per adjacent stage pair, per file
    - Returns once every stage is spawned, not when they finish
    - processes[i] is stage i
    - If spawning aborts with an OS error, already-spawned stages are
      reaped and every held pipe end is closed before the error propagates
"""

from dataclasses import dataclass, field
from typing import Optional

from findexec.command import PipelineSpec, RedirectionPlan
from findexec.spawner import PipeLink, StageProcess, spawn_stage


@dataclass
class FileRun:
    """The StageProcessSet of one file, in stage order."""

    index: int
    path: str
    processes: list[StageProcess] = field(default_factory=list)


def run_file_pipeline(
    spec: PipelineSpec,
    plan: RedirectionPlan,
    path: str,
    index: int = 0,
) -> FileRun:
    """
    Spawn every stage of the pipeline for one file.

    Args:
        spec: Pipeline template.
        plan: Validated redirect targets for path.
        path: File being processed.
        index: Position of path in the FileSet.

    Returns:
        FileRun holding one StageProcess per stage.
    """
    run = FileRun(index=index, path=path)
    count = spec.stage_count
    upstream: Optional[PipeLink] = None
    downstream: Optional[PipeLink] = None
    try:
        for stage_index in range(count):
            downstream = PipeLink() if stage_index < count - 1 else None
            run.processes.append(
                spawn_stage(
                    spec.resolve_stage(stage_index, path),
                    stage_index,
                    count,
                    path,
                    plan,
                    upstream=upstream,
                    downstream=downstream,
                )
            )
            upstream, downstream = downstream, None
    except BaseException:
        for link in (upstream, downstream):
            if link is not None:
                link.close()
        for stage in run.processes:
            stage.wait()
        raise
    return run
