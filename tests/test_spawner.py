"""
findexec Spawner and Runner Tests

Coverage:
- PipeLink ownership (each end released exactly once)
- Stage wiring: pipes, stdin/stdout redirection by stage position
- k stages -> k processes, k reaps
- Exec failure inside a pipeline
- No descriptor leaks
"""

import os

import pytest

from findexec.command import PipelineSpec, RedirectionPlan, parse_pipeline
from findexec.outcomes import Outcome, StatsTally, TerminationStatus, classify, reap, reap_file
from findexec.runner import run_file_pipeline
from findexec.spawner import PipeLink, spawn_stage
from tests.conftest import create_files, needs_proc_fd, open_fd_count


def fd_is_open(fd: int) -> bool:
    try:
        os.fstat(fd)
    except OSError:
        return False
    return True


class TestPipeLink:
    """Ownership-tracked pipe ends."""

    def test_ends_are_non_inheritable(self):
        with PipeLink() as link:
            assert not os.get_inheritable(link.read_fd)
            assert not os.get_inheritable(link.write_fd)

    def test_release_each_end_once(self):
        link = PipeLink()
        read_fd, write_fd = link.read_fd, link.write_fd
        link.release_write()
        assert not fd_is_open(write_fd)
        assert fd_is_open(read_fd)
        link.release_write()
        with pytest.raises(ValueError):
            link.write_fd
        link.release_read()
        assert not fd_is_open(read_fd)
        assert not link.is_open

    def test_context_manager_closes_both(self):
        with PipeLink() as link:
            read_fd, write_fd = link.read_fd, link.write_fd
        assert not fd_is_open(read_fd)
        assert not fd_is_open(write_fd)

    def test_data_flows(self):
        with PipeLink() as link:
            os.write(link.write_fd, b"hello")
            link.release_write()
            assert os.read(link.read_fd, 16) == b"hello"


class TestSpawnStage:
    """Single-stage spawning."""

    def test_releases_downstream_write_end(self, tmp_path):
        downstream = PipeLink()
        write_fd = downstream.write_fd
        stage = spawn_stage(["true"], 0, 2, "a.txt", RedirectionPlan(), downstream=downstream)
        assert not fd_is_open(write_fd)
        assert stage.wait() == TerminationStatus(exit_code=0)
        downstream.close()

    def test_closes_upstream(self, tmp_path):
        upstream = PipeLink()
        upstream.release_write()
        read_fd = upstream.read_fd
        out = tmp_path / "out"
        plan = RedirectionPlan(stdout_path=str(out))
        stage = spawn_stage(["cat"], 1, 2, "a.txt", plan, upstream=upstream)
        assert not upstream.is_open
        assert not fd_is_open(read_fd)
        assert stage.wait().exit_code == 0
        assert out.read_text() == ""

    def test_unknown_program(self, capfd):
        stage = spawn_stage(
            ["findexec-no-such-program", "a.txt"], 0, 1, "a.txt", RedirectionPlan(),
        )
        assert stage.process is None
        assert stage.pid is None
        assert stage.wait() == TerminationStatus.not_executed()
        assert capfd.readouterr().err == (
            'findexec: unable to execute "findexec-no-such-program" '
            'when processing "a.txt"\n'
        )

    def test_permission_denied(self, tmp_path, capfd):
        script = tmp_path / "script.sh"
        script.write_text("#!/bin/sh\nexit 0\n")
        script.chmod(0o644)
        stage = spawn_stage([str(script)], 0, 1, "a.txt", RedirectionPlan())
        assert stage.wait().outcome is Outcome.NOT_EXECUTED
        assert "unable to execute" in capfd.readouterr().err

    def test_vanished_input_redirect(self, tmp_path, capfd):
        plan = RedirectionPlan(stdin_path=str(tmp_path / "gone"))
        stage = spawn_stage(["cat"], 0, 1, "a.txt", plan)
        assert stage.wait().outcome is Outcome.NOT_EXECUTED
        assert "for reading" in capfd.readouterr().err

    def test_wait_is_idempotent(self):
        stage = spawn_stage(["sh", "-c", "exit 4"], 0, 1, "a.txt", RedirectionPlan())
        assert stage.wait() == stage.wait() == TerminationStatus(exit_code=4)


class TestRunFilePipeline:
    """Whole-file stage chains."""

    def test_single_stage_to_output_file(self, tmp_path):
        out = tmp_path / "a.out"
        spec = parse_pipeline(f"echo {{}} > {out}")
        plan = spec.redirection_for("a.txt")
        run = run_file_pipeline(spec, plan, "a.txt")
        assert len(run.processes) == 1
        assert reap(run.processes) == [TerminationStatus(exit_code=0)]
        assert out.read_text() == "a.txt\n"

    @pytest.mark.parametrize("stages", [1, 2, 3, 5])
    def test_k_stages_k_processes(self, tmp_path, stages):
        (path,) = create_files(tmp_path, {"in.txt": "hello\n"})
        template = ("cat",)
        spec = PipelineSpec(
            stages=(("cat", "{}"),) + (template,) * (stages - 1),
            stdout_template="{}.out",
        )
        run = run_file_pipeline(spec, spec.redirection_for(str(path)), str(path), index=7)
        assert run.index == 7
        assert [stage.index for stage in run.processes] == list(range(stages))
        assert all(stage.pid is not None for stage in run.processes)
        assert len({stage.pid for stage in run.processes}) == stages
        statuses = reap(run.processes)
        assert len(statuses) == stages
        assert classify(statuses) is Outcome.SUCCESS
        assert (tmp_path / "in.txt.out").read_text() == "hello\n"

    def test_stdin_and_stdout_redirect_through_pipe(self, tmp_path):
        (path,) = create_files(tmp_path, {"words": "banana\napple\ncherry\n"})
        spec = parse_pipeline("sort < {} | tr a-z A-Z > {}.sorted")
        run = run_file_pipeline(spec, spec.redirection_for(str(path)), str(path))
        record = reap_file(run, StatsTally())
        assert record.outcome is Outcome.SUCCESS
        assert (tmp_path / "words.sorted").read_text() == "APPLE\nBANANA\nCHERRY\n"

    def test_exec_failure_then_echo(self, capfd):
        spec = parse_pipeline("findexec-falseprog {} | echo {}")
        run = run_file_pipeline(spec, spec.redirection_for("a.txt"), "a.txt")
        record = reap_file(run, StatsTally())
        assert record.statuses == (
            TerminationStatus.not_executed(),
            TerminationStatus(exit_code=0),
        )
        assert record.outcome is Outcome.NOT_EXECUTED
        captured = capfd.readouterr()
        assert captured.out == "a.txt\n"
        assert 'unable to execute "findexec-falseprog" when processing "a.txt"' in captured.err

    def test_middle_stage_failure(self, capfd):
        spec = parse_pipeline("echo {} | findexec-nothing | cat")
        run = run_file_pipeline(spec, spec.redirection_for("a.txt"), "a.txt")
        statuses = reap(run.processes)
        # echo may or may not hit SIGPIPE, depending on timing.
        assert statuses[1].outcome is Outcome.NOT_EXECUTED
        assert statuses[2].outcome is Outcome.SUCCESS
        assert classify(statuses) is Outcome.NOT_EXECUTED
        capfd.readouterr()

    def test_signalled_stage(self):
        spec = PipelineSpec(stages=(("sh", "-c", "kill -TERM $$"),))
        run = run_file_pipeline(spec, RedirectionPlan(), "a.txt")
        record = reap_file(run, StatsTally())
        assert record.outcome is Outcome.SIGNAL_TERMINATED
        assert record.statuses[0].signal == 15

    @needs_proc_fd
    def test_no_descriptor_leak(self, tmp_path, capfd):
        (path,) = create_files(tmp_path, {"in.txt": "x\n"})
        spec = parse_pipeline("cat {} | cat | findexec-missing | cat > {}.out")
        before = open_fd_count()
        for _ in range(5):
            run = run_file_pipeline(spec, spec.redirection_for(str(path)), str(path))
            reap(run.processes)
        assert open_fd_count() == before
        capfd.readouterr()
