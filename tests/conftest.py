"""
findexec Test Configuration

Provides helpers for running the CLI and fixtures for file sets.
"""

import os
import subprocess
import sys
from pathlib import Path

import pytest


REPO_ROOT = Path(__file__).parent.parent


def run_cli(*args: str, cwd: str | None = None) -> subprocess.CompletedProcess:
    """Run findexec CLI as subprocess."""
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(
        p for p in (str(REPO_ROOT), env.get("PYTHONPATH")) if p
    )
    return subprocess.run(
        [sys.executable, "-m", "findexec", *args],
        capture_output=True,
        text=True,
        cwd=cwd,
        env=env,
        timeout=60,
    )


def create_files(directory: Path, names: dict[str, str]) -> list[Path]:
    """
    Create text files in directory.
    
    Args:
        directory: Target directory (created if missing)
        names: Mapping of file name to content
    
    Returns:
        Paths of the created files, in the given order.
    """
    directory.mkdir(parents=True, exist_ok=True)
    paths = []
    for name, content in names.items():
        path = directory / name
        path.write_text(content)
        paths.append(path)
    return paths


def open_fd_count() -> int:
    """Number of descriptors open in this process (Linux only)."""
    return len(os.listdir("/proc/self/fd"))


needs_proc_fd = pytest.mark.skipif(
    not os.path.isdir("/proc/self/fd"), reason="needs /proc/self/fd"
)


@pytest.fixture
def file_dir(tmp_path) -> Path:
    """Directory holding a.txt and b.txt."""
    directory = tmp_path / "files"
    create_files(directory, {"a.txt": "alpha\n", "b.txt": "bravo\n"})
    return directory


@pytest.fixture
def in_file_dir(file_dir, monkeypatch) -> Path:
    """chdir into file_dir so bare names resolve."""
    monkeypatch.chdir(file_dir)
    return file_dir
