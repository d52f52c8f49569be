"""
findexec Files - Directory enumeration.

Responsibilities:
- List the regular files of a directory in sorted order
- Optional hidden-file inclusion and subdirectory descent

Forbidden:
- No pipeline execution
- No per-file redirection logic

Invariants:
- Output is ordered and duplicate-free
- Symbolic links count only when they resolve to a regular file
- Symbolic links to directories are never descended into
"""

import os


DEFAULT_DIRECTORY = "."


class DirectoryAccessError(Exception):
    """Raised when the directory to scan cannot be opened."""

    def __init__(self, directory: str):
        self.directory = directory
        super().__init__(f"Directory cannot be accessed: {directory}")


def is_hidden(name: str) -> bool:
    return name.startswith(".")


def _join(directory: str, name: str, bare: bool) -> str:
    if bare:
        return name
    if directory.endswith("/"):
        return directory + name
    return directory + "/" + name


def _scan(directory: str, include_hidden: bool, descend: bool, bare: bool) -> list[str]:
    with os.scandir(directory) as it:
        entries = sorted(it, key=lambda entry: entry.name)

    files: list[str] = []
    for entry in entries:
        if is_hidden(entry.name) and not include_hidden:
            continue
        path = _join(directory, entry.name, bare)
        try:
            if entry.is_file():
                files.append(path)
            elif descend and entry.is_dir(follow_symlinks=False):
                files.extend(_scan(path, include_hidden, descend, bare=False))
        except OSError:
            # Dangling links and entries that vanished mid-scan are skipped.
            continue
    return files


def list_files(
    directory: str,
    include_hidden: bool = False,
    descend: bool = False,
    bare_names: bool = False,
) -> list[str]:
    """
    Enumerate candidate files of a directory.

    Args:
        directory: Directory to scan.
        include_hidden: Include names starting with ".".
        descend: Also list files in subdirectories, depth first.
        bare_names: Return names relative to the directory (used for the
            default "." so paths print as "a.txt" rather than "./a.txt").

    Returns:
        Sorted list of file paths.

    Raises:
        DirectoryAccessError: If the top-level directory cannot be read.

    Note:
        Unreadable subdirectories found while descending are skipped.
    """
    try:
        with os.scandir(directory):
            pass
    except OSError as e:
        raise DirectoryAccessError(directory) from e

    return _scan(directory, include_hidden, descend, bare_names)
