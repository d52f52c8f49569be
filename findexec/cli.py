"""
findexec CLI - Argument parsing, run dispatch and exit codes.

Responsibilities:
- Argument parsing (each option at most once, command last)
- Configuration errors: usage, directory, command
- Installing the SIGINT cancel flag around the run
- Statistics report, JSON run report
- Exit codes

Exit codes:
    0   all files processed, none not-executed
    6   directory cannot be accessed
    9   command is not valid
    16  at least one file's pipeline was not executed
    17  run cut short by SIGINT
    18  usage error

Forbidden:
- No process spawning (see findexec.scheduler)
"""

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from findexec.cancel import CancelFlag
from findexec.command import DEFAULT_COMMAND, PipelineSyntaxError, parse_pipeline
from findexec.context import RunConfig
from findexec.files import DEFAULT_DIRECTORY, DirectoryAccessError, list_files
from findexec.log import configure_logging, get_logger
from findexec.messages import CMD_ERROR, DIR_ERROR, REPORT_ERROR, USAGE, emit
from findexec.report import build_report, write_report
from findexec.scheduler import Disposition, run_files
from findexec.utils import now_iso


logger = get_logger(__name__)

EXIT_OK = 0
EXIT_DIRECTORY = 6
EXIT_COMMAND = 9
EXIT_PROCESS_ERROR = 16
EXIT_INTERRUPTED = 17
EXIT_USAGE = 18

DISPOSITION_EXIT_CODES = {
    Disposition.NORMAL: EXIT_OK,
    Disposition.PROCESS_ERROR: EXIT_PROCESS_ERROR,
    Disposition.INTERRUPTED: EXIT_INTERRUPTED,
}


class UsageParser(argparse.ArgumentParser):
    """ArgumentParser whose errors print the fixed usage line and exit 18."""

    def error(self, message):
        logger.debug("usage error: %s", message)
        emit(USAGE)
        sys.exit(EXIT_USAGE)


class OnceAction(argparse.Action):
    """Store an option's value (or const for flags), rejecting repeats."""

    def __call__(self, parser, namespace, values, option_string=None):
        seen = namespace.__dict__.setdefault("_seen_options", set())
        if self.dest in seen:
            parser.error(f"{option_string} given more than once")
        seen.add(self.dest)
        setattr(namespace, self.dest, self.const if self.nargs == 0 else values)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = UsageParser(
        prog="findexec",
        allow_abbrev=False,
        description="Run a command pipeline once for every file in a directory.",
        epilog=(
            'Every "{}" in the command is replaced by the file being processed. '
            'Use "<" and ">" to redirect the first stage\'s input and the last '
            "stage's output."
        ),
    )
    parser.add_argument(
        "--dir",
        metavar="dir",
        action=OnceAction,
        default=None,
        help=f"Directory to scan (default: {DEFAULT_DIRECTORY}).",
    )
    for flag, help_text in (
        ("--parallel", "Launch every file's pipeline before reaping any."),
        ("--statistics", "Print run statistics to stderr when done."),
        ("--allfiles", "Include hidden files."),
        ("--descend", "Also process files in subdirectories."),
        ("--verbose", "Debug logging to stderr."),
    ):
        parser.add_argument(
            flag, action=OnceAction, nargs=0, const=True, default=False, help=help_text,
        )
    parser.add_argument(
        "--report",
        metavar="path",
        action=OnceAction,
        default=None,
        help="Write a JSON run report to path.",
    )
    parser.add_argument(
        "cmd",
        nargs="?",
        default=None,
        help=f'Command pipeline (default: "{DEFAULT_COMMAND}").',
    )
    return parser


VALUE_OPTIONS = ("--dir", "--report")
HELP_OPTION = "-h"


def normalise_argv(parser: argparse.ArgumentParser, argv: Sequence[str]) -> list[str]:
    """
    Rewrite argv so argparse reads it the way findexec defines it.

    - A value option always takes the next argument, even one that looks
      like an option ("--dir -x" scans the directory "-x")
    - A final argument starting with a single "-" is the command, not an
      unknown option; it is passed after "--"
    - A bare "--" outside a value position is a usage error
    """
    normalised: list[str] = []
    position = 0
    while position < len(argv):
        arg = argv[position]
        if arg in VALUE_OPTIONS and position + 1 < len(argv):
            normalised.append(f"{arg}={argv[position + 1]}")
            position += 2
            continue
        if arg == "--":
            parser.error('"--" is not an option')
        if (
            position == len(argv) - 1
            and arg.startswith("-")
            and not arg.startswith("--")
            and arg != HELP_OPTION
        ):
            normalised.extend(["--", arg])
        else:
            normalised.append(arg)
        position += 1
    return normalised


def parse_config(
    parser: argparse.ArgumentParser,
    argv: Optional[Sequence[str]] = None,
) -> RunConfig:
    """Parse argv into a RunConfig, enforcing the rules argparse can't."""
    argv = list(sys.argv[1:] if argv is None else argv)
    args = parser.parse_args(normalise_argv(parser, argv))

    if args.dir == "":
        parser.error("empty directory")
    if args.cmd is not None and (args.cmd == "" or argv[-1] != args.cmd):
        parser.error("command must be the last, non-empty argument")

    return RunConfig(
        directory=args.dir if args.dir is not None else DEFAULT_DIRECTORY,
        directory_is_default=args.dir is None,
        parallel=args.parallel,
        statistics=args.statistics,
        allfiles=args.allfiles,
        descend=args.descend,
        command=args.cmd if args.cmd is not None else DEFAULT_COMMAND,
        report_path=args.report,
        verbose=args.verbose,
    )


def cmd_run(config: RunConfig) -> int:
    """
    Run the pipeline over the directory described by config.

    Returns exit code.
    """
    if config.verbose:
        configure_logging(level="DEBUG")
    logger.debug("config: %s", config.to_dict())

    try:
        files = list_files(
            config.directory,
            include_hidden=config.allfiles,
            descend=config.descend,
            bare_names=config.directory_is_default,
        )
    except DirectoryAccessError as e:
        emit(DIR_ERROR.format(directory=e.directory))
        return EXIT_DIRECTORY

    try:
        spec = parse_pipeline(config.command)
    except PipelineSyntaxError as e:
        logger.debug("%s", e)
        emit(CMD_ERROR)
        return EXIT_COMMAND

    started_at = now_iso()
    cancel = CancelFlag()
    with cancel.installed():
        result = run_files(spec, files, parallel=config.parallel, cancel=cancel)
    completed_at = now_iso()

    if config.statistics:
        emit(result.tally.render())

    if config.report_path is not None:
        report = build_report(config, result, started_at, completed_at)
        try:
            write_report(Path(config.report_path), report)
        except OSError as e:
            emit(REPORT_ERROR.format(target=config.report_path, reason=e.strerror or e))

    return DISPOSITION_EXIT_CODES[result.disposition]


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main entry point."""
    parser = create_parser()
    config = parse_config(parser, argv)
    sys.exit(cmd_run(config))
