"""
findexec Command Pipelines - Parsing and immutable pipeline templates.

This module provides:
- PipelineSpec: Frozen, declarative pipeline template
- RedirectionPlan: One file's resolved redirect targets
- parse_pipeline: Pipeline string -> PipelineSpec
- PipelineSyntaxError: Structured parse failure

Grammar (POSIX shell-like quoting via shlex):
    pipeline := stage ("|" stage)*
    stage    := word+ ["<" word] [">" word]

INVARIANTS:
- At least one stage; every stage has at least one token
- "<" only in the first stage, ">" only in the last, each at most once
- Only unquoted, unescaped "|", "<" and ">" act as operators
- Templates are never mutated; per-file values are fresh objects
"""

import shlex
from dataclasses import dataclass
from typing import Optional

from findexec.placeholders import resolve_command, substitute


PIPE = "|"
REDIRECT_IN = "<"
REDIRECT_OUT = ">"
OPERATOR_CHARS = PIPE + REDIRECT_IN + REDIRECT_OUT
QUOTES = "'\""
ESCAPE = "\\"

DEFAULT_COMMAND = "echo {}"


# =============================================================================
# PipelineSyntaxError
# =============================================================================


class PipelineSyntaxError(Exception):
    """
    Raised when a pipeline string cannot be parsed.

    Attributes:
        command: The offending pipeline string
        reason: Short description of what is wrong
    """

    def __init__(self, command: str, reason: str):
        self.command = command
        self.reason = reason
        super().__init__(f"Invalid pipeline {command!r}: {reason}")


# =============================================================================
# RedirectionPlan
# =============================================================================


@dataclass(frozen=True)
class RedirectionPlan:
    """
    Redirect targets for one file's pipeline run.

    Attributes:
        stdin_path: Replaces the first stage's standard input (or None)
        stdout_path: Replaces the last stage's standard output (or None)
    """
    stdin_path: Optional[str] = None
    stdout_path: Optional[str] = None


# =============================================================================
# PipelineSpec
# =============================================================================


@dataclass(frozen=True)
class PipelineSpec:
    """
    Frozen template of a multi-stage command pipeline.

    Attributes:
        stages: One token tuple per stage; the first token is the program
        stdin_template: Template for the first stage's input file
        stdout_template: Template for the last stage's output file
        text: Pipeline string the template was parsed from

    Rules:
        - Built once before scheduling, shared read-only by every file
        - Hashable, so it can be cached or compared
    """
    stages: tuple[tuple[str, ...], ...]
    stdin_template: Optional[str] = None
    stdout_template: Optional[str] = None
    text: str = ""

    def __post_init__(self):
        if not self.stages:
            raise ValueError("pipeline needs at least one stage")
        if any(len(stage) == 0 for stage in self.stages):
            raise ValueError("every stage needs at least one token")

    @property
    def stage_count(self) -> int:
        return len(self.stages)

    def resolve_stage(self, index: int, path: str) -> list[str]:
        """Return the concrete argument list of one stage for path."""
        return resolve_command(self.stages[index], path)

    def redirection_for(self, path: str) -> RedirectionPlan:
        """Resolve the redirection templates for path."""
        return RedirectionPlan(
            stdin_path=(
                substitute(self.stdin_template, path)
                if self.stdin_template is not None else None
            ),
            stdout_path=(
                substitute(self.stdout_template, path)
                if self.stdout_template is not None else None
            ),
        )


# =============================================================================
# Parsing



def _split_raw(text: str) -> list[tuple[str, bool]]:
    """
    Split text into raw (chunk, is_operator) pairs.

    Operator characters count only outside quotes and when not escaped, so
    a quoted or escaped "|", "<" or ">" stays part of its word. Word chunks
    keep their quoting for shlex to remove.
    """
    chunks: list[tuple[str, bool]] = []
    word = ""
    operator = ""
    quote: Optional[str] = None
    escaped = False

    for ch in text:
        if escaped:
            word += ch
            escaped = False
        elif quote is not None:
            word += ch
            if ch == quote:
                quote = None
            elif ch == ESCAPE and quote == '"':
                escaped = True
        elif ch in OPERATOR_CHARS:
            if word:
                chunks.append((word, False))
                word = ""
            operator += ch
        else:
            if operator:
                chunks.append((operator, True))
                operator = ""
            if ch.isspace():
                if word:
                    chunks.append((word, False))
                    word = ""
                continue
            word += ch
            if ch in QUOTES:
                quote = ch
            elif ch == ESCAPE:
                escaped = True

    if operator:
        chunks.append((operator, True))
    if word:
        chunks.append((word, False))
    return chunks


def _tokenize(text: str) -> list[tuple[str, bool]]:
    """Return (token, is_operator) pairs with quoting removed from words."""
    tokens = []
    for chunk, is_operator in _split_raw(text):
        if is_operator:
            tokens.append((chunk, True))
        else:
            # One chunk never holds unquoted whitespace, so it is one word.
            tokens.append((shlex.split(chunk)[0], False))
    return tokens


def parse_pipeline(text: str) -> PipelineSpec:
    """
    Parse a pipeline string into a PipelineSpec.

    Args:
        text: e.g. 'cat {} | sort -r > "{}.sorted"'

    Returns:
        Frozen PipelineSpec.

    Raises:
        PipelineSyntaxError: On unbalanced quotes, empty stages, misplaced
            or repeated redirections, or unknown operators such as "||".
    """
    try:
        tokens = _tokenize(text)
    except ValueError as e:
        raise PipelineSyntaxError(text, str(e)) from e

    if not tokens:
        raise PipelineSyntaxError(text, "empty command")

    stages: list[tuple[str, ...]] = []
    current: list[str] = []
    stdin_template: Optional[str] = None
    stdout_template: Optional[str] = None

    position = 0
    while position < len(tokens):
        token, is_operator = tokens[position]

        if not is_operator:
            current.append(token)
            position += 1
            continue

        if token == PIPE:
            if not current:
                raise PipelineSyntaxError(text, "empty stage")
            if stdout_template is not None:
                raise PipelineSyntaxError(text, "output redirection before end of pipeline")
            stages.append(tuple(current))
            current = []
            position += 1
            continue

        if token not in (REDIRECT_IN, REDIRECT_OUT):
            raise PipelineSyntaxError(text, f"unknown operator {token!r}")

        if position + 1 >= len(tokens) or tokens[position + 1][1]:
            raise PipelineSyntaxError(text, f"missing file name after {token!r}")
        target = tokens[position + 1][0]

        if token == REDIRECT_IN:
            if stages:
                raise PipelineSyntaxError(text, "input redirection outside first stage")
            if stdin_template is not None:
                raise PipelineSyntaxError(text, "input redirected twice")
            stdin_template = target
        else:
            if stdout_template is not None:
                raise PipelineSyntaxError(text, "output redirected twice")
            stdout_template = target
        position += 2

    if not current:
        raise PipelineSyntaxError(text, "empty stage")
    stages.append(tuple(current))

    return PipelineSpec(
        stages=tuple(stages),
        stdin_template=stdin_template,
        stdout_template=stdout_template,
        text=text,
    )
