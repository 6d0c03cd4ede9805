"""Ask for more input while a line ends in a pipe."""

from __future__ import annotations

import signal
import sys
from collections.abc import Callable
from typing import Optional

from pipeshell.lexer import WHITESPACE, has_double_pipe, is_pipe

PIPE_SYNTAX_ERROR = "syntax error near unexpected token `|'"
EOF_SYNTAX_ERROR = "syntax error: unexpected end of file"
CONTINUATION_PROMPT = ">"

LineReader = Callable[[str], Optional[str]]


class ContinuationError(Exception):
    """Raised when a line cannot be completed; carries the exit status."""

    def __init__(self, message: str, status: int) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


def _read_terminal(prompt: str) -> Optional[str]:
    try:
        return input(prompt)
    except EOFError:
        return None


def needs_continuation(line: str) -> bool:
    """Return True if the last non-blank character of *line* is a pipe."""
    stripped = line.rstrip(WHITESPACE)
    return bool(stripped) and is_pipe(stripped[-1])


def complete_line(line: str, read_line: Optional[LineReader] = None) -> str:
    """Read further input while *line* ends in a pipe and return the whole line.

    *read_line* takes a prompt and returns a line, or None at end of input;
    by default it reads from the terminal. Raises ContinuationError on a
    leading or doubled pipe, at end of input, or when interrupted.
    """
    reader = read_line or _read_terminal
    if is_pipe(line.lstrip(WHITESPACE)[:1]) or has_double_pipe(line):
        raise ContinuationError(PIPE_SYNTAX_ERROR, 2)
    while needs_continuation(line):
        try:
            extra = reader(CONTINUATION_PROMPT)
        except KeyboardInterrupt as exc:
            sys.stdout.write("\n")
            sys.stdout.flush()
            raise ContinuationError("", 128 + int(signal.SIGINT)) from exc
        if extra is None:
            raise ContinuationError(EOF_SYNTAX_ERROR, 2)
        line += extra
        if has_double_pipe(line):
            raise ContinuationError(EOF_SYNTAX_ERROR, 2)
    return line