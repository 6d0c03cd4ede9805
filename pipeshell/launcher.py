"""Open redirection files and start external programs."""

from __future__ import annotations

import errno
import os
import shutil
import signal
import subprocess
from collections.abc import Iterable
from typing import IO, Optional, Union

from pipeshell.environment import Environment
from pipeshell.lexer import QUOTES, WHITESPACE
from pipeshell.packaging import RedirectFile
from pipeshell.tokens import Program, TokenKind

_INPUT_KINDS = (TokenKind.REDIRECTION_INPUT, TokenKind.REDIRECTION_HERE_DOC)

Stream = Union[IO[bytes], int, None]


class RedirectionError(Exception):
    """Raised when a redirection file cannot be opened."""

    status = 1

    def __init__(self, path: str, message: str) -> None:
        super().__init__(message)
        self.path = path
        self.message = message


def permission_failure_message(path: str, mode: int) -> str:
    """Explain why *path* could not be opened for *mode* (os.R_OK or os.W_OK)."""
    if os.path.exists(path) and not os.access(path, mode):
        return f"{path}: Permission denied"
    return f"{path}: No such file or directory"


def open_redirections(
    redirections: Iterable[RedirectFile],
) -> tuple[Optional[IO[bytes]], Optional[IO[bytes]]]:
    """Open every redirection in order and return the (stdin, stdout) files.

    Later redirections of the same direction replace earlier ones, which are
    closed; output files are still created or truncated on the way. The caller
    owns and closes the returned files.
    """
    stdin: Optional[IO[bytes]] = None
    stdout: Optional[IO[bytes]] = None
    try:
        for redirect in redirections:
            is_input = redirect.kind in _INPUT_KINDS
            if is_input:
                mode, access = "rb", os.R_OK
            elif redirect.kind is TokenKind.REDIRECTION_APPEND:
                mode, access = "ab", os.W_OK
            else:
                mode, access = "wb", os.W_OK
            try:
                handle = open(redirect.name, mode)
            except OSError as exc:
                raise RedirectionError(
                    redirect.name, permission_failure_message(redirect.name, access)
                ) from exc
            if is_input:
                if stdin is not None:
                    stdin.close()
                stdin = handle
            else:
                if stdout is not None:
                    stdout.close()
                stdout = handle
    except RedirectionError:
        for handle in (stdin, stdout):
            if handle is not None:
                handle.close()
        raise
    return stdin, stdout


def resolve_program(name: str, env: Environment) -> Optional[str]:
    """Find the file to run for *name*, searching the shell's PATH.

    A name containing a slash is used as it is. Returns None when nothing
    on PATH matches or PATH is unset.
    """
    if "/" in name:
        return name
    search = env.get("PATH")
    if not name or not search:
        return None
    return shutil.which(name, path=search)


def _split_words(text: str) -> list[str]:
    """Split on whitespace outside quotes, keeping the quotes in the words."""
    words: list[str] = []
    current: list[str] = []
    in_word = False
    quote: Optional[str] = None
    for char in text:
        if quote is not None:
            current.append(char)
            if char == quote:
                quote = None
        elif char in QUOTES:
            quote = char
            current.append(char)
            in_word = True
        elif char in WHITESPACE:
            if in_word:
                words.append("".join(current))
                current = []
                in_word = False
        else:
            current.append(char)
            in_word = True
    if in_word:
        words.append("".join(current))
    return words


def build_argv(program: Program, env: Environment) -> list[str]:
    """Return the argument vector: the name, then each expanded parameter."""
    return [program.name, *(env.expand(word) for word in _split_words(program.parameters))]


def _check_executable(path: str) -> None:
    if not os.path.exists(path):
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), path)
    if os.path.isdir(path):
        raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), path)
    if not os.access(path, os.X_OK):
        raise PermissionError(errno.EACCES, os.strerror(errno.EACCES), path)


def _default_signals() -> None:
    signal.signal(signal.SIGINT, signal.SIG_DFL)
    signal.signal(signal.SIGQUIT, signal.SIG_DFL)


def run_program(
    program: Program,
    env: Environment,
    stdin: Stream = None,
    stdout: Stream = None,
) -> Optional[subprocess.Popen]:
    """Start *program* with the shell's variables and return the process.

    Returns None for an empty name, where there is nothing to run. Raises
    FileNotFoundError when the program cannot be found (exit status 127),
    IsADirectoryError or PermissionError when it cannot be run (126).
    """
    if not program.name:
        return None
    path = resolve_program(program.name, env)
    if path is None:
        raise FileNotFoundError(errno.ENOENT, "command not found", program.name)
    _check_executable(path)
    return subprocess.Popen(
        build_argv(program, env),
        executable=path,
        env=env.to_envp(),
        stdin=stdin,
        stdout=stdout,
        preexec_fn=_default_signals,
    )