"""Collect here-document bodies into temporary files."""

from __future__ import annotations

import re
import signal
import sys
from collections.abc import Iterable, Iterator
from typing import Optional

from pipeshell.environment import Environment
from pipeshell.tokens import HereDoc

HEREDOC_DIR = "/tmp/"
_VARIABLE = re.compile(r"\$(\?|[A-Za-z_][A-Za-z0-9_]*)")


class HeredocInterrupted(Exception):
    """Raised when a here-document is cut short or has no stop word."""


def heredoc_path(index: int) -> str:
    """Return the temporary file path used for here-document number *index*."""
    return f"{HEREDOC_DIR}.heredoc_{index}"


def trim_tabs(line: str) -> str:
    """Strip the leading tabs of *line*, as the "<<-" form does."""
    return line.lstrip("\t")


def process_line(line: str, env: Environment, literal: bool) -> str:
    """Expand $NAME and $? in a body line unless the body is *literal*.

    Quotes are kept as they are: inside a here-document they are plain text.
    """
    if literal:
        return line

    def replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name == "?":
            return str(env.exit_status)
        return env.get(name) or ""

    return _VARIABLE.sub(replace, line)


def _prompt_lines() -> Iterator[str]:
    while True:
        try:
            yield input("> ")
        except EOFError:
            return


def collect_heredoc(
    heredoc: HereDoc,
    env: Environment,
    lines: Optional[Iterable[str]],
    index: int,
) -> str:
    """Read body lines up to the stop word and write them to a temporary file.

    *lines* supplies the input; None reads from the terminal. The path of the
    written file is stored on *heredoc* and returned. A KeyboardInterrupt while
    reading sets the exit status to 128 + SIGINT and raises HeredocInterrupted.
    """
    if heredoc.stop_word is None:
        raise HeredocInterrupted("syntax error: here-document has no delimiter")
    path = heredoc_path(index)
    source = _prompt_lines() if lines is None else iter(lines)
    with open(path, "w", encoding="utf-8") as out:
        heredoc.file_name = path
        env.exit_status = 0
        try:
            for raw in source:
                line = raw[:-1] if raw.endswith("\n") else raw
                if heredoc.tab:
                    line = trim_tabs(line)
                if line == heredoc.stop_word:
                    break
                out.write(process_line(line, env, heredoc.literal) + "\n")
            else:
                print(
                    "warning: here-document delimited by end-of-file "
                    f"(wanted `{heredoc.stop_word}')",
                    file=sys.stderr,
                )
        except KeyboardInterrupt as exc:
            env.exit_status = 128 + int(signal.SIGINT)
            raise HeredocInterrupted("here-document interrupted") from exc
    return path