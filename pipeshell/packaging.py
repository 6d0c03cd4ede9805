"""Group tokens into pipeline stages with their redirections."""

from __future__ import annotations

import dataclasses
import itertools
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Optional, Union

from pipeshell.environment import Environment
from pipeshell.heredoc import collect_heredoc
from pipeshell.tokens import Command, HereDoc, Program, Redirection, Token, TokenKind


@dataclass
class RedirectFile:
    """A resolved redirection: its kind and the file it uses."""

    kind: TokenKind
    name: str


@dataclass
class Package:
    """One pipeline stage: a builtin or a program plus its redirections."""

    command: Optional[Command] = None
    program: Optional[Program] = None
    redirections: list[RedirectFile] = field(default_factory=list)


def gather_parts(name: Optional[str], option: Optional[str], params: Optional[str]) -> str:
    """Join name, option and parameters as they are, treating None as empty."""
    return f"{name or ''}{option or ''}{params or ''}"


def _merge(package: Package, value: Union[Command, Program]) -> None:
    """Append a further command or program word to the stage's parameters."""
    if isinstance(value, Program):
        extra = gather_parts(value.name, "", value.parameters)
    else:
        extra = gather_parts(value.name, value.option, value.parameters)
    target: Union[Command, Program, None] = package.program or package.command
    if target is None:
        return
    target.parameters = f"{target.parameters} {extra}" if target.parameters else extra


def _populate(
    package: Package,
    token: Token,
    env: Environment,
    lines: Optional[Iterator[str]],
    counter: Iterator[int],
) -> None:
    value = token.value
    has_executable = package.command is not None or package.program is not None
    if isinstance(value, (Command, Program)):
        if has_executable:
            _merge(package, value)
        elif isinstance(value, Command):
            package.command = dataclasses.replace(value)
        else:
            package.program = dataclasses.replace(value)
    elif isinstance(value, HereDoc):
        collect_heredoc(value, env, lines, next(counter))
        package.redirections.append(RedirectFile(token.kind, value.file_name or ""))
    elif isinstance(value, Redirection):
        package.redirections.append(RedirectFile(token.kind, env.expand(value.file_name)))


def build_packages(
    tokens: Iterable[Token],
    env: Environment,
    heredoc_lines: Optional[Iterable[str]],
) -> list[Package]:
    """Split *tokens* at pipes into packages.

    Redirection targets are expanded with *env*; here-documents read their
    bodies from *heredoc_lines* (None reads from the terminal). A pipe always
    closes the current stage, but a trailing pipe opens no new one.
    """
    lines = None if heredoc_lines is None else iter(heredoc_lines)
    counter = itertools.count(1)
    packages: list[Package] = []
    current = Package()
    started = False
    for token in tokens:
        if token.kind is TokenKind.PIPE:
            packages.append(current)
            current = Package()
            started = False
            continue
        _populate(current, token, env, lines, counter)
        started = True
    if started:
        packages.append(current)
    return packages