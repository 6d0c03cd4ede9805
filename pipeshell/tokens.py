"""Turn lexed words into typed tokens: builtins, programs, pipes, redirections."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Union

from pipeshell.environment import Environment
from pipeshell.lexer import QUOTES, Word

BUILTINS = ("echo", "cd", "pwd", "export", "unset", "env", "exit")
_STOP_CHARS = "><|"


class ParseError(ValueError):
    """Raised when a word sequence cannot be turned into tokens."""


class TokenKind(Enum):
    """What a token stands for."""

    COMMAND = auto()
    PROGRAM = auto()
    PIPE = auto()
    REDIRECTION_INPUT = auto()
    REDIRECTION_OUTPUT = auto()
    REDIRECTION_APPEND = auto()
    REDIRECTION_HERE_DOC = auto()


@dataclass
class Command:
    """A builtin with its echo option and its raw parameter text."""

    name: str
    option: str = ""
    parameters: str = ""


@dataclass
class Program:
    """An external program with its raw parameter text."""

    name: str
    parameters: str = ""


@dataclass
class Redirection:
    """The raw target of an input, output or append redirection."""

    file_name: str = ""


@dataclass
class HereDoc:
    """A here-document: its stop word and how its body is handled.

    *literal* is set when the stop word was quoted, so the body is not
    expanded; *tab* is set for the "<<-" form, which strips leading tabs.
    """

    stop_word: Optional[str] = None
    tab: bool = False
    literal: bool = False
    file_name: Optional[str] = None


TokenValue = Union[Command, Program, Redirection, HereDoc, None]


@dataclass
class Token:
    """One parsed token; pipes carry no value."""

    kind: TokenKind
    value: TokenValue = None


def is_builtin(name: str) -> bool:
    """Return True if *name* is exactly one of the shell's builtins."""
    return name in BUILTINS


def _classify(text: str) -> TokenKind:
    if text.startswith(">"):
        return TokenKind.REDIRECTION_APPEND if text.startswith(">>") else TokenKind.REDIRECTION_OUTPUT
    if text.startswith("<"):
        return TokenKind.REDIRECTION_HERE_DOC if text.startswith("<<") else TokenKind.REDIRECTION_INPUT
    if text.startswith("|"):
        return TokenKind.PIPE
    if is_builtin(text):
        return TokenKind.COMMAND
    return TokenKind.PROGRAM


def _stops(text: str) -> bool:
    """An empty word or one starting with an operator ends an argument list."""
    return not text or text[0] in _STOP_CHARS


def _strip_quotes(text: str) -> str:
    out: list[str] = []
    quote: Optional[str] = None
    for char in text:
        if quote is None and char in QUOTES:
            quote = char
        elif char == quote:
            quote = None
        else:
            out.append(char)
    return "".join(out)


def _command(words: list[Word], index: int, name: str) -> tuple[Command, int]:
    count = len(words)
    option = ""
    if (
        index + 1 < count
        and words[index].text.startswith("echo")
        and words[index + 1].text.startswith("-n ")
    ):
        index += 1
        while index + 1 < count and words[index + 1].text.startswith("-n "):
            index += 1
        option = words[index].text
    index += 1
    parts: list[str] = []
    while index < count and not _stops(words[index].text):
        if words[index].space_before >= 1:
            parts.append(" ")
        parts.append(words[index].text)
        index += 1
    if index < count:
        index -= 1
    return Command(name, option, "".join(parts)), index


def _program(words: list[Word], index: int, name: str) -> tuple[Program, int]:
    parts: list[str] = []
    while index + 1 < len(words):
        following = words[index + 1]
        if _stops(following.text):
            break
        if following.space_before >= 1:
            parts.append(" ")
        parts.append(following.text)
        index += 1
    return Program(name, "".join(parts)), index


def _redirection(words: list[Word], index: int) -> tuple[Redirection, int]:
    target = words[index + 1].text if index + 1 < len(words) else ""
    return Redirection(target), index + 1


def _heredoc(words: list[Word], index: int) -> tuple[HereDoc, int]:
    heredoc = HereDoc()
    if index + 1 < len(words):
        heredoc.tab = words[index].text[2:3] == "-"
        delimiter = words[index + 1].text
        if any(quote in delimiter for quote in QUOTES):
            heredoc.stop_word = _strip_quotes(delimiter)
            heredoc.literal = True
        else:
            heredoc.stop_word = delimiter
    return heredoc, index + 1


def _make_token(words: list[Word], index: int, env: Environment) -> tuple[Token, int]:
    text = env.expand(words[index].text)
    if not text.strip(" \t") and index + 1 < len(words):
        index += 1
        text = env.expand(words[index].text)
    kind = _classify(text)
    value: TokenValue
    if kind is TokenKind.COMMAND:
        value, index = _command(words, index, text)
    elif kind is TokenKind.PROGRAM:
        value, index = _program(words, index, text)
    elif kind is TokenKind.REDIRECTION_HERE_DOC:
        value, index = _heredoc(words, index)
    elif kind is TokenKind.PIPE:
        value = None
    else:
        value, index = _redirection(words, index)
    return Token(kind, value), index


def parse(words: list[Word], env: Environment) -> list[Token]:
    """Turn *words* into tokens, expanding names with *env*.

    Parameters and redirection targets keep their raw text; only the word
    that decides a token's kind is expanded here.
    """
    if any(not word.text for word in words):
        raise ParseError("error with parsing: empty word")
    tokens: list[Token] = []
    index = 0
    while index < len(words):
        token, index = _make_token(words, index, env)
        tokens.append(token)
        index += 1
    return tokens