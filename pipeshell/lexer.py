"""Split a command line into words, keeping quotes and operators intact."""

from __future__ import annotations

from dataclasses import dataclass

WHITESPACE = " \t\n\v\f\r"
QUOTES = "'\""
META_CHARS = "|<>"
_REDIRECTIONS = ("<<-", "<<", ">>", "<", ">")


class LexerError(ValueError):
    """Raised when a line cannot be split into words."""


@dataclass(frozen=True)
class Word:
    """One lexical word and the number of spaces directly in front of it."""

    text: str
    space_before: int = 0


def is_pipe(char: str) -> bool:
    """Return True if *char* is the pipe operator."""
    return char == "|"


def _spaces_before(line: str, index: int) -> int:
    head = line[:index]
    return len(head) - len(head.rstrip(" "))


def _redirection_at(line: str, index: int) -> str:
    return next(op for op in _REDIRECTIONS if line.startswith(op, index))


def _option_end(line: str, index: int) -> int:
    """Options run up to and including the next space."""
    space = line.find(" ", index + 1)
    return len(line) if space == -1 else space + 1


def _word_end(line: str, index: int) -> int:
    end = len(line)
    while index < end:
        char = line[index]
        if char in QUOTES:
            close = line.find(char, index + 1)
            if close == -1:
                raise LexerError("syntax error: unclosed quote")
            index = close + 1
        elif char in WHITESPACE or char in META_CHARS:
            break
        else:
            index += 1
    return index


def lex(line: str) -> list[Word]:
    """Split *line* into words; quoted sections stay inside their word."""
    words: list[Word] = []
    index = 0
    length = len(line)
    while index < length:
        while index < length and line[index] in WHITESPACE:
            index += 1
        if index >= length:
            break
        char = line[index]
        spaces = _spaces_before(line, index)
        if char in "<>":
            text = _redirection_at(line, index)
            end = index + len(text)
        elif char == "-":
            end = _option_end(line, index)
            text = line[index:end]
        elif is_pipe(char):
            text, end, spaces = "|", index + 1, 0
        else:
            end = _word_end(line, index)
            text = line[index:end]
        words.append(Word(text, spaces))
        index = end
    return words


def has_double_pipe(line: str) -> bool:
    """Return True if two pipes follow each other, ignoring whitespace."""
    index = 0
    length = len(line)
    while index < length:
        if line[index] in QUOTES:
            close = line.find(line[index], index + 1)
            if close == -1:
                return False
            index = close + 1
            if index >= length:
                return False
        if is_pipe(line[index]):
            index += 1
            while index < length and line[index] in WHITESPACE:
                index += 1
            if index >= length:
                return False
            if is_pipe(line[index]):
                return True
        index += 1
    return False