"""The shell's variable table and its textual forms."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Optional, Union

_VARIABLE = re.compile(r"\?|[A-Za-z_][A-Za-z0-9_]*")


@dataclass
class Environment:
    """Shell variables in insertion order.

    A value of None marks a name that was declared without an '='.
    """

    variables: dict[str, Optional[str]] = field(default_factory=dict)
    current_dir: Optional[str] = None
    previous_dir: Optional[str] = None
    home_dir: Optional[str] = None
    exit_status: int = 0

    def get(self, name: str) -> Optional[str]:
        """Return the value of *name*, or None if unset or valueless."""
        return self.variables.get(name)

    def set(self, name: str, value: Optional[str]) -> None:
        """Set *name*; an existing variable keeps its position."""
        self.variables[name] = value

    def _expand_at(self, text: str, index: int) -> tuple[str, int]:
        match = _VARIABLE.match(text, index + 1)
        if match is None:
            return "$", index + 1
        name = match.group()
        if name == "?":
            return str(self.exit_status), match.end()
        return self.get(name) or "", match.end()

    def expand(self, text: str) -> str:
        """Expand $NAME and $? and remove quotes, as the shell does."""
        out: list[str] = []
        quote: Optional[str] = None
        index = 0
        while index < len(text):
            char = text[index]
            if quote is None and char in "'\"":
                quote = char
                index += 1
            elif char == quote:
                quote = None
                index += 1
            elif char == "$" and quote != "'":
                value, index = self._expand_at(text, index)
                out.append(value)
            else:
                out.append(char)
                index += 1
        return "".join(out)

    def to_envp(self) -> dict[str, str]:
        """Return the variables that carry a value, for a child process."""
        return {name: value for name, value in self.variables.items() if value is not None}


def read_env(envp: Union[Iterable[str], Mapping[str, str]]) -> Environment:
    """Build an Environment from "NAME=value" strings or a mapping."""
    if isinstance(envp, Mapping):
        envp = [f"{name}={value}" for name, value in envp.items()]
    env = Environment()
    for entry in envp:
        name, sep, value = entry.partition("=")
        env.variables[name] = value if sep else None
        if entry.startswith("PWD"):
            env.current_dir = entry[4:]
        elif entry.startswith("OLDPWD"):
            env.previous_dir = entry[7:]
        elif entry.startswith("HOME"):
            env.home_dir = entry[5:]
    return env


def format_env(env: Environment) -> str:
    """Render the output of the env builtin."""
    return "".join(
        f"{name}={value}\n" for name, value in env.variables.items() if value is not None
    )


def format_env_debug(env: Environment) -> str:
    """Render every variable, including valueless ones, for debugging."""
    lines = ["\n~~our_env~~\n\n"]
    for name, value in env.variables.items():
        shown = name if value is None else f"{name}={value}"
        lines.append(f"(var_name:value) {shown} \n")
    return "".join(lines)