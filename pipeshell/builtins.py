"""Validate and run the shell's builtin commands."""

from __future__ import annotations

import os
import re
import sys
from collections.abc import Callable
from typing import Optional, TextIO

from pipeshell.environment import Environment, format_env
from pipeshell.launcher import build_argv
from pipeshell.tokens import Command, Program

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_NUMBER = re.compile(r"[+-]?[0-9]+")


class BuiltinError(Exception):
    """Raised when a builtin's arguments are rejected; carries the exit status."""

    def __init__(self, message: str, status: int = 1) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


def _arguments(command: Command, env: Environment) -> list[str]:
    return build_argv(Program(command.name, command.parameters), env)[1:]


def _check_pwd_env(command: Command, env: Environment) -> None:
    name = command.name
    params = env.expand(command.parameters)
    if command.option.startswith("-"):
        raise BuiltinError(f"{name}: {command.option.strip()}: invalid option", 2)
    if params.startswith("-"):
        raise BuiltinError(f"{name}: {params}: invalid option", 2)
    if name == "env" and params:
        raise BuiltinError(f"env: '{params.strip()}': No such file or directory", 127)
    if name == "pwd" and len(params) > 2 and params[1] == "-" and params[2].isalnum():
        raise BuiltinError(f"pwd: {params.strip()}: invalid option", 2)


def _check_identifiers(command: Command, env: Environment, unset: bool) -> None:
    args = _arguments(command, env)
    if args:
        for arg in args:
            name = arg if unset else arg.partition("=")[0]
            if not _IDENTIFIER.fullmatch(name):
                raise BuiltinError(f"{command.name}: `{arg}': not a valid identifier", 1)
        return
    if command.option:
        if unset:
            raise BuiltinError(f"unset: {command.option}: invalid option", 2)
        raise BuiltinError(f"export: `{command.option}': not a valid identifier", 1)


def _check_export(command: Command, env: Environment) -> None:
    _check_identifiers(command, env, unset=False)


def _check_unset(command: Command, env: Environment) -> None:
    _check_identifiers(command, env, unset=True)


def _cd_target(command: Command, env: Environment) -> str:
    params = command.parameters or " $HOME"
    expanded = env.expand(params)
    if expanded == " ":
        raise BuiltinError("cd: HOME not set", 1)
    target = expanded.lstrip(" ")
    if " " in target:
        raise BuiltinError("cd: too many arguments", 1)
    return target


def _check_cd(command: Command, env: Environment) -> None:
    target = _cd_target(command, env)
    if not os.path.exists(target):
        raise BuiltinError(f"cd: {target}: No such file or directory", 1)
    if not os.path.isdir(target):
        raise BuiltinError(f"cd: {target}: Not a directory", 1)
    if not os.access(target, os.X_OK):
        raise BuiltinError(f"cd: {target}: Permission denied", 1)


def _check_exit(command: Command, env: Environment) -> None:
    args = _arguments(command, env)
    if not args:
        return
    if not _NUMBER.fullmatch(args[0]):
        env.exit_status = 2
        print(f"exit: {args[0]}: numeric argument required", file=sys.stderr)
        return
    if len(args) > 1:
        raise BuiltinError("exit: too many arguments", 1)
    env.exit_status = int(args[0]) % 256


_CHECKS: dict[str, Callable[[Command, Environment], None]] = {
    "pwd": _check_pwd_env,
    "env": _check_pwd_env,
    "export": _check_export,
    "unset": _check_unset,
    "cd": _check_cd,
    "exit": _check_exit,
}


def check_builtin(command: Command, env: Environment) -> None:
    """Validate *command*'s arguments, raising BuiltinError when they are wrong.

    For exit this also records the status the shell will leave with.
    """
    checker = _CHECKS.get(command.name)
    if checker is not None:
        checker(command, env)


def _run_pwd(command: Command, env: Environment, out: TextIO) -> int:
    try:
        cwd = os.getcwd()
    except OSError as exc:
        print(f"pwd: failed: getcwd: {exc.strerror}", file=sys.stderr)
        return 1
    out.write(cwd + "\n")
    return 0


def _run_env(command: Command, env: Environment, out: TextIO) -> int:
    out.write(format_env(env))
    return 0


def _run_export(command: Command, env: Environment, out: TextIO) -> int:
    args = _arguments(command, env)
    if not args:
        for name in sorted(env.variables):
            value = env.variables[name]
            if value is None:
                out.write(f"declare -x {name}\n")
            else:
                out.write(f'declare -x {name}="{value}"\n')
        return 0
    for arg in args:
        name, sep, value = arg.partition("=")
        if sep:
            env.set(name, value)
        elif name not in env.variables:
            env.set(name, None)
    return 0


def _run_unset(command: Command, env: Environment, out: TextIO) -> int:
    for name in _arguments(command, env):
        env.variables.pop(name, None)
    return 0


def _run_cd(command: Command, env: Environment, out: TextIO) -> int:
    try:
        target = _cd_target(command, env)
        previous = os.getcwd()
        os.chdir(target)
        current = os.getcwd()
    except BuiltinError as exc:
        print(exc.message, file=sys.stderr)
        return exc.status
    except OSError as exc:
        print(f"cd: {exc.filename}: {exc.strerror}", file=sys.stderr)
        return 1
    env.previous_dir = previous
    env.current_dir = current
    env.set("OLDPWD", previous)
    env.set("PWD", current)
    return 0


def _run_echo(command: Command, env: Environment, out: TextIO) -> int:
    params = command.parameters
    text = env.expand(params[1:] if params.startswith(" ") else params)
    out.write(text if command.option else text + "\n")
    return 0


def _run_exit(command: Command, env: Environment, out: TextIO) -> int:
    raise SystemExit(env.exit_status)


_RUNNERS: dict[str, Callable[[Command, Environment, TextIO], int]] = {
    "pwd": _run_pwd,
    "env": _run_env,
    "export": _run_export,
    "unset": _run_unset,
    "cd": _run_cd,
    "echo": _run_echo,
    "exit": _run_exit,
}


def run_builtin(command: Command, env: Environment, out: Optional[TextIO] = None) -> int:
    """Run *command* writing to *out* (stdout by default) and return its status.

    exit raises SystemExit with the shell's current exit status.
    """
    runner = _RUNNERS.get(command.name)
    if runner is None:
        raise ValueError(f"{command.name}: not a builtin")
    return runner(command, env, out if out is not None else sys.stdout)