"""Run a list of pipeline stages: builtins in the shell, programs as children."""

from __future__ import annotations

import copy
import io
import os
import signal
import subprocess
import sys
import threading
from collections.abc import Iterable
from typing import IO, Optional, Union

from pipeshell.builtins import BuiltinError, check_builtin, run_builtin
from pipeshell.environment import Environment
from pipeshell.launcher import RedirectionError, open_redirections, run_program
from pipeshell.packaging import Package
from pipeshell.tokens import Command, Program, Token, TokenKind

_Incoming = Union[IO[bytes], int, None]
_Result = Union[subprocess.Popen, int]


def count_pipelines(tokens: Iterable[Token]) -> int:
    """Return the number of pipeline stages the tokens describe."""
    return 1 + sum(1 for token in tokens if token.kind is TokenKind.PIPE)


def _report(message: str) -> None:
    if message:
        print(f"pipeshell: {message}", file=sys.stderr)


def _close(stream: _Incoming) -> None:
    if isinstance(stream, int):
        if stream >= 0:
            os.close(stream)
    elif stream is not None:
        stream.close()


def _run_in_parent(command: Command, package: Package, env: Environment) -> None:
    """Run a lone builtin in the shell itself so it can change the shell's state."""
    failed = False
    try:
        check_builtin(command, env)
    except BuiltinError as exc:
        _report(exc.message)
        env.exit_status = exc.status
        failed = True
    try:
        stdin, stdout = open_redirections(package.redirections)
    except RedirectionError as exc:
        _report(exc.message)
        env.exit_status = exc.status
        return
    try:
        if failed:
            return
        if stdout is None:
            env.exit_status = run_builtin(command, env)
        else:
            buffer = io.StringIO()
            status = run_builtin(command, env, buffer)
            stdout.write(buffer.getvalue().encode())
            env.exit_status = status
    finally:
        _close(stdin)
        _close(stdout)


def _feed(data: bytes, feeders: list[threading.Thread]) -> int:
    """Return the read end of a pipe that a thread fills with *data*."""
    read_end, write_end = os.pipe()

    def write() -> None:
        try:
            with os.fdopen(write_end, "wb") as sink:
                sink.write(data)
        except BrokenPipeError:
            pass

    thread = threading.Thread(target=write, daemon=True)
    thread.start()
    feeders.append(thread)
    return read_end


def _start_program(
    program: Program,
    env: Environment,
    stdin: _Incoming,
    stdout: Optional[IO[bytes]],
    last: bool,
) -> tuple[_Result, _Incoming]:
    target: Union[IO[bytes], int, None]
    if stdout is not None:
        target = stdout
    else:
        target = None if last else subprocess.PIPE
    try:
        process = run_program(program, env, stdin, target)
    except FileNotFoundError:
        if "/" in program.name:
            _report(f"{program.name}: No such file or directory")
        else:
            _report(f"{program.name}: command not found")
        return 127, None
    except IsADirectoryError:
        _report(f"{program.name}: Is a directory")
        return 126, None
    except PermissionError:
        _report(f"{program.name}: Permission denied")
        return 126, None
    except OSError as exc:
        _report(f"{program.name}: {exc.strerror}")
        return 126, None
    if process is None:
        return 0, None
    return process, process.stdout


def _run_builtin_stage(
    command: Command,
    env: Environment,
    stdout: Optional[IO[bytes]],
    last: bool,
    feeders: list[threading.Thread],
) -> tuple[_Result, _Incoming]:
    """Run a builtin inside a pipeline on a copy of the shell's state."""
    local = copy.deepcopy(env)
    buffer = io.StringIO()
    try:
        check_builtin(command, local)
        status = 0 if command.name == "cd" else run_builtin(command, local, buffer)
    except BuiltinError as exc:
        _report(exc.message)
        status = exc.status
    except SystemExit as exc:
        status = exc.code if isinstance(exc.code, int) else 0
    text = buffer.getvalue()
    if stdout is not None:
        stdout.write(text.encode())
        return status, None
    if last:
        sys.stdout.write(text)
        sys.stdout.flush()
        return status, None
    return status, _feed(text.encode(), feeders)


def _start_stage(
    package: Package,
    env: Environment,
    incoming: _Incoming,
    last: bool,
    feeders: list[threading.Thread],
) -> tuple[_Result, _Incoming]:
    try:
        stdin, stdout = open_redirections(package.redirections)
    except RedirectionError as exc:
        _report(exc.message)
        return exc.status, None
    try:
        if package.program is not None:
            source = stdin if stdin is not None else incoming
            return _start_program(package.program, env, source, stdout, last)
        if package.command is not None:
            return _run_builtin_stage(package.command, env, stdout, last, feeders)
        return 0, None
    finally:
        _close(stdin)
        _close(stdout)


def _wait(result: _Result) -> tuple[int, Optional[int]]:
    """Return the exit status of a stage and the signal that ended it, if any."""
    if isinstance(result, int):
        return result, None
    code = result.wait()
    if code < 0:
        signum = -code
        if signum == signal.SIGQUIT:
            print("Quit (core dumped)")
        return 128 + signum, signum
    return code, None


def _run_pipeline(stages: list[Package], env: Environment) -> None:
    previous = signal.getsignal(signal.SIGINT)
    signal.signal(signal.SIGINT, signal.SIG_IGN)
    results: list[_Result] = []
    feeders: list[threading.Thread] = []
    incoming: _Incoming = None
    try:
        for position, package in enumerate(stages):
            last = position == len(stages) - 1
            if incoming is not None:
                source = incoming
            else:
                source = subprocess.DEVNULL if position else None
            try:
                result, following = _start_stage(package, env, source, last, feeders)
            finally:
                _close(incoming)
                incoming = None
            incoming = following
            results.append(result)
        _close(incoming)
        outcomes = [_wait(result) for result in results]
        for feeder in feeders:
            feeder.join()
    finally:
        signal.signal(signal.SIGINT, previous if previous is not None else signal.SIG_DFL)
    status, signum = outcomes[-1]
    if signum is not None:
        sys.stdout.write("\n")
        sys.stdout.flush()
    env.exit_status = status


def dispatch(packages: Iterable[Package], env: Environment) -> int:
    """Run the pipeline described by *packages* and return the exit status.

    A single builtin runs in the shell itself; anything else runs stage by
    stage, connected by pipes, and the last stage decides the status.
    """
    stages = list(packages)
    if not stages:
        return env.exit_status
    if len(stages) == 1 and stages[0].command is not None:
        _run_in_parent(stages[0].command, stages[0], env)
    else:
        _run_pipeline(stages, env)
    return env.exit_status