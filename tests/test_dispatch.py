import os
import signal

import pytest

from pipeshell.dispatch import count_pipelines, dispatch
from pipeshell.environment import read_env
from pipeshell.packaging import Package, RedirectFile
from pipeshell.tokens import Command, Program, Token, TokenKind


@pytest.fixture
def env():
    return read_env({"PATH": os.environ.get("PATH", "/usr/bin:/bin")})


def _out(path):
    return RedirectFile(TokenKind.REDIRECTION_OUTPUT, str(path))


def test_count_pipelines_counts_pipes():
    tokens = [
        Token(TokenKind.COMMAND, Command("echo")),
        Token(TokenKind.PIPE),
        Token(TokenKind.PROGRAM, Program("cat")),
    ]
    assert count_pipelines(tokens) == 2
    assert count_pipelines([]) == 1


def test_empty_dispatch_keeps_status(env):
    env.exit_status = 7
    assert dispatch([], env) == 7


def test_single_builtin_writes_to_redirection(env, tmp_path):
    target = tmp_path / "out.txt"
    package = Package(command=Command("echo", "", " hello"), redirections=[_out(target)])
    assert dispatch([package], env) == 0
    assert target.read_text() == "hello\n"


def test_single_export_changes_shell_state(env):
    dispatch([Package(command=Command("export", "", " FOO=bar"))], env)
    assert env.get("FOO") == "bar"


def test_builtin_in_pipeline_leaves_shell_state_alone(env, tmp_path):
    target = tmp_path / "out.txt"
    stages = [
        Package(command=Command("export", "", " FOO=bar")),
        Package(program=Program("cat", ""), redirections=[_out(target)]),
    ]
    assert dispatch(stages, env) == 0
    assert env.get("FOO") is None
    assert target.read_text() == ""


def test_program_pipeline(env, tmp_path):
    target = tmp_path / "out.txt"
    stages = [
        Package(program=Program("echo", " abc")),
        Package(program=Program("cat", ""), redirections=[_out(target)]),
    ]
    assert dispatch(stages, env) == 0
    assert target.read_text() == "abc\n"


def test_builtin_output_feeds_program(env, tmp_path):
    target = tmp_path / "out.txt"
    stages = [
        Package(command=Command("echo", "", " hi")),
        Package(program=Program("cat", ""), redirections=[_out(target)]),
    ]
    dispatch(stages, env)
    assert target.read_text() == "hi\n"


def test_missing_program_gives_127(env):
    assert dispatch([Package(program=Program("no_such_program_pipeshell", ""))], env) == 127
    assert env.exit_status == 127


def test_program_exit_status(env):
    assert dispatch([Package(program=Program("sh", " -c 'exit 3'"))], env) == 3


def test_signal_termination_status(env):
    status = dispatch([Package(program=Program("sh", " -c 'kill -TERM $$'"))], env)
    assert status == 128 + signal.SIGTERM


def test_builtin_check_failure(env, capsys):
    package = Package(command=Command("cd", "", " /nonexistent/pipeshell_dir"))
    assert dispatch([package], env) == 1
    assert "No such file or directory" in capsys.readouterr().err


def test_redirection_failure_for_program(env, tmp_path):
    missing = tmp_path / "missing.txt"
    package = Package(
        program=Program("cat", ""),
        redirections=[RedirectFile(TokenKind.REDIRECTION_INPUT, str(missing))],
    )
    assert dispatch([package], env) == 1


def test_redirection_failure_for_builtin(env, tmp_path, capsys):
    missing = tmp_path / "missing.txt"
    package = Package(
        command=Command("echo", "", " x"),
        redirections=[RedirectFile(TokenKind.REDIRECTION_INPUT, str(missing))],
    )
    assert dispatch([package], env) == 1
    assert "No such file or directory" in capsys.readouterr().err


def test_exit_alone_raises_system_exit(env):
    with pytest.raises(SystemExit) as info:
        dispatch([Package(command=Command("exit", "", " 5"))], env)
    assert info.value.code == 5


def test_exit_in_pipeline_does_not_leave(env, tmp_path):
    target = tmp_path / "out.txt"
    stages = [
        Package(command=Command("exit", "", " 5")),
        Package(program=Program("cat", ""), redirections=[_out(target)]),
    ]
    assert dispatch(stages, env) == 0


def test_pipeline_restores_sigint_handler(env):
    before = signal.getsignal(signal.SIGINT)
    status = dispatch([Package(program=Program("true", ""))], env)
    assert (status, signal.getsignal(signal.SIGINT)) == (0, before)