import os

import pytest

from pipeshell.environment import Environment
from pipeshell.heredoc import (
    HeredocInterrupted,
    collect_heredoc,
    heredoc_path,
    process_line,
    trim_tabs,
)
from pipeshell.tokens import HereDoc


@pytest.fixture
def index():
    number = 700000 + os.getpid() % 100000
    yield number
    path = heredoc_path(number)
    if os.path.exists(path):
        os.remove(path)


def _read(path):
    with open(path, encoding="utf-8") as handle:
        return handle.read()


def _interrupted_lines():
    yield "first"
    raise KeyboardInterrupt


def test_heredoc_path_format():
    assert heredoc_path(3) == "/tmp/.heredoc_3"


def test_trim_tabs_only_leading():
    assert trim_tabs("\t\tab\t") == "ab\t"
    assert trim_tabs("  ab") == "  ab"


def test_process_line_expands_variables():
    env = Environment(variables={"HOME": "/h"})
    assert process_line("$HOME x", env, False) == "/h x"


def test_process_line_literal_unchanged():
    env = Environment(variables={"HOME": "/h"})
    assert process_line("$HOME x", env, True) == "$HOME x"


def test_process_line_keeps_quotes_and_status():
    env = Environment(variables={"A": "v"}, exit_status=5)
    assert process_line("'$A' $?", env, False) == "'v' 5"


def test_process_line_unknown_variable_is_empty():
    env = Environment()
    assert process_line("a$NOPE b", env, False) == "a b"


def test_collect_writes_until_stop_word(index):
    env = Environment(variables={"X": "val"}, exit_status=4)
    doc = HereDoc(stop_word="EOF")
    path = collect_heredoc(doc, env, ["one $X", "two", "EOF", "after"], index)
    assert path == heredoc_path(index)
    assert doc.file_name == path
    assert _read(path) == "one val\ntwo\n"
    assert env.exit_status == 0


def test_collect_literal_body(index):
    doc = HereDoc(stop_word="EOF", literal=True)
    path = collect_heredoc(doc, Environment(variables={"X": "val"}), ["$X", "EOF"], index)
    assert _read(path) == "$X\n"


def test_collect_tab_mode_strips_and_matches(index):
    doc = HereDoc(stop_word="END", tab=True)
    path = collect_heredoc(doc, Environment(), ["\tbody\n", "\t\tEND\n"], index)
    assert _read(path) == "body\n"


def test_collect_stops_at_end_of_input(index, capsys):
    doc = HereDoc(stop_word="END")
    path = collect_heredoc(doc, Environment(), ["a", "b"], index)
    assert _read(path) == "a\nb\n"
    assert "END" in capsys.readouterr().err


def test_collect_leaves_rest_of_shared_input(index):
    source = iter(["x", "END", "rest"])
    collect_heredoc(HereDoc(stop_word="END"), Environment(), source, index)
    assert list(source) == ["rest"]


def test_collect_without_stop_word_raises(index):
    with pytest.raises(HeredocInterrupted):
        collect_heredoc(HereDoc(), Environment(), ["a"], index)


def test_collect_interrupted(index):
    env = Environment()
    with pytest.raises(HeredocInterrupted):
        collect_heredoc(HereDoc(stop_word="END"), env, _interrupted_lines(), index)
    assert env.exit_status == 130