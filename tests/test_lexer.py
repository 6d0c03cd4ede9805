import pytest

from pipeshell.lexer import LexerError, Word, has_double_pipe, is_pipe, lex


def texts(line):
    return [word.text for word in lex(line)]


def test_splits_on_spaces():
    assert texts("echo hello world") == ["echo", "hello", "world"]


def test_space_before_is_counted():
    gap = 3
    words = lex("a" + " " * gap + "b")
    assert words[0].space_before == 0
    assert words[1].space_before == gap


def test_option_keeps_trailing_space():
    assert texts("ls -la x") == ["ls", "-la ", "x"]


def test_option_at_end_of_line():
    assert texts("ls -l") == ["ls", "-l"]


def test_pipe_word_has_no_space_before():
    words = lex("a | b")
    assert words[1] == Word("|", 0)
    assert [w.text for w in words] == ["a", "|", "b"]


def test_redirection_operators():
    line = "cat < in > out >> app << eof <<- tab"
    assert texts(line) == line.split()


def test_operators_split_words_without_spaces():
    assert texts("a>b|c") == ["a", ">", "b", "|", "c"]


def test_quotes_stay_in_word():
    assert texts('echo "a b" c') == ["echo", '"a b"', "c"]


def test_adjacent_quoted_parts_form_one_word():
    line = "x\"y z\"w'q r'"
    assert texts(line) == [line]


def test_meta_chars_inside_quotes_are_literal():
    assert texts("'a|b' \"c>d\"") == ["'a|b'", '"c>d"']


def test_unclosed_quote_raises():
    with pytest.raises(LexerError):
        lex('echo "abc')


def test_blank_line_has_no_words():
    assert lex("   \t ") == []


def test_simple_words_round_trip():
    line = "grep -v foo bar"
    assert "".join(texts(line)).replace(" ", "") == line.replace(" ", "")


@pytest.mark.parametrize("line", ["a || b", "a | | b", "a |\t| b", "'x' || y"])
def test_double_pipe_detected(line):
    assert has_double_pipe(line) is True


@pytest.mark.parametrize("line", ["a | b", "'||'", '"a||b" | c', "'||", "a |"])
def test_double_pipe_not_detected(line):
    assert has_double_pipe(line) is False


def test_is_pipe():
    assert is_pipe("|") is True
    assert is_pipe("a") is False