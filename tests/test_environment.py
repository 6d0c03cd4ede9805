import pytest

from pipeshell.environment import Environment, format_env, format_env_debug, read_env


@pytest.fixture
def env():
    return read_env(["A=1", "B=x=y", "C", "E="])


def test_values_are_split_on_first_equals(env):
    assert env.get("A") == "1"
    assert env.get("B") == "x=y"
    assert env.get("E") == ""


def test_name_without_equals_has_no_value(env):
    assert "C" in env.variables
    assert env.get("C") is None


def test_directories_are_captured():
    env = read_env(["HOME=/h", "PWD=/p", "OLDPWD=/o"])
    assert (env.home_dir, env.current_dir, env.previous_dir) == ("/h", "/p", "/o")


def test_mapping_is_accepted():
    env = read_env({"X": "v", "HOME": "/home/u"})
    assert env.get("X") == "v"
    assert env.home_dir == "/home/u"


def test_format_env_skips_valueless(env):
    assert format_env(env) == "A=1\nB=x=y\nE=\n"


def test_format_env_debug(env):
    text = format_env_debug(env)
    assert text.startswith("\n~~our_env~~\n\n")
    assert "(var_name:value) A=1 \n" in text
    assert "(var_name:value) C \n" in text


def test_set_overwrites_in_place(env):
    env.set("A", "2")
    env.set("Z", "z")
    assert env.get("A") == "2"
    assert list(env.variables) == ["A", "B", "C", "E", "Z"]


def test_to_envp_excludes_valueless(env):
    envp = env.to_envp()
    assert "C" not in envp
    assert envp["B"] == "x=y"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("$A", "1"),
        ("'$A'", "$A"),
        ('"$A b"', "1 b"),
        ("$MISSING", ""),
        ("$", "$"),
        ("x$A$B", "x1x=y"),
        ("\"it's\"", "it's"),
    ],
)
def test_expand(env, text, expected):
    assert env.expand(text) == expected


def test_expand_exit_status():
    env = Environment(exit_status=42)
    assert env.expand("$?") == str(env.exit_status)


def test_expand_plain_text_unchanged(env):
    assert env.expand("hello world") == "hello world"