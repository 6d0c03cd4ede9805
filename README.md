# pipeshell

`pipeshell` is the core of a small POSIX-style shell. It takes a command line
and turns it into running processes. The work happens in these stages.

1. **Lexing.** `pipeshell.lexer.lex` splits a line into `Word` objects. Each
   `Word` records its text and the number of spaces in front of it. The lexer
   keeps the following together as single words:
   - redirection operators (`<`, `>`, `>>`, `<<`, `<<-`),
   - options starting with `-`,
   - pipes,
   - quoted sections.

   An unclosed quote raises `LexerError`. `has_double_pipe` reports two pipes
   that follow each other with only whitespace between them, such as `| |`.
   Pipes inside quotes are not counted. `is_pipe` tests a single character.
2. **Environment.** `pipeshell.environment.read_env` builds an `Environment`
   from `NAME=value` strings or from a mapping. The `Environment` provides:
   - `get` and `set` for variables,
   - `expand` for `$NAME` and `$?` expansion, which also removes quotes,
   - `to_envp`, which returns a dict for child processes.

   It also holds `current_dir`, `previous_dir`, `home_dir` and `exit_status`.
   There are two ways to render it:
   - `format_env` renders the listing of the `env` builtin,
   - `format_env_debug` lists every variable, including those without a value.
3. **Parsing.** `pipeshell.tokens.parse(words, env)` turns words into `Token`
   objects. Each token has a `TokenKind` and a value. The value is one of:
   - a `Command`, which is a builtin: `echo`, `cd`, `pwd`, `export`, `unset`,
     `env` or `exit` (see `is_builtin`),
   - a `Program`,
   - a `Redirection`,
   - a `HereDoc`,
   - `None`, for a pipe.

   An empty word raises `ParseError`.
4. **Packaging.** `pipeshell.packaging.build_packages(tokens, env,
   heredoc_lines)` splits the tokens at pipes into `Package` objects. Each
   package holds one command or program and a list of `RedirectFile` entries.
   - Redirection targets are expanded with the environment.
   - Here-document bodies are collected by `pipeshell.heredoc.collect_heredoc`.
     They are read from `heredoc_lines`, or from the terminal when it is
     `None`.
   - Each body is written to `/tmp/.heredoc_<n>` (see `heredoc_path`).
   - A missing stop word raises `HeredocInterrupted`, and so does Ctrl-C while
     reading.
   - `gather_parts` joins a name, an option and parameters.
5. **Dispatch.** `pipeshell.dispatch.dispatch(packages, env)` runs the
   packages and returns the exit status.
   - A lone builtin runs in the shell itself, through `check_builtin` and
     `run_builtin` from `pipeshell.builtins`. A builtin whose arguments are
     rejected raises `BuiltinError`. The `exit` builtin raises `SystemExit`.
   - Anything else runs as a pipeline, with builtins working on a copy of the
     environment. External programs start through
     `pipeshell.launcher.run_program`.
   - The launcher also provides `resolve_program`, `build_argv` and
     `open_redirections`. `open_redirections` raises `RedirectionError` when a
     file cannot be opened. Dispatch reports that error on stderr and sets the
     exit status.
   - `count_pipelines` gives the number of stages that a token list describes.

## Supporting pieces

- `pipeshell.continuation.complete_line(line, read_line)` reads more input
  while a line ends in a pipe. `needs_continuation` tells whether it would
  have to. It raises `ContinuationError`, which carries a status, in these
  cases:
  - the line starts with a pipe,
  - the line has a doubled pipe,
  - input ends,
  - input is interrupted.
- `pipeshell.prompt.build_prompt(cwd)` and `current_prompt()` build the
  coloured prompt. Paths longer than 40 characters are shortened with a
  leading `...`.
- `pipeshell.signals.install_parent_handlers` makes Ctrl-C print a newline
  instead of ending the process, and ignores Ctrl-\.
  `restore_default_handlers` puts the defaults back.
- `pipeshell.quoting` has `add_quotes` and `remove_double_quotes`.

## Example

```python
from pipeshell.environment import read_env
from pipeshell.lexer import lex
from pipeshell.tokens import parse
from pipeshell.packaging import build_packages
from pipeshell.dispatch import dispatch

env = read_env(["HOME=/home/user", "PATH=/usr/bin:/bin", "GREETING=hello"])
words = lex("echo $GREETING | cat > out.txt")
tokens = parse(words, env)
packages = build_packages(tokens, env, [])
status = dispatch(packages, env)
```

## What it does not do

The package provides no command to start and no interactive read-eval loop.
To build a working shell, write a loop that calls these pieces in turn:

1. read a line, using `current_prompt` for the prompt,
2. `complete_line`,
3. `lex`,
4. `parse`,
5. `build_packages`,
6. `dispatch`.

Here-document files in `/tmp` are not removed afterwards.

## Requirements

- Python 3.10 or newer.
- A POSIX system.
- No third-party runtime dependencies. Install the `test` extra to run the
  tests with pytest.