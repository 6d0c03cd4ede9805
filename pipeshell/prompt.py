"""Build the interactive prompt from the working directory."""

import os

GREEN = "\033[32m"
RESET = "\033[0m"
PROGRAM_NAME = "pipeshell: "
MAX_PROMPT_LENGTH = 40


def build_prompt(cwd: str) -> str:
    """Return the prompt for *cwd*, shortening long paths from the left."""
    head = f"{GREEN}{PROGRAM_NAME}{RESET}"
    if len(cwd) > MAX_PROMPT_LENGTH:
        tail = cwd[len(cwd) - (MAX_PROMPT_LENGTH - 4):]
        return f"{head}...{tail} > "
    return f"{head}{cwd} > "


def current_prompt() -> str:
    """Return the prompt for the process's working directory."""
    return build_prompt(os.getcwd())