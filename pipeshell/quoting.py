"""Small helpers for adding and removing quote characters."""


def remove_double_quotes(text: str, start: int, end: int) -> str:
    """Return text[start:end + 1] with every double quote removed."""
    return text[start:end + 1].replace('"', "")


def add_quotes(text: str, char: str) -> str:
    """Wrap *text* in *char* on both sides."""
    return f"{char}{text}{char}"