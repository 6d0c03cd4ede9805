"""Core of a small shell: lexing, parsing, here-documents, pipelines and builtins."""

__version__ = "0.1.0"