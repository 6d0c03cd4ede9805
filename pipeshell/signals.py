"""Signal handling for the interactive shell."""

from __future__ import annotations

import signal
import sys
from types import FrameType
from typing import Optional


def parent_sigint_handler(signum: int, frame: Optional[FrameType]) -> None:
    """On SIGINT, move to a fresh line instead of leaving the shell."""
    if signum == signal.SIGINT:
        sys.stdout.write("\n")
        sys.stdout.flush()


def install_parent_handlers() -> None:
    """Handle SIGINT with parent_sigint_handler and ignore SIGQUIT."""
    signal.signal(signal.SIGINT, parent_sigint_handler)
    signal.signal(signal.SIGQUIT, signal.SIG_IGN)


def restore_default_handlers() -> None:
    """Give SIGINT and SIGQUIT their default behaviour back."""
    signal.signal(signal.SIGINT, signal.SIG_DFL)
    signal.signal(signal.SIGQUIT, signal.SIG_DFL)