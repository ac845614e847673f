"""Fonte de entrada interativa via terminal."""

from witloop.adapters.interactive.input import (
    INTERACTIVE_SESSION_ID,
    QUIT_COMMAND,
    InteractiveInput,
)

__all__ = ["INTERACTIVE_SESSION_ID", "QUIT_COMMAND", "InteractiveInput"]
