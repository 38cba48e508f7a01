"""Exceptions raised by the enclosure inventory engine."""


class JbodTapError(Exception):
    """Base exception for jbod-tap."""


class ToolUnavailableError(JbodTapError):
    """An external enclosure tool could not be launched at all."""

    def __init__(self, command: list[str], reason: str) -> None:
        self.command = command
        self.reason = reason
        super().__init__(f"Cannot run {command[0]}: {reason}")


class ParseError(JbodTapError, ValueError):
    """A required numeric field could not be parsed."""
