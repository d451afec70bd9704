"""exthost — extension host for an interactive terminal application."""

__version__ = "0.3.0"
