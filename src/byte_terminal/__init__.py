"""Run a project's declared commands from the terminal."""

__version__ = "0.3.0"
