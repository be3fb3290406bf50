"""Package for the cli."""

from .main import cli

__all__ = ["cli"]
