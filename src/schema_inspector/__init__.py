"""Schema inspection CLI with a concurrent command runner."""

__version__ = "0.1.0"
