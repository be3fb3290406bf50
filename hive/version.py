"""Version of python-hive."""

__version__ = "0.1.0"
