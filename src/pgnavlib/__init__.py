"""Core library for pgnav.

Contains the profile store, credential encryption, connection-string parsing
and the PostgreSQL fetch gateway used by the CLI and the TUI.
"""

__all__ = [
    "clients",
    "config",
    "connstr",
    "credentials",
    "errors",
    "models",
]
