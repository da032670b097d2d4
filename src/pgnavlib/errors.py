"""Error types and error-message helpers for pgnav."""

from __future__ import annotations

from typing import Any


class ConnectFailure(RuntimeError):
    """A database session could not be established."""


class FetchFailure(RuntimeError):
    """Listing tables, fetching a page, counting or running a query failed."""


class CredentialError(RuntimeError):
    """A stored password is missing or cannot be decrypted."""


def format_error_message(operation: str, error: Exception, context: dict[str, Any] | None = None) -> str:
    """Format a user-friendly error message based on the exception type and context."""
    error_str = str(error)
    lowered = error_str.lower()
    context = context or {}

    # Authentication errors
    if any(word in lowered for word in ["password authentication", "authentication failed", "role", "permission denied"]):
        return (
            f"Authentication failed. Please check the username, password and grants. "
            f"Original error: {error_str}"
        )

    # Connection-related errors
    if any(word in lowered for word in ["connection", "timeout", "could not translate host", "refused"]):
        profile = context.get("connection", "database")
        return (
            f"Failed to connect to {profile}. "
            f"Please check that PostgreSQL is running and reachable. "
            f"Original error: {error_str}"
        )

    # Relation not found
    if "does not exist" in lowered:
        if "table" in operation.lower():
            table_name = context.get("table", "table")
            return (
                f"Table '{table_name}' not found. "
                f"Use 'pgnav ping <connection>' to check which tables are visible. "
                f"Original error: {error_str}"
            )
        if "database" in lowered:
            return (
                f"Database not found. Check the database name of the saved connection. "
                f"Original error: {error_str}"
            )

    # SQL errors
    if "syntax error" in lowered:
        return f"The query has a syntax error. Original error: {error_str}"

    if isinstance(error, CredentialError):
        return (
            f"The stored password could not be read. Re-add the connection with 'pgnav add'. "
            f"Original error: {error_str}"
        )

    # Generic error with helpful context
    return f"Failed to {operation}: {error_str}"


def suggest_troubleshooting_steps(operation: str, error: Exception) -> list[str]:
    """Suggest troubleshooting steps based on the operation and error."""
    error_str = str(error).lower()
    suggestions = []

    if "authentication" in error_str or "password" in error_str:
        suggestions.extend([
            "Re-add the connection with the correct credentials: pgnav add <url> --name <name>",
            "Check pg_hba.conf allows password logins for this host",
        ])

    elif "connection" in error_str or "timeout" in error_str or "refused" in error_str:
        suggestions.extend([
            "Check that the database server is running: pg_isready -h <host> -p <port>",
            "Verify host and port of the saved connection: pgnav list",
            "Ensure no firewall blocks the port",
        ])

    elif "does not exist" in error_str:
        suggestions.extend([
            "Check the database and table names for typos",
            "Only tables in the 'public' schema are listed",
        ])

    elif isinstance(error, CredentialError):
        suggestions.extend([
            "The key file next to the config may have changed; re-add the connection",
        ])

    if not suggestions:
        suggestions.extend([
            "Check the logs with -v/--verbose flag for more details",
            "Verify your configuration file is correct",
        ])

    return suggestions


def format_config_error(error: Exception) -> str:
    """Format configuration-related error messages."""
    error_str = str(error)

    if "not a mapping" in error_str.lower() or "yaml" in error_str.lower():
        return (
            f"Configuration file is not valid: {error_str}\n"
            "Fix or remove the file; it is recreated by 'pgnav add'."
        )

    return f"Configuration error: {error_str}"
