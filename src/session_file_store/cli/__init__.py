"""Command-line entry points for session-file-store."""
