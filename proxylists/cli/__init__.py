"""Command-line entry points for proxylists."""
