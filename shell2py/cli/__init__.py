"""Command-line interface for shell2py."""
