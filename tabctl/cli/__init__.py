"""CLI module for tabctl."""
