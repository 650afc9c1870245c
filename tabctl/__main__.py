"""Entry point for `python -m tabctl` (also what the native host wrappers exec)."""

from tabctl.cli.commands import app

if __name__ == "__main__":
    app()
