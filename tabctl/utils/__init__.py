"""Utility modules for tabctl."""

from tabctl.utils.exceptions import ErrorCategory, TabctlError

__all__ = ["ErrorCategory", "TabctlError"]
