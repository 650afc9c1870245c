"""tabctl - browser tab management from the command line."""

__version__ = "1.0.0"
__logo__ = "🗂"
