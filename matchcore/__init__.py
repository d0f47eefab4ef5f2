"""Like, match and candidate discovery core for a dating application."""

__version__ = "0.1.0"
