"""Local record store for suspect case records."""

__version__ = "1.0.0"
