"""Track retail product prices and alert on drops."""

__version__ = "0.4.0"
