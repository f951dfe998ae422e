"""devbootstrap — one-command Flutter/Android developer machine setup."""

__version__ = "0.1.0"
