"""Lumen Flow - notification nudges for a personal productivity workspace."""

__version__ = "0.1.0"
