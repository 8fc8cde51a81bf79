"""Aletheia emotional-wellness companion."""

__version__ = "0.1.0"
