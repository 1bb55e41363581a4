"""Aceras Check walkability intake and scoring core."""

__version__ = "0.1.0"
