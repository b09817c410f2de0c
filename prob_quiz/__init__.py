"""Probability practice question service."""

__version__ = "0.1.0"
