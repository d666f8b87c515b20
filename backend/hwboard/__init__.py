"""Homework board backend: reversible operation log and day allocation."""

__version__ = "0.1.0"
