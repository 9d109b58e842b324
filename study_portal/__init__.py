"""Lesson catalog backend for a self-study portal."""

__version__ = "0.1.0"
