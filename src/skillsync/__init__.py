"""skillsync: install and keep AI coding tool skills in sync."""

__version__ = "0.1.0"
