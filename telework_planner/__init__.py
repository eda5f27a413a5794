"""Telework planner: weekly remote-work rotation service."""

__version__ = "1.0.0"
