"""Biolink Web - link-in-bio profile pages with visit analytics."""

__version__ = "0.1.0"
