"""Campusnet: campus network design generation and request workflow."""

__version__ = "1.0.0"
