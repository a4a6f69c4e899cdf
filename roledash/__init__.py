"""Reaction-role configuration backend and dashboard client."""

__version__ = "0.1.0"
