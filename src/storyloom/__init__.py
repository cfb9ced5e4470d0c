"""Narrative graph rules, analysis and simulation."""

__version__ = "0.3.0"
