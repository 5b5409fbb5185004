"""Semantic analysis for the PLC language."""

__version__ = "0.1.0"
