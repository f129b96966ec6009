"""Translate the text of design frames into positioned per-language copies."""

__version__ = "0.1.0"
