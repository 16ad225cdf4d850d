"""Odonto-forensic case records backend."""

__version__ = "0.1.0"
