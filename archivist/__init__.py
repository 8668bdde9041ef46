"""Archivist: namespace capacity monitoring and archival candidate selection."""

__version__ = "0.1.0"
