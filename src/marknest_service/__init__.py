"""Marknest document service: versioned documents, folders and trash retention."""

__version__ = "1.0.0"
