"""Ingestion of external content into normalized HTML documents."""

__version__ = "0.1.0"
