"""Command line interface for content_ingest."""
