"""Command-line interface for BlobStore."""
