"""Command line interface for ldb."""
