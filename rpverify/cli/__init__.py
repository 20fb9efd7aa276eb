"""Command line interface for rpverify."""
