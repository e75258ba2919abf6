"""Command line tools for homealarm."""
