"""Shared helpers: geometry, I/O and console output."""
