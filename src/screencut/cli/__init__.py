"""Command-line interface for screencut."""
