"""Effect filtering, resolution and inheritance."""
