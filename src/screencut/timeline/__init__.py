"""Frame layout construction and frame lookups."""
