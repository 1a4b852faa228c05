"""Per-frame snapshot assembly and the timeline engine."""
