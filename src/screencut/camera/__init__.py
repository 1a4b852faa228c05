"""Camera physics, framing and path building."""
