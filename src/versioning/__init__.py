"""Version calculation against the npm registry."""
