"""Package-manager backends: brew, npm, cargo, mas."""
