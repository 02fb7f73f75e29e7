"""Top-level adminstack commands (auto-discovered)."""
