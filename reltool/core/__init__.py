"""Core primitives shared by every layer (results, exit codes, config)."""
