"""Core engine primitives (settings, database, exceptions)."""
