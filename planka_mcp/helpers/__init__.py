"""Higher-level helpers that combine several resource operations."""
