"""Store implementations."""
