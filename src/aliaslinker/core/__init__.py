"""Core domain types and ports for aliaslinker."""
