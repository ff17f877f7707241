"""Adapters implementing the aliaslinker ports."""
