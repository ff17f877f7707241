"""Alias index and link rewriting."""
