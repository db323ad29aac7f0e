"""Thin clients for the remote code-generation and scanning API."""
