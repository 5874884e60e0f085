"""Shared helpers and error responses."""
