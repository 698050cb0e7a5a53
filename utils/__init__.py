"""Shared helpers: logging setup and project paths."""
