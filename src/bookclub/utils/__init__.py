"""Shared helpers: errors, retries, validation and text processing."""
