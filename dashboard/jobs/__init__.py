"""Refresh scheduling."""
