"""Renderers, formatters and view binding."""
