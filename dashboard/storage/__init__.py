"""Durable local key-value storage for watchlists and price alerts."""
