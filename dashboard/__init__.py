"""Headless client for the portfolio-tracking dashboard backend."""
