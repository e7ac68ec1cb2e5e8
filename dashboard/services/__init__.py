"""Client-side services: form actions and price alert rules."""
