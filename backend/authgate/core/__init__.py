"""Shared infrastructure for authgate: settings, errors, GitHub call handling, retry, metrics and logging."""
