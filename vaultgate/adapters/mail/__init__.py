"""Outbound email adapters."""
