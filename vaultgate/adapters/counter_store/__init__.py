"""Counter store adapters.

This package provides the storage behind the fixed-window rate limiter: an
in-memory store for a single process and a SQL store backed by the shared
``rate_limits`` table.
"""
