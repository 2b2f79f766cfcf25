"""Persistent store adapters.

The governance services talk to the vault database only through
``AbstractGovernanceStore``; the SQL implementation is used in production and
the in-memory one for tests and local runs.
"""
