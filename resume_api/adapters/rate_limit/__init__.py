"""Rate limiting adapters.

This package keeps the limiter behind a small abstraction so the per-process
in-memory store can later be swapped for a shared one (e.g., Redis) without
touching the HTTP layer.
"""
