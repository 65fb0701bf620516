"""API helpers (retry/backoff)."""
