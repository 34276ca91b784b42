"""Request-level helpers for host applications (no routes are registered here)."""
