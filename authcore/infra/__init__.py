"""Infrastructure adapters (PyJWT, Redis, Werkzeug, revocation strategies)."""
