"""Revocation store strategies and the periodic sweep job."""

from __future__ import annotations

from .memory_store import MemoryRevocationStore
from .persistent_store import PersistentRevocationStore, hash_token
from .sweeper import SweepJob

__all__ = ["MemoryRevocationStore", "PersistentRevocationStore", "SweepJob", "hash_token"]
