"""
Session store module.

This module provides the per-request session state machine, its
encryption composition, and the lottery-gated garbage collector.
"""

from pysession.store.collector import GarbageCollector
from pysession.store.store import Store
from pysession.store.encrypted import Encrypter, encrypted_store

__all__ = [
    "GarbageCollector",
    "Store",
    "Encrypter",
    "encrypted_store"
]
