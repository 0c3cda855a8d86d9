"""
Key-value persistence for folio.

Example:
    >>> from folio.core.kv import create_kv_store
    >>> kv = create_kv_store(config.kv.url, config.kv.token)
    >>> await kv.ping()
    True
"""

from folio.core.kv.store import (
    KeyValueStore,
    MemoryKeyValueStore,
    UpstashRedisStore,
    create_kv_store,
)

__all__ = [
    "KeyValueStore",
    "MemoryKeyValueStore",
    "UpstashRedisStore",
    "create_kv_store",
]
