"""
Core Interfaces Module

Protocols for the collaborators of the failover cache (PEP 544 structural
subtyping, runtime checkable, no inheritance required).

Components:
-----------
- **cache.py**: SharedStateStore, RemoteSession, RemoteStoreConnector

Usage:
------
```python
from failover_cache.core.interfaces import SharedStateStore

def build_tracker(store: SharedStateStore): ...
```
"""

from failover_cache.core.interfaces.cache import (
    RemoteSession,
    RemoteStoreConnector,
    SharedStateStore,
)

__all__ = [
    "RemoteSession",
    "RemoteStoreConnector",
    "SharedStateStore",
]
