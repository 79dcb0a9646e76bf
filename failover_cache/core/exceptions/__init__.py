"""
Exception Module

Structured exception hierarchy for the failover cache.

Module Structure:
-----------------
- **base.py**: FailoverCacheError base class
- **cache.py**: Remote tier and shared state exceptions

Usage:
------
```python
from failover_cache.core.exceptions import CacheConnectionError, CacheOperationError
```
"""

from failover_cache.core.exceptions.base import FailoverCacheError
from failover_cache.core.exceptions.cache import (
    CacheConnectionError,
    CacheError,
    CacheOperationError,
    SharedStateError,
)

__all__ = [
    # Base
    "FailoverCacheError",
    # Cache
    "CacheError",
    "CacheConnectionError",
    "CacheOperationError",
    "SharedStateError",
]
