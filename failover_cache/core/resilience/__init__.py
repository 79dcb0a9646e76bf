"""
Resilience Module

Failure-tracking primitives shared across requests.

Components:
-----------
- **backoff.py**: PrimaryBackoffTracker, the primary down-until marker
"""

from failover_cache.core.resilience.backoff import PrimaryBackoffTracker

__all__ = [
    "PrimaryBackoffTracker",
]
