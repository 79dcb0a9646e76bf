"""Infrastructure layer: memcached connector, shared state and the cache facade."""
