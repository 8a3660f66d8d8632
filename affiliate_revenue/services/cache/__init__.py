"""Client-side result cache."""

from affiliate_revenue.services.cache.result_cache import (
    ResultCache,
    build_key,
    default_ttl,
)

__all__ = ["ResultCache", "build_key", "default_ttl"]
