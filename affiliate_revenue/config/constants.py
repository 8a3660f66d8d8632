"""
Application constants.

Centralized constants for fee resolution, batching and caching.
"""

from datetime import UTC, datetime

# ========================================================================
# FEE RESOLUTION
# ========================================================================

# Processor-side fee transparency became available at this instant.
# Payments before it are taken at gross value.
DEFAULT_FEE_STRIPPING_CUTOVER = datetime(2025, 10, 1, tzinfo=UTC)

# Coupon redemptions are honoured for this many hours
COUPON_FRESHNESS_HOURS = 24

# Referral code bucket for profiles without a seller
UNKNOWN_REFERRAL_CODE = "__unknown__"

# ========================================================================
# BATCHING / CONCURRENCY
# ========================================================================

BATCH_CHUNK_SIZE = 1000  # PostgreSQL array parameter limit we stay under
BATCH_THRESHOLD = 5  # Cohorts above this size go through batch loaders
MAX_CONCURRENT_LOOKUPS = 20

# ========================================================================
# CACHE TTLS (seconds)
# ========================================================================

PAYMENT_INTENT_CACHE_TTL_SECONDS = 5 * 60
CACHE_SWEEP_INTERVAL_SECONDS = 60

CACHE_TTL_FEE_OVERRIDES = 5 * 60
CACHE_TTL_NOTIFICATIONS = 30
CACHE_TTL_PROFILES = 2 * 60
CACHE_TTL_STATIC = 10 * 60
CACHE_TTL_DEFAULT = 2 * 60

# ========================================================================
# HTTP
# ========================================================================

HTTP_TIMEOUT_SECONDS = 30.0

# ========================================================================
# ANALYTICS WINDOWS
# ========================================================================

DAILY_WINDOW_DAYS = 30
MONTHLY_WINDOW_MONTHS = 12
RECENT_WINDOW_DAYS = 7
CONVERSION_TARGET_CAP = 95
CONVERSION_TARGET_DEFAULT = 85
