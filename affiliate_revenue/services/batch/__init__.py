"""Chunked batch loaders."""

from affiliate_revenue.services.batch.loaders import (
    BatchLoader,
    BatchResult,
    chunked,
    coupons_by_category,
    latest_payments,
)

__all__ = [
    "BatchLoader",
    "BatchResult",
    "chunked",
    "coupons_by_category",
    "latest_payments",
]
