"""Configuration package."""

from affiliate_revenue.config.settings import Settings, settings

__all__ = ["Settings", "settings"]
