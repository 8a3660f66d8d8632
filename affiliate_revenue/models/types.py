"""
Standard type definitions for database models.

Provides consistent types for monetary fields across all models.
"""

from sqlalchemy import DECIMAL, String

# Standard money type for fee amounts
# Precision: 12 digits total, 2 after decimal point
MoneyType = DECIMAL(12, 2)

# Commission rates (e.g. 0.1000 = 10%)
RateType = DECIMAL(6, 4)

# Backend user/profile identifiers are UUID strings
IdType = String(36)
