"""
Standard type definitions for database models.

Provides consistent types for monetary fields across all models.
"""

from sqlalchemy import DECIMAL

# Standard money type for amounts, balances, commissions
# Precision: 10 digits total, 2 after decimal point (rupees and paise)
# Range: up to 99,999,999.99
MoneyType = DECIMAL(10, 2)
