"""
Life Ledger - Finance Core

The financial side of a personal life-management application:
income, expenses and budgets, aggregated per currency and blended
into a single financial health score.

DESIGN PRINCIPLES:
1. Money is Decimal, never float
2. Currencies are never mixed or converted
3. Invalid mutations fail before touching state
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Life Ledger Team"
