"""
HappyShare - Group Expense Ledger

Shared expense tracking for groups of friends, flatmates and travellers.

DESIGN PRINCIPLES:
1. Balances are derived, never stored
2. Fail early, fail visibly
3. No silent corrections to money
4. Every change to a group's ledger is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "HappyShare Team"
