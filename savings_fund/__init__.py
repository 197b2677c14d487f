"""
Savings Fund - Source Package

Bookkeeping for a member savings fund: members deposit into a shared
ledger, an administrator issues flat-rate loans against those savings,
and reports are derived from the ledger on demand.

DESIGN PRINCIPLES:
1. The ledger is the only source of truth for savings
2. Every mutation is checked by one authorization gate
3. Failures come back as named reasons, never as half-applied writes
4. Every change is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
