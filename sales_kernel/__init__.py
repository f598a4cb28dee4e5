"""
Sales Kernel - Order & Credit Control Engine

Turns customer requests into priced, stock-checked, credit-checked sales
orders with:
- Pure credit policy evaluation against the outstanding-balance ledger
- Formula-based order decomposition
- An explicit sales-order state machine (create, approve, reject, fulfill)
- Stock and credit re-validation under row locks at approval time
"""

__version__ = "0.1.0"
