"""
Ledger adapter implementations.
"""

from .base import BaseLedgerAdapter
from .solana import SolanaGovernanceLedger

__all__ = [
    "BaseLedgerAdapter",
    "SolanaGovernanceLedger",
]
