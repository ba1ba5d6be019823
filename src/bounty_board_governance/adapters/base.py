"""
Base ledger adapter with common functionality.
"""

import logging
from abc import ABC

from ..interfaces import IGovernanceLedger
from ..types import Commitment

logger = logging.getLogger(__name__)


class BaseLedgerAdapter(IGovernanceLedger, ABC):
    """Base adapter with common functionality"""

    def __init__(self, rpc_url: str, commitment: Commitment = Commitment.CONFIRMED):
        self.rpc_url = rpc_url
        self.commitment = commitment
        self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
        logger.info(f"Closed ledger connection to {self.rpc_url}")
