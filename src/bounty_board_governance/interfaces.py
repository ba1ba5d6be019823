"""
Interfaces (protocols) for the ledger boundary.
Using Python's Protocol for structural subtyping.
"""

from typing import Protocol, Optional, Tuple
from abc import abstractmethod

from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction

from .models import GovernanceAccount, SignatureStatus


class IGovernanceLedger(Protocol):
    """What the assembler and submitter need from the ledger RPC"""

    @abstractmethod
    async def get_governance_account(self, address: Pubkey) -> GovernanceAccount:
        """Fetch and decode a governance account.

        Raises StaleStateError if it cannot be fetched or decoded.
        """
        ...

    @abstractmethod
    async def get_latest_blockhash(self) -> Tuple[Hash, int]:
        """Recent blockhash and the last block height it stays valid for"""
        ...

    @abstractmethod
    async def send_transaction(self, transaction: Transaction) -> Signature:
        """Send a signed transaction without waiting for confirmation.

        Raises RejectedError when the node refuses it and
        ConfirmationTimeoutError when the outcome of the send is unknown.
        """
        ...

    @abstractmethod
    async def get_signature_status(self, signature: Signature) -> Optional[SignatureStatus]:
        """Current status of a signature, None while the ledger has not seen it"""
        ...

    @abstractmethod
    async def connect(self) -> bool:
        """Check the RPC endpoint is reachable"""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release the RPC connection"""
        ...
