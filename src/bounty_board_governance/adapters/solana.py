"""
Solana ledger adapter implementation.
"""

import logging
from typing import Any, List, Optional, Tuple

import construct
import httpx
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment as RpcCommitment
from solana.rpc.core import RPCException, RPCNoResultException
from solana.rpc.types import TxOpts
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction
from solders.transaction_status import TransactionConfirmationStatus

from .base import BaseLedgerAdapter
from ..exceptions import ConfirmationTimeoutError, RejectedError, StaleStateError
from ..instructions import GOVERNANCE_ACCOUNT_LAYOUT
from ..models import GovernanceAccount, SignatureStatus
from ..types import Commitment, GovernanceAccountType
from ..utils import retry_with_backoff

logger = logging.getLogger(__name__)

# Transport failures worth another attempt on idempotent reads
TRANSIENT_RPC_ERRORS = (SolanaRpcException, httpx.HTTPError)

_CONFIRMATION_LEVELS = (
    (TransactionConfirmationStatus.Processed, Commitment.PROCESSED),
    (TransactionConfirmationStatus.Confirmed, Commitment.CONFIRMED),
    (TransactionConfirmationStatus.Finalized, Commitment.FINALIZED),
)


def decode_governance_account(address: Pubkey, data: bytes) -> GovernanceAccount:
    """Decode the head of a governance account, up to its proposal counter"""
    try:
        parsed = GOVERNANCE_ACCOUNT_LAYOUT.parse(data)
    except construct.ConstructError as e:
        raise StaleStateError(f"Governance account {address} is not decodable: {e}",
                              address=str(address)) from e
    if parsed.account_type not in set(GovernanceAccountType):
        raise StaleStateError(
            f"Account {address} is not a governance account (type {parsed.account_type})",
            address=str(address),
        )
    return GovernanceAccount(
        address=address,
        account_type=parsed.account_type,
        realm=parsed.realm,
        governed_account=parsed.governed_account,
        proposals_count=parsed.proposals_count,
    )


def _to_commitment(status: Optional[TransactionConfirmationStatus]) -> Optional[Commitment]:
    for ledger_status, level in _CONFIRMATION_LEVELS:
        if status == ledger_status:
            return level
    return None


def _error_message(detail: Any) -> str:
    return getattr(detail, "message", None) or str(detail)


def _preflight_logs(detail: Any) -> List[str]:
    logs = getattr(getattr(detail, "data", None), "logs", None)
    return list(logs) if logs else []


class SolanaGovernanceLedger(BaseLedgerAdapter):
    """SPL Governance reads and transaction submission over Solana JSON-RPC"""

    def __init__(self, rpc_url: str, program_id: Pubkey,
                 commitment: Commitment = Commitment.CONFIRMED,
                 read_attempts: int = 3, timeout: float = 10.0,
                 client: Optional[AsyncClient] = None):
        super().__init__(rpc_url, commitment)
        self.program_id = program_id
        self.read_attempts = read_attempts
        self._rpc_commitment = RpcCommitment(commitment.value)
        self.client = client or AsyncClient(rpc_url, commitment=self._rpc_commitment, timeout=timeout)

    async def connect(self) -> bool:
        """Check the RPC endpoint is reachable"""
        self._connected = await self.client.is_connected()
        if self._connected:
            logger.info(f"Connected to Solana network at {self.rpc_url}")
        else:
            logger.error(f"Solana network at {self.rpc_url} is not reachable")
        return self._connected

    async def close(self) -> None:
        await self.client.close()
        self._connected = False

    async def get_governance_account(self, address: Pubkey) -> GovernanceAccount:
        try:
            async for attempt in retry_with_backoff(self.read_attempts, TRANSIENT_RPC_ERRORS):
                with attempt:
                    resp = await self.client.get_account_info(address, commitment=self._rpc_commitment)
        except TRANSIENT_RPC_ERRORS + (RPCException,) as e:
            raise StaleStateError(f"Cannot read governance account {address}: {e}",
                                  address=str(address)) from e

        account = resp.value
        if account is None:
            raise StaleStateError(f"Governance account {address} not found", address=str(address))
        if account.owner != self.program_id:
            raise StaleStateError(
                f"Account {address} is owned by {account.owner}, not {self.program_id}",
                address=str(address),
            )
        return decode_governance_account(address, bytes(account.data))

    async def get_latest_blockhash(self) -> Tuple[Hash, int]:
        try:
            async for attempt in retry_with_backoff(self.read_attempts, TRANSIENT_RPC_ERRORS):
                with attempt:
                    resp = await self.client.get_latest_blockhash(self._rpc_commitment)
        except TRANSIENT_RPC_ERRORS + (RPCException,) as e:
            raise StaleStateError(f"Cannot fetch a recent blockhash: {e}") from e
        return resp.value.blockhash, resp.value.last_valid_block_height

    async def send_transaction(self, transaction: Transaction) -> Signature:
        signature = transaction.signatures[0]
        opts = TxOpts(skip_confirmation=True, preflight_commitment=self._rpc_commitment)
        try:
            resp = await self.client.send_raw_transaction(bytes(transaction), opts=opts)
        except (RPCException, RPCNoResultException) as e:
            detail = e.args[0] if e.args else None
            raise RejectedError(
                f"Ledger refused transaction {signature}: {_error_message(detail)}",
                signature=str(signature),
                details=detail,
                logs=_preflight_logs(detail),
            ) from e
        except TRANSIENT_RPC_ERRORS as e:
            raise ConfirmationTimeoutError(
                f"Outcome of sending {signature} is unknown: {e}",
                signature=str(signature),
            ) from e
        logger.info(f"Sent transaction {resp.value}")
        return resp.value

    async def get_signature_status(self, signature: Signature) -> Optional[SignatureStatus]:
        try:
            async for attempt in retry_with_backoff(self.read_attempts, TRANSIENT_RPC_ERRORS):
                with attempt:
                    resp = await self.client.get_signature_statuses([signature])
        except TRANSIENT_RPC_ERRORS + (RPCException,) as e:
            raise StaleStateError(f"Cannot read status of {signature}: {e}") from e

        status = resp.value[0]
        if status is None:
            return None
        return SignatureStatus(
            slot=status.slot,
            confirmation_status=_to_commitment(status.confirmation_status),
            err=status.err,
            confirmations=status.confirmations,
        )
