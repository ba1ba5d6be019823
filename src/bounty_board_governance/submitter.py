"""
Transaction submitter.

Packs an ordered instruction list into one atomic transaction, signs it,
sends it once and waits until the ledger reports it at the target
commitment. A send is never repeated: after a rejection or an unknown
outcome the caller has to re-assemble from a fresh proposal counter.
"""

import asyncio
import logging
import time
from typing import Sequence

from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import Message
from solders.signature import Signature
from solders.transaction import Transaction

from .exceptions import (
    ConfirmationTimeoutError,
    EncodingError,
    GovernanceError,
    InvalidIdentityError,
    RejectedError,
    StaleStateError,
)
from .interfaces import IGovernanceLedger
from .metrics import confirmation_duration, proposal_submissions
from .models import RawInstruction, SignatureStatus, SubmissionResult
from .types import Commitment, PACKET_DATA_SIZE

logger = logging.getLogger(__name__)


def build_transaction(instructions: Sequence[RawInstruction], signer: Keypair,
                      recent_blockhash: Hash) -> Transaction:
    """Compile and sign one transaction with ``signer`` as fee payer"""
    if not instructions:
        raise EncodingError("Cannot submit an empty instruction list")

    payer = signer.pubkey()
    for instruction in instructions:
        for required in instruction.signers:
            if required != payer:
                raise InvalidIdentityError(
                    "signer",
                    f"instruction for {instruction.program_id} needs a signature from "
                    f"{required}, only {payer} is available",
                )

    message = Message.new_with_blockhash(
        [ix.to_solders() for ix in instructions], payer, recent_blockhash,
    )
    transaction = Transaction([signer], message, recent_blockhash)

    size = len(bytes(transaction))
    if size > PACKET_DATA_SIZE:
        raise EncodingError(
            f"Transaction is {size} bytes, above the {PACKET_DATA_SIZE} byte limit; "
            f"reduce the number or size of deferred instructions"
        )
    return transaction


class TransactionSubmitter:
    """Sends a signed transaction and tracks it until confirmation"""

    def __init__(self, ledger: IGovernanceLedger,
                 commitment: Commitment = Commitment.CONFIRMED,
                 confirmation_timeout: float = 60.0,
                 poll_interval: float = 0.5):
        self.ledger = ledger
        self.commitment = commitment
        self.confirmation_timeout = confirmation_timeout
        self.poll_interval = poll_interval

    async def submit(self, instructions: Sequence[RawInstruction], signer: Keypair) -> SubmissionResult:
        """
        Submit ``instructions`` as one transaction signed by ``signer``.

        Returns only once the ledger reports the transaction at the target
        commitment. Raises RejectedError, ConfirmationTimeoutError,
        StaleStateError (nothing sent yet) or EncodingError.
        """
        try:
            result = await self._submit(instructions, signer)
        except GovernanceError as e:
            proposal_submissions.labels(outcome=type(e).__name__).inc()
            raise
        proposal_submissions.labels(outcome="confirmed").inc()
        return result

    async def _submit(self, instructions: Sequence[RawInstruction], signer: Keypair) -> SubmissionResult:
        blockhash, last_valid_height = await self.ledger.get_latest_blockhash()
        transaction = build_transaction(instructions, signer, blockhash)
        signature = transaction.signatures[0]

        logger.info(
            f"Submitting transaction {signature} with {len(instructions)} instructions "
            f"(blockhash valid until height {last_valid_height})"
        )
        started = time.monotonic()
        await self.ledger.send_transaction(transaction)

        try:
            status = await asyncio.wait_for(
                self._await_confirmation(signature), timeout=self.confirmation_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Transaction {signature} not confirmed within {self.confirmation_timeout}s; "
                f"outcome unknown"
            )
            raise ConfirmationTimeoutError(
                f"Transaction {signature} was not confirmed within {self.confirmation_timeout}s",
                signature=str(signature),
                timeout=self.confirmation_timeout,
            )

        confirmation_duration.observe(time.monotonic() - started)
        logger.info(f"Transaction {signature} {status.confirmation_status.value} in slot {status.slot}")
        return SubmissionResult(
            signature=str(signature),
            slot=status.slot,
            confirmation_status=status.confirmation_status,
        )

    async def _await_confirmation(self, signature: Signature) -> SignatureStatus:
        while True:
            try:
                status = await self.ledger.get_signature_status(signature)
            except StaleStateError as e:
                # The transaction is already out; keep polling until the deadline
                logger.warning(f"Status check for {signature} failed: {e}")
                status = None

            if status is not None:
                if status.err is not None:
                    logger.warning(f"Transaction {signature} failed on chain: {status.err}")
                    raise RejectedError(
                        f"Transaction {signature} failed: {status.err}",
                        signature=str(signature),
                        details=status.err,
                    )
                if status.confirmation_status is not None and \
                   self.commitment.is_reached_by(status.confirmation_status):
                    return status

            await asyncio.sleep(self.poll_interval)
