"""
Proposal service: the single entry point the dashboard calls on submit.
"""

import asyncio
import logging
from collections import defaultdict
from dataclasses import replace
from typing import Dict, Optional

from solders.keypair import Keypair

from .adapters import SolanaGovernanceLedger
from .assembler import ProposalAssembler
from .config import GovernanceSettings, load_keypair
from .exceptions import InvalidIdentityError, StaleStateError
from .interfaces import IGovernanceLedger
from .models import GovernanceIdentity, ProposalDraft, SubmissionResult
from .submitter import TransactionSubmitter
from .types import Commitment, GovernanceProgramConfig

logger = logging.getLogger(__name__)


class ProposalService:
    """
    Assembles and submits governance proposals for one signer.

    Usage:
        async with ProposalService.from_settings(GovernanceSettings()) as service:
            result = await service.create_proposal(identity, draft)
    """

    def __init__(self, ledger: IGovernanceLedger, signer: Keypair,
                 program_config: GovernanceProgramConfig,
                 commitment: Commitment = Commitment.CONFIRMED,
                 confirmation_timeout: float = 60.0,
                 poll_interval: float = 0.5):
        self.ledger = ledger
        self.signer = signer
        self.assembler = ProposalAssembler(ledger, program_config)
        self.submitter = TransactionSubmitter(
            ledger,
            commitment=commitment,
            confirmation_timeout=confirmation_timeout,
            poll_interval=poll_interval,
        )
        # One submission at a time per signer avoids blockhash/nonce collisions
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @classmethod
    def from_settings(cls, settings: GovernanceSettings,
                      signer: Optional[Keypair] = None) -> "ProposalService":
        if signer is None:
            if not settings.keypair_path:
                raise InvalidIdentityError("keypair", "no signer given and GOVERNANCE_KEYPAIR_PATH unset")
            signer = load_keypair(settings.keypair_path)

        program_config = settings.to_program_config()
        ledger = SolanaGovernanceLedger(
            settings.rpc_url,
            program_config.program_id,
            commitment=settings.commitment_level,
            read_attempts=settings.rpc_read_attempts,
            timeout=settings.rpc_timeout,
        )
        return cls(
            ledger,
            signer,
            program_config,
            commitment=settings.commitment_level,
            confirmation_timeout=settings.confirmation_timeout,
            poll_interval=settings.poll_interval,
        )

    async def create_proposal(self, identity: GovernanceIdentity,
                              draft: ProposalDraft) -> SubmissionResult:
        """
        Create, populate and sign off a proposal in one transaction.

        The proposal counter is read afresh on every call, so a failed
        attempt can simply be retried by calling again.
        """
        if identity.wallet != self.signer.pubkey():
            raise InvalidIdentityError(
                "wallet",
                f"acting member {identity.wallet} does not match signer {self.signer.pubkey()}",
            )

        async with self._locks[str(identity.wallet)]:
            assembled = await self.assembler.assemble(identity, draft)
            result = await self.submitter.submit(assembled.instructions, self.signer)

        logger.info(f"Proposal {assembled.proposal_address} created in {result.signature}")
        return replace(result, proposal_address=assembled.proposal_address)

    async def close(self) -> None:
        await self.ledger.close()

    async def __aenter__(self) -> "ProposalService":
        if not await self.ledger.connect():
            await self.ledger.close()
            raise StaleStateError("Ledger RPC endpoint is not reachable")
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
