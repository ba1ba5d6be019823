"""
Proposal assembler.

Turns a ProposalDraft into the ordered instruction list that creates the
proposal, registers the proposer as signatory, stores every deferred
instruction on chain and finally signs the proposal off. Instruction order
is execution order: later instructions rely on accounts created by earlier
ones, so the list is never reordered once built.
"""

import logging
from dataclasses import dataclass, replace
from typing import List, Tuple

from solders.pubkey import Pubkey

from .addresses import (
    derive_proposal_address,
    derive_proposal_transaction_address,
    derive_signatory_record_address,
    short_address,
)
from .exceptions import EncodingError, GovernanceError, InvalidIdentityError
from .instructions import (
    check_uint,
    encode_add_signatory,
    encode_create_proposal,
    encode_insert_transaction,
    encode_sign_off_proposal,
)
from .interfaces import IGovernanceLedger
from .metrics import proposal_assemblies, proposal_instructions
from .models import AssembledProposal, GovernanceIdentity, ProposalDraft, RawInstruction
from .types import GovernanceProgramConfig
from .utils import describe_instruction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstructionSequence:
    """Append-only instruction list; every append returns a new sequence.

    Once a sign-off has been appended the sequence is closed.
    """
    instructions: Tuple[RawInstruction, ...] = ()
    signed_off: bool = False

    def append(self, instruction: RawInstruction) -> "InstructionSequence":
        if self.signed_off:
            raise EncodingError("Proposal is already signed off; nothing may follow the sign-off")
        return replace(self, instructions=self.instructions + (instruction,))

    def sign_off(self, instruction: RawInstruction) -> "InstructionSequence":
        return replace(self.append(instruction), signed_off=True)

    def __len__(self) -> int:
        return len(self.instructions)


def validate_draft(draft: ProposalDraft, config: GovernanceProgramConfig) -> None:
    """Structural checks that need no ledger state"""
    if not isinstance(draft.name, str) or not draft.name:
        raise EncodingError("Proposal name must not be empty", field="name")
    if not isinstance(draft.description_link, str) or not draft.description_link:
        raise EncodingError("Proposal description link must not be empty", field="description_link")
    check_uint(draft.option_index, 8, "option_index")
    check_uint(draft.hold_up_time, 32, "hold_up_time")
    if draft.option_index >= len(config.vote_options):
        raise EncodingError(
            f"Option index {draft.option_index} outside {len(config.vote_options)} vote option(s)",
            field="option_index",
        )
    for position, instruction in enumerate(draft.deferred_instructions):
        if not isinstance(instruction, RawInstruction):
            raise EncodingError(
                f"Deferred instruction {position} is a {type(instruction).__name__}, not a RawInstruction",
                field="deferred_instructions",
            )


def assemble_instructions(config: GovernanceProgramConfig, identity: GovernanceIdentity,
                          draft: ProposalDraft, proposal_index: int) -> AssembledProposal:
    """
    Build the full instruction list for a proposal numbered ``proposal_index``.

    Deferred instructions without data are left out; the remaining ones take
    consecutive slots starting at 0, in draft order.
    """
    validate_draft(draft, config)
    if isinstance(proposal_index, bool) or not isinstance(proposal_index, int) or proposal_index < 0:
        raise EncodingError(f"Proposal index must be a non-negative integer, got {proposal_index!r}",
                            field="proposal_index")

    program_id = config.program_id
    wallet = identity.wallet

    proposal = derive_proposal_address(
        program_id, identity.governance, identity.governing_token_mint, proposal_index,
    )

    sequence = InstructionSequence().append(encode_create_proposal(
        config,
        realm=identity.realm,
        governance=identity.governance,
        token_owner_record=identity.token_owner_record,
        governing_token_mint=identity.governing_token_mint,
        governance_authority=wallet,
        payer=wallet,
        proposal=proposal,
        name=draft.name,
        description_link=draft.description_link,
        proposal_index=proposal_index,
    ))

    sequence = sequence.append(encode_add_signatory(
        config,
        proposal=proposal,
        token_owner_record=identity.token_owner_record,
        governance_authority=wallet,
        signatory=wallet,
        payer=wallet,
    ))

    signatory_record = derive_signatory_record_address(program_id, proposal, wallet)

    deferred = [ix for ix in draft.deferred_instructions if ix.data]
    skipped = len(draft.deferred_instructions) - len(deferred)
    if skipped:
        logger.info(f"Skipping {skipped} deferred instruction(s) without data")

    transaction_addresses: List[Pubkey] = []
    for slot, instruction in enumerate(deferred):
        sequence = sequence.append(encode_insert_transaction(
            config,
            governance=identity.governance,
            proposal=proposal,
            token_owner_record=identity.token_owner_record,
            governance_authority=wallet,
            payer=wallet,
            index=slot,
            instruction=instruction,
            hold_up_time=draft.hold_up_time,
            option_index=draft.option_index,
        ))
        transaction_addresses.append(
            derive_proposal_transaction_address(program_id, proposal, draft.option_index, slot)
        )
        logger.debug(f"Deferred instruction {slot}: {describe_instruction(instruction)}")

    sequence = sequence.sign_off(encode_sign_off_proposal(
        config,
        realm=identity.realm,
        governance=identity.governance,
        proposal=proposal,
        signatory=wallet,
        signatory_record=signatory_record,
    ))

    logger.info(
        f"Assembled proposal #{proposal_index} {short_address(proposal)} "
        f"with {len(sequence)} instructions"
    )
    return AssembledProposal(
        proposal_address=proposal,
        signatory_record_address=signatory_record,
        instructions=sequence.instructions,
        proposal_index=proposal_index,
        proposal_transaction_addresses=tuple(transaction_addresses),
    )


class ProposalAssembler:
    """Reads the governance's proposal counter and assembles against it"""

    def __init__(self, ledger: IGovernanceLedger, config: GovernanceProgramConfig):
        self.ledger = ledger
        self.config = config

    async def read_proposal_index(self, identity: GovernanceIdentity) -> int:
        """Fresh read of the governance's proposal counter; never cached"""
        account = await self.ledger.get_governance_account(identity.governance)
        if account.realm != identity.realm:
            raise InvalidIdentityError(
                "governance",
                f"{identity.governance} belongs to realm {account.realm}, not {identity.realm}",
            )
        return account.proposals_count

    async def assemble(self, identity: GovernanceIdentity, draft: ProposalDraft) -> AssembledProposal:
        try:
            validate_draft(draft, self.config)
            proposal_index = await self.read_proposal_index(identity)
            assembled = assemble_instructions(self.config, identity, draft, proposal_index)
        except GovernanceError as e:
            proposal_assemblies.labels(outcome=type(e).__name__).inc()
            raise
        proposal_assemblies.labels(outcome="success").inc()
        proposal_instructions.observe(len(assembled.instructions))
        return assembled
