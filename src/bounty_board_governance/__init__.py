"""
Bounty Board Governance

Assembly and submission of SPL Governance proposals for the DAO bounty board.
"""

from .types import (
    ActionKind,
    Commitment,
    GovernanceProgramConfig,
    DEFAULT_GOVERNANCE_PROGRAM_ID,
)

from .exceptions import (
    GovernanceError,
    InvalidIdentityError,
    EncodingError,
    StaleStateError,
    RejectedError,
    ConfirmationTimeoutError,
)

from .models import (
    AccountMeta,
    RawInstruction,
    GovernanceIdentity,
    ProposalDraft,
    AssembledProposal,
    SubmissionResult,
)

from .addresses import (
    parse_address,
    derive_proposal_address,
    derive_signatory_record_address,
    derive_proposal_transaction_address,
    derive_realm_config_address,
)

from .instructions import encode
from .assembler import ProposalAssembler, assemble_instructions
from .submitter import TransactionSubmitter
from .config import GovernanceSettings
from .interfaces import IGovernanceLedger
from .adapters import SolanaGovernanceLedger
from .service import ProposalService

__all__ = [
    # Types
    "ActionKind",
    "Commitment",
    "GovernanceProgramConfig",
    "DEFAULT_GOVERNANCE_PROGRAM_ID",

    # Errors
    "GovernanceError",
    "InvalidIdentityError",
    "EncodingError",
    "StaleStateError",
    "RejectedError",
    "ConfirmationTimeoutError",

    # Models
    "AccountMeta",
    "RawInstruction",
    "GovernanceIdentity",
    "ProposalDraft",
    "AssembledProposal",
    "SubmissionResult",

    # Addresses
    "parse_address",
    "derive_proposal_address",
    "derive_signatory_record_address",
    "derive_proposal_transaction_address",
    "derive_realm_config_address",

    # Pipeline
    "encode",
    "ProposalAssembler",
    "assemble_instructions",
    "TransactionSubmitter",
    "GovernanceSettings",
    "IGovernanceLedger",
    "SolanaGovernanceLedger",
    "ProposalService",
]

__version__ = "1.0.0"
