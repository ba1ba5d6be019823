"""
Core types and enums for governance proposal assembly.
"""

from enum import Enum, IntEnum
from typing import Tuple
from dataclasses import dataclass

from solders.pubkey import Pubkey


# SPL Governance deployment used by the Realms UI
DEFAULT_GOVERNANCE_PROGRAM_ID = "GovER5Lthms3bLBqWub97yVrMmEogzX7xNjdXpPPCVZw"

PROGRAM_VERSION_V2 = 2

# Largest serialized transaction the network accepts
PACKET_DATA_SIZE = 1232


class ActionKind(IntEnum):
    """Governance actions, valued by their SPL Governance instruction tag"""
    CREATE_PROPOSAL = 6
    ADD_SIGNATORY = 7
    INSERT_TRANSACTION = 9
    SIGN_OFF_PROPOSAL = 12


class VoteType(IntEnum):
    """Borsh discriminant of the proposal vote type"""
    SINGLE_CHOICE = 0


class Commitment(Enum):
    """Confirmation levels, weakest first"""
    PROCESSED = "processed"
    CONFIRMED = "confirmed"
    FINALIZED = "finalized"

    @property
    def rank(self) -> int:
        return list(Commitment).index(self)

    def is_reached_by(self, observed: "Commitment") -> bool:
        return observed.rank >= self.rank


class GovernanceAccountType(IntEnum):
    """Account discriminants of governance accounts that carry a proposal counter"""
    GOVERNANCE_V1 = 3
    PROGRAM_GOVERNANCE_V1 = 4
    MINT_GOVERNANCE_V1 = 9
    TOKEN_GOVERNANCE_V1 = 10
    GOVERNANCE_V2 = 18
    PROGRAM_GOVERNANCE_V2 = 19
    MINT_GOVERNANCE_V2 = 20
    TOKEN_GOVERNANCE_V2 = 21


@dataclass(frozen=True)
class GovernanceProgramConfig:
    """Governance program targeted by the encoder.

    Passed explicitly so several programs or networks can be served from
    one process.
    """
    program_id: Pubkey
    program_version: int = PROGRAM_VERSION_V2
    vote_options: Tuple[str, ...] = ("Approve",)
    use_deny_option: bool = True

    @classmethod
    def default(cls) -> "GovernanceProgramConfig":
        return cls(program_id=Pubkey.from_string(DEFAULT_GOVERNANCE_PROGRAM_ID))
