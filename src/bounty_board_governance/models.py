"""
Core data models for governance proposal assembly.
"""

from typing import Optional, Tuple, Union
from dataclasses import dataclass

from solders.instruction import AccountMeta as SoldersAccountMeta
from solders.instruction import Instruction as SoldersInstruction
from solders.pubkey import Pubkey

from .addresses import parse_address
from .types import Commitment

AddressLike = Union[str, bytes, Pubkey]


@dataclass(frozen=True)
class AccountMeta:
    """Account reference of an instruction"""
    address: Pubkey
    is_signer: bool = False
    is_writable: bool = False

    def __post_init__(self):
        object.__setattr__(self, "address", parse_address(self.address, "account"))

    def to_solders(self) -> SoldersAccountMeta:
        return SoldersAccountMeta(self.address, self.is_signer, self.is_writable)


@dataclass(frozen=True)
class RawInstruction:
    """One ledger instruction: target program, ordered accounts, opaque data"""
    program_id: Pubkey
    accounts: Tuple[AccountMeta, ...] = ()
    data: bytes = b""

    def __post_init__(self):
        object.__setattr__(self, "program_id", parse_address(self.program_id, "program_id"))
        object.__setattr__(self, "accounts", tuple(self.accounts))
        object.__setattr__(self, "data", bytes(self.data or b""))

    @property
    def signers(self) -> Tuple[Pubkey, ...]:
        return tuple(meta.address for meta in self.accounts if meta.is_signer)

    def to_solders(self) -> SoldersInstruction:
        return SoldersInstruction(
            self.program_id,
            self.data,
            [meta.to_solders() for meta in self.accounts],
        )

    @classmethod
    def from_solders(cls, instruction: SoldersInstruction) -> "RawInstruction":
        return cls(
            program_id=instruction.program_id,
            accounts=tuple(
                AccountMeta(meta.pubkey, meta.is_signer, meta.is_writable)
                for meta in instruction.accounts
            ),
            data=bytes(instruction.data),
        )


@dataclass(frozen=True)
class GovernanceIdentity:
    """Public identifiers a proposal is created under. Never mutated."""
    realm: Pubkey
    governance: Pubkey
    governing_token_mint: Pubkey
    token_owner_record: Pubkey
    wallet: Pubkey

    def __post_init__(self):
        for name in ("realm", "governance", "governing_token_mint",
                     "token_owner_record", "wallet"):
            object.__setattr__(self, name, parse_address(getattr(self, name), name))


@dataclass(frozen=True)
class ProposalDraft:
    """What the member asked for: proposal text and the instructions to run on approval"""
    name: str
    description_link: str
    # RawInstruction or solders Instruction values; the latter are converted
    deferred_instructions: Tuple[RawInstruction, ...] = ()
    hold_up_time: int = 0  # seconds after approval before execution
    option_index: int = 0

    def __post_init__(self):
        object.__setattr__(self, "deferred_instructions", tuple(
            RawInstruction.from_solders(ix) if isinstance(ix, SoldersInstruction) else ix
            for ix in self.deferred_instructions
        ))


@dataclass(frozen=True)
class AssembledProposal:
    """Ordered instruction list for one proposal plus the addresses it creates"""
    proposal_address: Pubkey
    signatory_record_address: Pubkey
    instructions: Tuple[RawInstruction, ...]
    proposal_index: int
    proposal_transaction_addresses: Tuple[Pubkey, ...] = ()


@dataclass(frozen=True)
class GovernanceAccount:
    """Decoded head of an on-chain governance account"""
    address: Pubkey
    account_type: int
    realm: Pubkey
    governed_account: Pubkey
    proposals_count: int


@dataclass(frozen=True)
class SignatureStatus:
    """Ledger-reported status of a submitted transaction"""
    slot: int
    confirmation_status: Optional[Commitment] = None
    err: Optional[object] = None
    confirmations: Optional[int] = None


@dataclass(frozen=True)
class SubmissionResult:
    """A confirmed proposal transaction"""
    signature: str
    slot: int
    confirmation_status: Commitment
    proposal_address: Optional[Pubkey] = None
