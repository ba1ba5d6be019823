"""
Configuration Module

Environment-driven settings for the proposal service.
"""

import json
from pathlib import Path
from typing import List, Literal, Optional, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from solders.keypair import Keypair

from .addresses import parse_address
from .exceptions import InvalidIdentityError
from .types import Commitment, DEFAULT_GOVERNANCE_PROGRAM_ID, GovernanceProgramConfig


class GovernanceSettings(BaseSettings):
    """Settings for assembling and submitting governance proposals"""

    model_config = SettingsConfigDict(
        env_prefix="GOVERNANCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Ledger RPC
    rpc_url: str = Field("https://api.devnet.solana.com")
    commitment: Literal["processed", "confirmed", "finalized"] = Field("confirmed")
    rpc_timeout: float = Field(10.0, gt=0)
    rpc_read_attempts: int = Field(3, ge=1)

    # Governance program
    program_id: str = Field(DEFAULT_GOVERNANCE_PROGRAM_ID)
    program_version: int = Field(2)
    # Comma separated in the environment, e.g. GOVERNANCE_VOTE_OPTIONS=Approve,Abstain
    vote_options: Union[List[str], str] = Field(default_factory=lambda: ["Approve"])
    use_deny_option: bool = Field(True)

    # Confirmation tracking
    confirmation_timeout: float = Field(60.0, gt=0)
    poll_interval: float = Field(0.5, gt=0)

    # Signer key file in the Solana CLI JSON format
    keypair_path: Optional[str] = Field(None)

    @field_validator("vote_options", mode="before")
    @classmethod
    def parse_vote_options(cls, v):
        if isinstance(v, str):
            return [option.strip() for option in v.split(",") if option.strip()]
        return v

    @field_validator("program_id")
    @classmethod
    def check_program_id(cls, v):
        try:
            parse_address(v, "program_id")
        except InvalidIdentityError as e:
            raise ValueError(str(e)) from e
        return v

    @property
    def commitment_level(self) -> Commitment:
        return Commitment(self.commitment)

    def to_program_config(self) -> GovernanceProgramConfig:
        return GovernanceProgramConfig(
            program_id=parse_address(self.program_id, "program_id"),
            program_version=self.program_version,
            vote_options=tuple(self.vote_options),
            use_deny_option=self.use_deny_option,
        )


def load_keypair(path: str) -> Keypair:
    """Load a signer from a Solana CLI keypair file (JSON array of 64 bytes)"""
    try:
        secret = json.loads(Path(path).expanduser().read_text())
        return Keypair.from_bytes(bytes(secret))
    except (OSError, ValueError, TypeError) as e:
        raise InvalidIdentityError("keypair", f"cannot load keypair from {path}: {e}") from e
