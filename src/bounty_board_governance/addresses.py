"""
Program-derived addresses of SPL Governance accounts.

All derivations are pure: the same inputs always yield the same address.
"""

import struct
from typing import Optional, Sequence, Union

from solders.pubkey import Pubkey

from .exceptions import InvalidIdentityError
from .utils import validate_address

GOVERNANCE_SEED = b"governance"
REALM_CONFIG_SEED = b"realm-config"

_U8_MAX = 0xFF
_U16_MAX = 0xFFFF
_U32_MAX = 0xFFFFFFFF


def parse_address(value: Union[str, bytes, Pubkey, None], field: str = "address") -> Pubkey:
    """Coerce base58 text or raw 32 bytes into a public key"""
    if isinstance(value, Pubkey):
        return value
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 32:
            raise InvalidIdentityError(field, f"expected 32 bytes, got {len(value)}")
        return Pubkey.from_bytes(bytes(value))
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise InvalidIdentityError(field, "empty address")
        if not validate_address(value):
            raise InvalidIdentityError(field, f"malformed address {value!r}")
        try:
            return Pubkey.from_string(value)
        except ValueError as e:
            raise InvalidIdentityError(field, f"malformed address {value!r}") from e
    raise InvalidIdentityError(field, f"unsupported value {value!r}")


def _find(seeds: Sequence[bytes], program_id: Pubkey) -> Pubkey:
    address, _bump = Pubkey.find_program_address(list(seeds), program_id)
    return address


def _check_range(value: int, upper: int, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidIdentityError(field, f"expected an integer, got {value!r}")
    if value < 0 or value > upper:
        raise InvalidIdentityError(field, f"{value} out of range 0..{upper}")
    return value


def derive_proposal_address(program_id, governance, governing_token_mint,
                            proposal_index: int) -> Pubkey:
    """Address of the proposal numbered ``proposal_index`` under a governance.

    Seeds: "governance", governance, governing token mint, index as u32 LE.
    """
    program = parse_address(program_id, "program_id")
    index = _check_range(proposal_index, _U32_MAX, "proposal_index")
    return _find(
        [
            GOVERNANCE_SEED,
            bytes(parse_address(governance, "governance")),
            bytes(parse_address(governing_token_mint, "governing_token_mint")),
            struct.pack("<I", index),
        ],
        program,
    )


def derive_signatory_record_address(program_id, proposal, signatory) -> Pubkey:
    program = parse_address(program_id, "program_id")
    return _find(
        [
            GOVERNANCE_SEED,
            bytes(parse_address(proposal, "proposal")),
            bytes(parse_address(signatory, "signatory")),
        ],
        program,
    )


def derive_proposal_transaction_address(program_id, proposal, option_index: int,
                                        transaction_index: int) -> Pubkey:
    """Account holding the deferred transaction at ``transaction_index`` of an option"""
    program = parse_address(program_id, "program_id")
    option = _check_range(option_index, _U8_MAX, "option_index")
    index = _check_range(transaction_index, _U16_MAX, "transaction_index")
    return _find(
        [
            GOVERNANCE_SEED,
            bytes(parse_address(proposal, "proposal")),
            struct.pack("<B", option),
            struct.pack("<H", index),
        ],
        program,
    )


def derive_realm_config_address(program_id, realm) -> Pubkey:
    program = parse_address(program_id, "program_id")
    return _find([REALM_CONFIG_SEED, bytes(parse_address(realm, "realm"))], program)


def short_address(address: Optional[Pubkey], width: int = 4) -> str:
    """Abbreviated address for log lines"""
    if address is None:
        return "-"
    text = str(address)
    return f"{text[:width]}..{text[-width:]}"
