"""
Instruction encoder for SPL Governance (program version 2).

Each ``encode_*`` function turns one governance action into a RawInstruction
whose data is byte-exact with the program's Borsh instruction layout:
a one-byte instruction tag followed by the action's arguments.
"""

import inspect
from typing import Any, Callable, Dict, Mapping

import construct
from borsh_construct import Bool, Bytes, CStruct, String, U8, U16, U32, Vec
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.sysvar import RENT

from .addresses import (
    derive_proposal_transaction_address,
    derive_realm_config_address,
    derive_signatory_record_address,
    parse_address,
)
from .exceptions import EncodingError
from .models import AccountMeta, RawInstruction
from .types import ActionKind, GovernanceProgramConfig, PROGRAM_VERSION_V2, VoteType


class _BorshPubkey(construct.Adapter):
    """32 raw bytes <-> Pubkey"""

    def __init__(self):
        super().__init__(construct.Bytes(32))

    def _decode(self, obj, context, path) -> Pubkey:
        return Pubkey.from_bytes(obj)

    def _encode(self, obj, context, path) -> bytes:
        return bytes(obj)


BorshPubkey = _BorshPubkey()

CREATE_PROPOSAL_LAYOUT = CStruct(
    "name" / String,
    "description_link" / String,
    "vote_type" / U8,
    "options" / Vec(String),
    "use_deny_option" / Bool,
)

ADD_SIGNATORY_LAYOUT = CStruct(
    "signatory" / BorshPubkey,
)

ACCOUNT_META_DATA_LAYOUT = CStruct(
    "pubkey" / BorshPubkey,
    "is_signer" / Bool,
    "is_writable" / Bool,
)

INSTRUCTION_DATA_LAYOUT = CStruct(
    "program_id" / BorshPubkey,
    "accounts" / Vec(ACCOUNT_META_DATA_LAYOUT),
    "data" / Bytes,
)

INSERT_TRANSACTION_LAYOUT = CStruct(
    "option_index" / U8,
    "index" / U16,
    "hold_up_time" / U32,
    "instructions" / Vec(INSTRUCTION_DATA_LAYOUT),
)

# Head of every governance account: type, realm, governed account, proposal counter
GOVERNANCE_ACCOUNT_LAYOUT = CStruct(
    "account_type" / U8,
    "realm" / BorshPubkey,
    "governed_account" / BorshPubkey,
    "proposals_count" / U32,
)


def _check_version(config: GovernanceProgramConfig):
    if config.program_version != PROGRAM_VERSION_V2:
        raise EncodingError(
            f"Unsupported governance program version {config.program_version}",
            field="program_version",
        )


def _build(kind: ActionKind, layout=None, args: Dict[str, Any] = None) -> bytes:
    if layout is None:
        return bytes([kind])
    try:
        return bytes([kind]) + layout.build(args)
    except construct.ConstructError as e:
        raise EncodingError(f"Cannot encode {kind.name}: {e}") from e


def check_uint(value: int, bits: int, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodingError(f"{field} must be an integer, got {value!r}", field=field)
    if value < 0:
        raise EncodingError(f"{field} must not be negative, got {value}", field=field)
    if value >= 1 << bits:
        raise EncodingError(f"{field} exceeds u{bits}: {value}", field=field)
    return value


def _require_text(value: str, field: str) -> str:
    if not isinstance(value, str) or not value:
        raise EncodingError(f"{field} must be a non-empty string", field=field)
    return value


def encode_create_proposal(config: GovernanceProgramConfig, *,
                           realm, governance, token_owner_record,
                           governing_token_mint, governance_authority, payer,
                           proposal, name: str, description_link: str,
                           proposal_index: int) -> RawInstruction:
    """
    CreateProposal with a single-choice vote over ``config.vote_options``.

    ``proposal`` must be the address derived for ``proposal_index``; the
    program recomputes it and refuses a mismatch.
    """
    _check_version(config)
    _require_text(name, "name")
    _require_text(description_link, "description_link")
    check_uint(proposal_index, 32, "proposal_index")
    if not config.vote_options:
        raise EncodingError("At least one vote option is required", field="vote_options")

    data = _build(ActionKind.CREATE_PROPOSAL, CREATE_PROPOSAL_LAYOUT, {
        "name": name,
        "description_link": description_link,
        "vote_type": VoteType.SINGLE_CHOICE,
        "options": list(config.vote_options),
        "use_deny_option": config.use_deny_option,
    })
    realm = parse_address(realm, "realm")
    accounts = (
        AccountMeta(realm, is_signer=False, is_writable=False),
        AccountMeta(parse_address(proposal, "proposal"), is_signer=False, is_writable=True),
        AccountMeta(parse_address(governance, "governance"), is_signer=False, is_writable=True),
        AccountMeta(parse_address(token_owner_record, "token_owner_record"), is_signer=False, is_writable=True),
        AccountMeta(parse_address(governing_token_mint, "governing_token_mint"), is_signer=False, is_writable=False),
        AccountMeta(parse_address(governance_authority, "governance_authority"), is_signer=True, is_writable=False),
        AccountMeta(parse_address(payer, "payer"), is_signer=True, is_writable=True),
        AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
        AccountMeta(derive_realm_config_address(config.program_id, realm), is_signer=False, is_writable=False),
    )
    return RawInstruction(program_id=config.program_id, accounts=accounts, data=data)


def encode_add_signatory(config: GovernanceProgramConfig, *,
                         proposal, token_owner_record, governance_authority,
                         signatory, payer) -> RawInstruction:
    _check_version(config)
    proposal = parse_address(proposal, "proposal")
    signatory = parse_address(signatory, "signatory")

    data = _build(ActionKind.ADD_SIGNATORY, ADD_SIGNATORY_LAYOUT, {"signatory": signatory})
    accounts = (
        AccountMeta(proposal, is_signer=False, is_writable=True),
        AccountMeta(parse_address(token_owner_record, "token_owner_record"), is_signer=False, is_writable=False),
        AccountMeta(parse_address(governance_authority, "governance_authority"), is_signer=True, is_writable=False),
        AccountMeta(
            derive_signatory_record_address(config.program_id, proposal, signatory),
            is_signer=False, is_writable=True,
        ),
        AccountMeta(parse_address(payer, "payer"), is_signer=True, is_writable=True),
        AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
    )
    return RawInstruction(program_id=config.program_id, accounts=accounts, data=data)


def encode_insert_transaction(config: GovernanceProgramConfig, *,
                              governance, proposal, token_owner_record,
                              governance_authority, payer, index: int,
                              instruction: RawInstruction, hold_up_time: int = 0,
                              option_index: int = 0) -> RawInstruction:
    """
    InsertTransaction embedding ``instruction`` at slot ``index`` of an option.

    The embedded instruction only runs once the proposal is approved and
    ``hold_up_time`` seconds have passed.
    """
    _check_version(config)
    check_uint(index, 16, "index")
    check_uint(hold_up_time, 32, "hold_up_time")
    check_uint(option_index, 8, "option_index")
    if not isinstance(instruction, RawInstruction):
        raise EncodingError(f"Expected a RawInstruction, got {type(instruction).__name__}",
                            field="instruction")
    if not instruction.data:
        raise EncodingError("Deferred instruction has no data and cannot be embedded",
                            field="instruction")

    proposal = parse_address(proposal, "proposal")
    data = _build(ActionKind.INSERT_TRANSACTION, INSERT_TRANSACTION_LAYOUT, {
        "option_index": option_index,
        "index": index,
        "hold_up_time": hold_up_time,
        "instructions": [{
            "program_id": instruction.program_id,
            "accounts": [
                {"pubkey": meta.address, "is_signer": meta.is_signer, "is_writable": meta.is_writable}
                for meta in instruction.accounts
            ],
            "data": instruction.data,
        }],
    })
    accounts = (
        AccountMeta(parse_address(governance, "governance"), is_signer=False, is_writable=False),
        AccountMeta(proposal, is_signer=False, is_writable=True),
        AccountMeta(parse_address(token_owner_record, "token_owner_record"), is_signer=False, is_writable=False),
        AccountMeta(parse_address(governance_authority, "governance_authority"), is_signer=True, is_writable=False),
        AccountMeta(
            derive_proposal_transaction_address(config.program_id, proposal, option_index, index),
            is_signer=False, is_writable=True,
        ),
        AccountMeta(parse_address(payer, "payer"), is_signer=True, is_writable=True),
        AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
        AccountMeta(RENT, is_signer=False, is_writable=False),
    )
    return RawInstruction(program_id=config.program_id, accounts=accounts, data=data)


def encode_sign_off_proposal(config: GovernanceProgramConfig, *,
                             realm, governance, proposal, signatory,
                             signatory_record) -> RawInstruction:
    _check_version(config)
    accounts = (
        AccountMeta(parse_address(realm, "realm"), is_signer=False, is_writable=True),
        AccountMeta(parse_address(governance, "governance"), is_signer=False, is_writable=True),
        AccountMeta(parse_address(proposal, "proposal"), is_signer=False, is_writable=True),
        AccountMeta(parse_address(signatory, "signatory"), is_signer=True, is_writable=False),
        AccountMeta(parse_address(signatory_record, "signatory_record"), is_signer=False, is_writable=True),
    )
    return RawInstruction(
        program_id=config.program_id,
        accounts=accounts,
        data=_build(ActionKind.SIGN_OFF_PROPOSAL),
    )


_ENCODERS: Dict[ActionKind, Callable[..., RawInstruction]] = {
    ActionKind.CREATE_PROPOSAL: encode_create_proposal,
    ActionKind.ADD_SIGNATORY: encode_add_signatory,
    ActionKind.INSERT_TRANSACTION: encode_insert_transaction,
    ActionKind.SIGN_OFF_PROPOSAL: encode_sign_off_proposal,
}


def encode(action_kind, config: GovernanceProgramConfig,
           fields: Mapping[str, Any]) -> RawInstruction:
    """Encode ``fields`` as the instruction for ``action_kind``"""
    try:
        kind = ActionKind(action_kind)
    except ValueError:
        raise EncodingError(f"Unsupported governance action: {action_kind!r}")

    encoder = _ENCODERS[kind]
    params = inspect.signature(encoder).parameters
    expected = {n for n, p in params.items() if p.kind is inspect.Parameter.KEYWORD_ONLY}
    required = {n for n in expected if params[n].default is inspect.Parameter.empty}

    missing = sorted(n for n in required if fields.get(n) is None)
    if missing:
        raise EncodingError(f"{kind.name} is missing fields: {', '.join(missing)}",
                            field=missing[0])
    unknown = sorted(set(fields) - expected)
    if unknown:
        raise EncodingError(f"{kind.name} got unexpected fields: {', '.join(unknown)}",
                            field=unknown[0])
    return encoder(config, **fields)


def decode_action_kind(instruction: RawInstruction) -> ActionKind:
    """Action of a governance instruction, read from its tag byte"""
    if not instruction.data:
        raise EncodingError("Instruction has no data")
    try:
        return ActionKind(instruction.data[0])
    except ValueError:
        raise EncodingError(f"Unknown governance instruction tag {instruction.data[0]}")
