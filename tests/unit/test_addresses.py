"""
Tests for program-derived governance addresses
"""

import struct

import pytest
from solders.pubkey import Pubkey

from bounty_board_governance.addresses import (
    derive_proposal_address,
    derive_proposal_transaction_address,
    derive_realm_config_address,
    derive_signatory_record_address,
    parse_address,
)
from bounty_board_governance.exceptions import InvalidIdentityError


class TestParseAddress:
    """Test address coercion"""

    def test_accepts_base58_text(self):
        key = Pubkey.new_unique()
        assert parse_address(str(key)) == key

    def test_accepts_pubkey_and_raw_bytes(self):
        key = Pubkey.new_unique()
        assert parse_address(key) is key
        assert parse_address(bytes(key)) == key

    @pytest.mark.parametrize("value", ["", "   ", "not-a-key", b"\x01" * 31, None, 42])
    def test_rejects_malformed_input(self, value):
        with pytest.raises(InvalidIdentityError) as exc_info:
            parse_address(value, "realm")
        assert exc_info.value.field == "realm"


class TestProposalAddress:
    """Test proposal address derivation"""

    def test_is_deterministic(self, program_config, identity):
        first = derive_proposal_address(
            program_config.program_id, identity.governance, identity.governing_token_mint, 7,
        )
        second = derive_proposal_address(
            str(program_config.program_id), str(identity.governance),
            str(identity.governing_token_mint), 7,
        )
        assert first == second

    def test_consecutive_indices_differ(self, program_config, identity):
        addresses = {
            derive_proposal_address(
                program_config.program_id, identity.governance, identity.governing_token_mint, index,
            )
            for index in (0, 1, 2)
        }
        assert len(addresses) == 3

    def test_uses_governance_seed_scheme(self, program_config, identity):
        expected, _ = Pubkey.find_program_address(
            [
                b"governance",
                bytes(identity.governance),
                bytes(identity.governing_token_mint),
                struct.pack("<I", 3),
            ],
            program_config.program_id,
        )
        assert derive_proposal_address(
            program_config.program_id, identity.governance, identity.governing_token_mint, 3,
        ) == expected

    def test_scoped_to_program(self, identity):
        a = derive_proposal_address(Pubkey.new_unique(), identity.governance, identity.governing_token_mint, 0)
        b = derive_proposal_address(Pubkey.new_unique(), identity.governance, identity.governing_token_mint, 0)
        assert a != b

    @pytest.mark.parametrize("index", [-1, 2 ** 32, True, "1"])
    def test_rejects_out_of_range_index(self, program_config, identity, index):
        with pytest.raises(InvalidIdentityError):
            derive_proposal_address(
                program_config.program_id, identity.governance, identity.governing_token_mint, index,
            )

    def test_rejects_empty_governance(self, program_config, identity):
        with pytest.raises(InvalidIdentityError):
            derive_proposal_address(program_config.program_id, "", identity.governing_token_mint, 0)


class TestOtherAddresses:
    """Test signatory record, proposal transaction and realm config addresses"""

    def test_signatory_record_seeds(self, program_config):
        proposal, signatory = Pubkey.new_unique(), Pubkey.new_unique()
        expected, _ = Pubkey.find_program_address(
            [b"governance", bytes(proposal), bytes(signatory)], program_config.program_id,
        )
        assert derive_signatory_record_address(program_config.program_id, proposal, signatory) == expected

    def test_signatory_record_differs_per_signatory(self, program_config):
        proposal = Pubkey.new_unique()
        a = derive_signatory_record_address(program_config.program_id, proposal, Pubkey.new_unique())
        b = derive_signatory_record_address(program_config.program_id, proposal, Pubkey.new_unique())
        assert a != b

    def test_proposal_transaction_seeds(self, program_config):
        proposal = Pubkey.new_unique()
        expected, _ = Pubkey.find_program_address(
            [b"governance", bytes(proposal), b"\x00", struct.pack("<H", 2)],
            program_config.program_id,
        )
        assert derive_proposal_transaction_address(program_config.program_id, proposal, 0, 2) == expected

    def test_proposal_transaction_index_limit(self, program_config):
        with pytest.raises(InvalidIdentityError):
            derive_proposal_transaction_address(program_config.program_id, Pubkey.new_unique(), 0, 65536)

    def test_realm_config_seeds(self, program_config):
        realm = Pubkey.new_unique()
        expected, _ = Pubkey.find_program_address(
            [b"realm-config", bytes(realm)], program_config.program_id,
        )
        assert derive_realm_config_address(program_config.program_id, realm) == expected
