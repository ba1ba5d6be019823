"""
Shared fixtures: an in-memory ledger and governance identities
"""

import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from bounty_board_governance.models import (
    AccountMeta,
    GovernanceAccount,
    GovernanceIdentity,
    RawInstruction,
)
from bounty_board_governance.types import GovernanceAccountType, GovernanceProgramConfig


class FakeLedger:
    """Ledger double recording every call in order"""

    def __init__(self, proposals_count=0, realm=None, statuses=None,
                 send_error=None, read_error=None, blockhash_error=None,
                 reachable=True):
        self.proposals_count = proposals_count
        self.realm = realm
        self.statuses = list(statuses or [])
        self.send_error = send_error
        self.read_error = read_error
        self.blockhash_error = blockhash_error
        self.calls = []
        self.sent = []
        self.reachable = reachable
        self.closed = False

    async def get_governance_account(self, address):
        self.calls.append("get_governance_account")
        if self.read_error:
            raise self.read_error
        return GovernanceAccount(
            address=address,
            account_type=GovernanceAccountType.GOVERNANCE_V2,
            realm=self.realm,
            governed_account=Pubkey.default(),
            proposals_count=self.proposals_count,
        )

    async def get_latest_blockhash(self):
        self.calls.append("get_latest_blockhash")
        if self.blockhash_error:
            raise self.blockhash_error
        return Hash.new_unique(), 1000

    async def send_transaction(self, transaction):
        self.calls.append("send_transaction")
        if self.send_error:
            raise self.send_error
        self.sent.append(transaction)
        return transaction.signatures[0]

    async def get_signature_status(self, signature):
        self.calls.append("get_signature_status")
        if not self.statuses:
            return None
        # Statuses are consumed in order; the last one repeats
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if isinstance(status, Exception):
            raise status
        return status

    async def connect(self):
        self.calls.append("connect")
        return self.reachable

    async def close(self):
        self.closed = True


@pytest.fixture
def program_config():
    return GovernanceProgramConfig.default()


@pytest.fixture
def signer():
    return Keypair()


@pytest.fixture
def identity(signer):
    return GovernanceIdentity(
        realm=Pubkey.new_unique(),
        governance=Pubkey.new_unique(),
        governing_token_mint=Pubkey.new_unique(),
        token_owner_record=Pubkey.new_unique(),
        wallet=signer.pubkey(),
    )


@pytest.fixture
def target_program():
    return Pubkey.new_unique()


@pytest.fixture
def deferred_instruction(target_program):
    return RawInstruction(
        program_id=target_program,
        accounts=(AccountMeta(Pubkey.new_unique(), is_signer=False, is_writable=True),),
        data=b"xyz",
    )


@pytest.fixture
def fake_ledger(identity):
    return FakeLedger(proposals_count=4, realm=identity.realm)


@pytest.fixture
def ledger_factory():
    return FakeLedger
