"""
Tests for transaction submission and confirmation tracking
"""

import asyncio

import pytest
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from bounty_board_governance.assembler import assemble_instructions
from bounty_board_governance.exceptions import (
    ConfirmationTimeoutError,
    EncodingError,
    InvalidIdentityError,
    RejectedError,
    StaleStateError,
)
from bounty_board_governance.models import AccountMeta, ProposalDraft, RawInstruction, SignatureStatus
from bounty_board_governance.submitter import TransactionSubmitter
from bounty_board_governance.types import Commitment

PROCESSED = SignatureStatus(slot=10, confirmation_status=Commitment.PROCESSED)
CONFIRMED = SignatureStatus(slot=11, confirmation_status=Commitment.CONFIRMED)


@pytest.fixture
def instructions(program_config, identity, deferred_instruction):
    draft = ProposalDraft("Q1 Budget", "ipfs://abc", [deferred_instruction])
    return assemble_instructions(program_config, identity, draft, 0).instructions


def make_submitter(ledger, **kwargs):
    kwargs.setdefault("confirmation_timeout", 1.0)
    kwargs.setdefault("poll_interval", 0.01)
    return TransactionSubmitter(ledger, **kwargs)


class TestSubmitSuccess:
    """Test the confirmed path"""

    @pytest.mark.asyncio
    async def test_returns_signature_after_confirmation(self, ledger_factory, instructions, signer):
        ledger = ledger_factory(statuses=[None, PROCESSED, CONFIRMED])
        result = await make_submitter(ledger).submit(instructions, signer)

        assert len(ledger.sent) == 1
        transaction = ledger.sent[0]
        assert result.signature == str(transaction.signatures[0])
        assert result.slot == 11
        assert result.confirmation_status is Commitment.CONFIRMED
        assert ledger.calls[:2] == ["get_latest_blockhash", "send_transaction"]
        assert ledger.calls.count("get_signature_status") == 3

    @pytest.mark.asyncio
    async def test_single_transaction_in_emission_order(self, ledger_factory, instructions, signer):
        ledger = ledger_factory(statuses=[CONFIRMED])
        await make_submitter(ledger).submit(instructions, signer)

        message = ledger.sent[0].message
        assert message.account_keys[0] == signer.pubkey()
        assert len(message.instructions) == len(instructions)
        assert [bytes(ix.data) for ix in message.instructions] == [ix.data for ix in instructions]

    @pytest.mark.asyncio
    async def test_keeps_polling_through_failed_status_reads(self, ledger_factory, instructions, signer):
        ledger = ledger_factory(statuses=[StaleStateError("rpc down"), CONFIRMED])
        result = await make_submitter(ledger).submit(instructions, signer)
        assert result.slot == 11


class TestSubmitFailures:
    """Test rejection, timeout and pre-send failures"""

    @pytest.mark.asyncio
    async def test_execution_failure_is_rejected(self, ledger_factory, instructions, signer):
        failed = SignatureStatus(slot=12, confirmation_status=Commitment.CONFIRMED,
                                 err={"InstructionError": [0, {"Custom": 0}]})
        ledger = ledger_factory(statuses=[failed])

        with pytest.raises(RejectedError) as exc_info:
            await make_submitter(ledger).submit(instructions, signer)

        assert exc_info.value.signature == str(ledger.sent[0].signatures[0])
        assert exc_info.value.details == failed.err
        assert ledger.calls.count("send_transaction") == 1

    @pytest.mark.asyncio
    async def test_refused_send_is_not_retried(self, ledger_factory, instructions, signer):
        ledger = ledger_factory(send_error=RejectedError("Transaction simulation failed"))

        with pytest.raises(RejectedError):
            await make_submitter(ledger).submit(instructions, signer)

        assert ledger.calls == ["get_latest_blockhash", "send_transaction"]

    @pytest.mark.asyncio
    async def test_timeout_without_confirmation(self, ledger_factory, instructions, signer):
        ledger = ledger_factory(statuses=[PROCESSED])
        submitter = make_submitter(ledger, confirmation_timeout=0.05)

        with pytest.raises(ConfirmationTimeoutError) as exc_info:
            await submitter.submit(instructions, signer)

        assert exc_info.value.signature == str(ledger.sent[0].signatures[0])
        assert exc_info.value.timeout == 0.05

    @pytest.mark.asyncio
    async def test_confirmed_is_not_enough_for_finalized(self, ledger_factory, instructions, signer):
        ledger = ledger_factory(statuses=[CONFIRMED])
        submitter = make_submitter(ledger, commitment=Commitment.FINALIZED, confirmation_timeout=0.05)

        with pytest.raises(ConfirmationTimeoutError):
            await submitter.submit(instructions, signer)

    @pytest.mark.asyncio
    async def test_blockhash_failure_sends_nothing(self, ledger_factory, instructions, signer):
        ledger = ledger_factory(blockhash_error=StaleStateError("no blockhash"))

        with pytest.raises(StaleStateError):
            await make_submitter(ledger).submit(instructions, signer)

        assert ledger.sent == []

    @pytest.mark.asyncio
    async def test_foreign_signer_sends_nothing(self, ledger_factory, instructions):
        ledger = ledger_factory(statuses=[CONFIRMED])

        with pytest.raises(InvalidIdentityError):
            await make_submitter(ledger).submit(instructions, Keypair())

        assert "send_transaction" not in ledger.calls

    @pytest.mark.asyncio
    async def test_oversized_transaction_sends_nothing(self, ledger_factory, signer):
        bulky = RawInstruction(
            program_id=Pubkey.new_unique(),
            accounts=(AccountMeta(signer.pubkey(), is_signer=True, is_writable=True),),
            data=b"\x01" * 1500,
        )
        ledger = ledger_factory(statuses=[CONFIRMED])

        with pytest.raises(EncodingError):
            await make_submitter(ledger).submit([bulky], signer)

        assert ledger.sent == []

    @pytest.mark.asyncio
    async def test_empty_instruction_list(self, ledger_factory, signer):
        with pytest.raises(EncodingError):
            await make_submitter(ledger_factory()).submit([], signer)

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, ledger_factory, instructions, signer):
        ledger = ledger_factory(statuses=[PROCESSED])
        submitter = make_submitter(ledger, confirmation_timeout=30.0)

        task = asyncio.create_task(submitter.submit(instructions, signer))
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
