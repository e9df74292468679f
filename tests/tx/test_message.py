"""
Tests for message compilation, signing and serialization.
"""

import pytest

from helpers import make_public_key, make_signer
from ledger_client.runtime.codec import b58encode, decode_shortvec
from ledger_client.runtime.errors import FeePayerMissingError, UnexpectedSignerError
from ledger_client.tx.instruction import AccountMeta, TransactionInstruction
from ledger_client.tx.message import Message, Transaction

BLOCKHASH = b58encode(bytes([9]) * 32)


@pytest.fixture
def accounts():
    return {
        "payer": make_signer("payer"),
        "writer": make_signer("writer"),
        "reader": make_signer("reader"),
        "data": make_public_key("data"),
        "config": make_public_key("config"),
        "program_x": make_public_key("program-x"),
        "program_y": make_public_key("program-y"),
    }


@pytest.fixture
def instructions(accounts):
    first = TransactionInstruction(
        accounts["program_x"],
        (
            AccountMeta(accounts["writer"].public_key, is_signer=True, is_writable=True),
            AccountMeta(accounts["data"], is_writable=True),
            AccountMeta(accounts["reader"].public_key, is_signer=True),
        ),
        b"\x01",
    )
    second = TransactionInstruction(
        accounts["program_y"],
        (
            AccountMeta(accounts["config"]),
            AccountMeta(accounts["writer"].public_key),
        ),
        b"\x02\x03",
    )
    return [first, second]


class TestMessageCompile:
    """Test account ordering and header counts"""

    def test_account_order(self, accounts, instructions):
        message = Message.compile(accounts["payer"].public_key, instructions, BLOCKHASH)

        assert message.account_keys == [
            accounts["payer"].public_key,
            accounts["writer"].public_key,
            accounts["reader"].public_key,
            accounts["data"],
            accounts["program_x"],
            accounts["config"],
            accounts["program_y"],
        ]
        assert message.header.num_required_signatures == 3
        assert message.header.num_readonly_signed_accounts == 1
        assert message.header.num_readonly_unsigned_accounts == 3

    def test_compiled_indexes(self, accounts, instructions):
        message = Message.compile(accounts["payer"].public_key, instructions, BLOCKHASH)

        first, second = message.instructions
        assert first.program_id_index == 4
        assert first.accounts == [1, 3, 2]
        assert second.program_id_index == 6
        assert second.accounts == [5, 1]
        assert second.data == b"\x02\x03"

    def test_fee_payer_required(self, instructions):
        with pytest.raises(FeePayerMissingError):
            Message.compile(None, instructions, BLOCKHASH)

    def test_invalid_blockhash(self, accounts, instructions):
        message = Message.compile(accounts["payer"].public_key, instructions, "abc")
        with pytest.raises(ValueError):
            message.serialize()


class TestTransactionSigning:
    """Test signatures and wire layout"""

    @pytest.mark.asyncio
    async def test_sign_and_serialize(self, accounts, instructions):
        transaction = Transaction(
            instructions=instructions,
            fee_payer=accounts["payer"].public_key,
            recent_blockhash=BLOCKHASH,
        )
        signers = [accounts["payer"], accounts["writer"], accounts["reader"]]

        await transaction.sign(signers)
        raw = transaction.serialize()

        count, offset = decode_shortvec(raw)
        assert count == 3
        message_bytes = raw[offset + 64 * count:]
        assert message_bytes == transaction.compile_message().serialize()
        for i, signer in enumerate(signers):
            signature = raw[offset + 64 * i: offset + 64 * (i + 1)]
            assert signer.verify(signature, message_bytes)
        assert transaction.signature == b58encode(raw[offset:offset + 64])
        assert transaction.missing_signers() == []

    @pytest.mark.asyncio
    async def test_missing_signatures_are_zero(self, accounts, instructions):
        transaction = Transaction(
            instructions=instructions,
            fee_payer=accounts["payer"].public_key,
            recent_blockhash=BLOCKHASH,
        )
        await transaction.sign([accounts["payer"]])

        raw = transaction.serialize()

        assert raw[1 + 64:1 + 128] == bytes(64)
        assert transaction.missing_signers() == [
            accounts["writer"].public_key,
            accounts["reader"].public_key,
        ]

    @pytest.mark.asyncio
    async def test_unexpected_signer(self, accounts, instructions):
        transaction = Transaction(
            instructions=instructions,
            fee_payer=accounts["payer"].public_key,
            recent_blockhash=BLOCKHASH,
        )
        with pytest.raises(UnexpectedSignerError):
            await transaction.sign([make_signer("stranger")])

    def test_blockhash_required(self, accounts, instructions):
        transaction = Transaction(instructions=instructions, fee_payer=accounts["payer"].public_key)
        with pytest.raises(ValueError):
            transaction.compile_message()
