"""
Tests for the system module operations.
"""

import struct

import pytest
from pydantic import ValidationError

from helpers import make_public_key, make_signer
from ledger_client.modules.system import (
    SYSTEM_PROGRAM_ID,
    SystemClient,
    TransferSolInput,
    create_account_operation,
    transfer_sol_builder,
    transfer_sol_operation,
)
from ledger_client.operations.operation import OperationOptions
from ledger_client.programs.program import Program
from ledger_client.runtime.codec import decode_shortvec
from ledger_client.runtime.disposable import AbortController
from ledger_client.runtime.errors import OperationCanceledError


class TestTransferSol:
    """Test SOL transfers"""

    def test_builder(self, client, payer):
        recipient = make_public_key("recipient")

        builder = transfer_sol_builder(client, TransferSolInput(to=recipient, lamports=5_000))

        [record] = builder.get_instructions_with_signers()
        assert record.key == "transferSol"
        assert record.signers == [payer]
        assert record.instruction.program_id == SYSTEM_PROGRAM_ID
        assert record.instruction.data == struct.pack("<IQ", 2, 5_000)
        assert [meta.pubkey for meta in record.instruction.keys] == [payer.public_key, recipient]
        assert builder.get_fee_payer() is None

    def test_input_aliases(self, signer_a):
        params = TransferSolInput.model_validate({
            "to": str(make_public_key("to")),
            "lamports": 1,
            "from": signer_a,
            "instructionKey": "custom",
        })
        assert params.source is signer_a
        assert params.instruction_key == "custom"

    def test_program_override(self, client):
        override = Program("SystemProgram", make_public_key("fork"))
        builder = transfer_sol_builder(
            client, TransferSolInput(to=make_public_key("to"), lamports=1), programs=[override]
        )
        assert builder.get_instructions()[0].program_id == override.address

    @pytest.mark.asyncio
    async def test_transfer_sends_signed_transaction(self, client, connection, payer):
        recipient = make_public_key("recipient")

        output = await client.system().transfer_sol(to=recipient, lamports=5_000)

        raw = connection.sent[0]
        assert raw[0] == 1
        assert payer.verify(raw[1:65], raw[65:])
        assert output["response"].signature == connection.calls_to("confirm_transaction")[0][1]
        assert isinstance(client.system(), SystemClient)

    @pytest.mark.asyncio
    async def test_dict_input(self, client, connection, payer):
        recipient = make_public_key("recipient")

        output = await client.operations().execute(
            transfer_sol_operation({"to": str(recipient), "lamports": 1000})
        )

        raw = connection.sent[0]
        assert payer.verify(raw[1:65], raw[65:])
        assert output["response"].signature == connection.calls_to("confirm_transaction")[0][1]

    @pytest.mark.asyncio
    async def test_invalid_dict_input(self, client, connection):
        with pytest.raises(ValidationError):
            await client.operations().execute(transfer_sol_operation({"lamports": 1000}))
        assert connection.sent == []

    @pytest.mark.asyncio
    async def test_explicit_source(self, client, connection, payer, signer_a):
        await client.system().transfer_sol(to=make_public_key("to"), lamports=1, source=signer_a)

        raw = connection.sent[0]
        count, offset = decode_shortvec(raw)
        assert count == 2
        message = raw[offset + 64 * count:]
        assert payer.verify(raw[offset:offset + 64], message)
        assert signer_a.verify(raw[offset + 64:offset + 128], message)

    @pytest.mark.asyncio
    async def test_canceled_before_send(self, client, connection):
        controller = AbortController()
        controller.abort()

        with pytest.raises(OperationCanceledError):
            await client.system().transfer_sol(
                to=make_public_key("to"), lamports=1, options=OperationOptions(signal=controller.signal)
            )
        assert connection.sent == []


class TestCreateAccount:
    """Test account creation"""

    @pytest.mark.asyncio
    async def test_rent_exempt_by_default(self, client, connection, payer):
        output = await client.system().create_account(space=100)

        new_account = output["new_account"]
        assert output["lamports"] == (128 + 100) * 6960
        raw = connection.sent[0]
        assert raw[0] == 2
        message = raw[1 + 128:]
        assert payer.verify(raw[1:65], message)
        assert new_account.verify(raw[65:129], message)

    @pytest.mark.asyncio
    async def test_explicit_values(self, client, connection):
        new_account = make_signer("new-account")
        owner = make_public_key("owner-program")

        output = await client.system().create_account(
            space=8, lamports=42, new_account=new_account, program=owner
        )

        assert output["new_account"] is new_account
        assert output["lamports"] == 42
        assert connection.calls_to("get_minimum_balance_for_rent_exemption") == []

    @pytest.mark.asyncio
    async def test_dict_input(self, client, connection):
        new_account = make_signer("from-dict")

        output = await client.operations().execute(
            create_account_operation({"space": 8, "lamports": 7, "newAccount": new_account})
        )

        assert output["new_account"] is new_account
        assert output["lamports"] == 7
        assert len(connection.sent) == 1
