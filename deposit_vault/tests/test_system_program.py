"""
Tests for the system program's transfer and create_account.
"""

import pytest
from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from deposit_vault.chain import (
    SYSTEM_PROGRAM_ID,
    Account,
    Bank,
    TransactionError,
    build_transaction,
    generate_identity,
)
from deposit_vault.chain import system_program


@pytest.fixture
def host():
    return Bank()


@pytest.fixture
def payer(host):
    keypair = generate_identity()
    host.airdrop(keypair.pubkey(), 10_000)
    return keypair


def failure(host, instructions, signers):
    with pytest.raises(TransactionError) as exc:
        host.process_transaction(build_transaction(instructions, signers))
    return exc.value


class TestTransfer:

    def test_transfer(self, host, payer):
        to = Pubkey.new_unique()
        host.process_transaction(build_transaction(
            [system_program.transfer(payer.pubkey(), to, 2_500)], [payer],
        ))

        assert host.get_balance(payer.pubkey()) == 7_500
        assert host.get_balance(to) == 2_500

    def test_transfer_layout(self):
        ix = system_program.transfer(Pubkey.new_unique(), Pubkey.new_unique(), 7)
        assert bytes(ix.data) == (2).to_bytes(4, "little") + (7).to_bytes(8, "little")
        assert ix.program_id == SYSTEM_PROGRAM_ID

    def test_unsigned_source(self, host, payer):
        ix = Instruction(
            SYSTEM_PROGRAM_ID,
            bytes(system_program.transfer(payer.pubkey(), Pubkey.new_unique(), 1).data),
            [AccountMeta(payer.pubkey(), False, True), AccountMeta(Pubkey.new_unique(), False, True)],
        )
        assert failure(host, [ix], []).error_name == "MissingRequiredSignature"

    def test_insufficient_lamports(self, host, payer):
        ix = system_program.transfer(payer.pubkey(), Pubkey.new_unique(), 10_001)
        assert failure(host, [ix], [payer]).error_name == "InsufficientLamports"
        assert host.get_balance(payer.pubkey()) == 10_000

    def test_source_with_data(self, host):
        keypair = generate_identity()
        host.set_account(keypair.pubkey(), Account(lamports=500, data=b"\x01"))

        ix = system_program.transfer(keypair.pubkey(), Pubkey.new_unique(), 1)
        assert failure(host, [ix], [keypair]).error_name == "InvalidArgument"

    def test_source_not_system_owned(self, host):
        keypair = generate_identity()
        host.set_account(keypair.pubkey(), Account(lamports=500, owner=Pubkey.new_unique()))

        ix = system_program.transfer(keypair.pubkey(), Pubkey.new_unique(), 1)
        assert failure(host, [ix], [keypair]).error_name == "ExternalAccountLamportSpend"


class TestCreateAccount:

    def test_create_account(self, host, payer):
        new = generate_identity()
        owner = Pubkey.new_unique()

        receipt = host.process_transaction(build_transaction(
            [system_program.create_account(payer.pubkey(), new.pubkey(), 1_000, 40, owner)],
            [payer, new],
        ))

        account = host.get_account(new.pubkey())
        assert account.lamports == 1_000
        assert account.owner == owner
        assert bytes(account.data) == bytes(40)
        assert host.get_balance(payer.pubkey()) == 9_000
        assert any("Created account" in line for line in receipt.logs)

    def test_already_in_use(self, host, payer):
        new = generate_identity()
        host.airdrop(new.pubkey(), 1)

        ix = system_program.create_account(payer.pubkey(), new.pubkey(), 1_000, 40, Pubkey.new_unique())
        assert failure(host, [ix], [payer, new]).error_name == "AccountAlreadyInUse"

    def test_space_limit(self, host, payer):
        new = generate_identity()
        ix = system_program.create_account(
            payer.pubkey(), new.pubkey(), 1_000,
            system_program.MAX_PERMITTED_DATA_LENGTH + 1, Pubkey.new_unique(),
        )
        assert failure(host, [ix], [payer, new]).error_name == "InvalidArgument"

    def test_not_enough_accounts(self, host, payer):
        ix = system_program.create_account(payer.pubkey(), Pubkey.new_unique(), 1, 0, Pubkey.new_unique())
        ix = Instruction(SYSTEM_PROGRAM_ID, bytes(ix.data), [AccountMeta(payer.pubkey(), True, True)])
        assert failure(host, [ix], [payer]).error_name == "NotEnoughAccountKeys"


class TestMalformed:

    @pytest.mark.parametrize("data", [
        b"",
        b"\x00\x00",
        (0).to_bytes(4, "little") + bytes(10),
        (2).to_bytes(4, "little") + bytes(9),
        (9).to_bytes(4, "little") + bytes(8),
    ])
    def test_rejected(self, host, payer, data):
        ix = Instruction(SYSTEM_PROGRAM_ID, data, [
            AccountMeta(payer.pubkey(), True, True),
            AccountMeta(Pubkey.new_unique(), False, True),
        ])
        assert failure(host, [ix], [payer]).error_name == "InvalidSystemInstruction"
