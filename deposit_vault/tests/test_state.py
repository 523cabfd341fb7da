"""
Tests for the vault record and derived vault addresses.
"""

import pytest
from solders.pubkey import Pubkey

from deposit_vault.chain import U64_MAX
from deposit_vault.program import (
    DEPOSIT_ACCOUNT_LEN,
    VAULT_SEED,
    DecodeError,
    DepositAccount,
    find_vault_address,
)


class TestDepositAccount:

    def test_record_width(self):
        assert DEPOSIT_ACCOUNT_LEN == 40

    def test_default_is_unclaimed(self):
        record = DepositAccount()
        assert record.owner == Pubkey.default()
        assert record.balance == 0
        assert not record.is_claimed

    def test_pack_layout(self):
        owner = Pubkey.new_unique()
        data = DepositAccount(owner=owner, balance=75_000_000).pack()

        assert len(data) == DEPOSIT_ACCOUNT_LEN
        assert data[:32] == bytes(owner)
        assert data[32:] == (75_000_000).to_bytes(8, "little")

    def test_zeroed_slot_decodes_to_default(self):
        record = DepositAccount.unpack(bytes(DEPOSIT_ACCOUNT_LEN))
        assert record == DepositAccount()

    def test_round_trip(self):
        for owner, balance in [
            (Pubkey.new_unique(), 0),
            (Pubkey.new_unique(), 25_000_000),
            (Pubkey.default(), U64_MAX),
        ]:
            record = DepositAccount(owner=owner, balance=balance)
            assert DepositAccount.unpack(record.pack()) == record

    @pytest.mark.parametrize("length", [0, 32, 39, 41, 80])
    def test_unpack_rejects_wrong_length(self, length):
        with pytest.raises(DecodeError):
            DepositAccount.unpack(bytes(length))

    def test_pack_rejects_out_of_range_balance(self):
        with pytest.raises(ValueError):
            DepositAccount(balance=U64_MAX + 1).pack()
        with pytest.raises(ValueError):
            DepositAccount(balance=-1).pack()


class TestVaultAddress:

    def test_seed(self):
        assert VAULT_SEED == b"deposit"

    def test_deterministic(self, program_id):
        depositor = Pubkey.new_unique()
        assert find_vault_address(program_id, depositor) == find_vault_address(program_id, depositor)

    def test_matches_find_program_address(self, program_id):
        depositor = Pubkey.new_unique()
        expected = Pubkey.find_program_address([b"deposit", bytes(depositor)], program_id)
        assert find_vault_address(program_id, depositor) == expected

    def test_depends_on_depositor_and_program(self, program_id):
        a, b = Pubkey.new_unique(), Pubkey.new_unique()
        other_program = Pubkey.new_unique()

        assert find_vault_address(program_id, a)[0] != find_vault_address(program_id, b)[0]
        assert find_vault_address(program_id, a)[0] != find_vault_address(other_program, a)[0]

    def test_not_on_curve(self, program_id):
        address, _ = find_vault_address(program_id, Pubkey.new_unique())
        assert not address.is_on_curve()
