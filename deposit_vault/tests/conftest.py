"""
Pytest configuration for deposit vault tests.

Provides a fresh bank with the vault program deployed, a funded depositor
and helpers to submit transactions and preload vault records.
"""

import itertools

import pytest

from deposit_vault.chain import Account, build_transaction, generate_identity
from deposit_vault.config import ClusterConfig
from deposit_vault.harness import create_bank
from deposit_vault.program import DEPOSIT_ACCOUNT_LEN, DepositAccount, find_vault_address


DEPOSITOR_LAMPORTS = 100_000_000  # 0.1 SOL


@pytest.fixture
def config():
    return ClusterConfig()


@pytest.fixture
def program_id(config):
    return config.program_id


@pytest.fixture
def bank(config):
    return create_bank(config)


@pytest.fixture
def rent(bank):
    """Minimum balance of a vault account."""
    return bank.minimum_balance(DEPOSIT_ACCOUNT_LEN)


@pytest.fixture
def depositor(bank):
    keypair = generate_identity()
    bank.airdrop(keypair.pubkey(), DEPOSITOR_LAMPORTS)
    return keypair


@pytest.fixture
def intruder(bank):
    keypair = generate_identity()
    bank.airdrop(keypair.pubkey(), DEPOSITOR_LAMPORTS)
    return keypair


@pytest.fixture
def send(bank):
    """Sign and submit instructions; returns the receipt."""
    nonces = itertools.count()

    def _send(instructions, *signers):
        tx = build_transaction(instructions, signers, nonce=next(nonces))
        return bank.process_transaction(tx)

    return _send


@pytest.fixture
def preload_vault(bank, program_id, rent):
    """Store a vault record at the derived address of a depositor."""

    def _preload(depositor_pubkey, owner, balance):
        address, _ = find_vault_address(program_id, depositor_pubkey)
        bank.set_account(address, Account(
            lamports=rent + balance,
            data=DepositAccount(owner=owner, balance=balance).pack(),
            owner=program_id,
        ))
        return address

    return _preload

