"""
The system program: native-asset transfers and account creation.

Only the two instructions the vault relies on are implemented. Instruction
data starts with a little-endian u32 tag, as the host encodes it.
"""

from typing import List

from borsh_construct import CStruct, U8, U32, U64
from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from .accounts import AccountInfo
from .errors import (
    AccountAlreadyInUse,
    ExternalAccountLamportSpend,
    InsufficientLamports,
    InvalidArgument,
    InvalidSystemInstruction,
    MissingRequiredSignature,
    NotEnoughAccountKeys,
)
from .primitives import SYSTEM_PROGRAM_ID


# =============================================================================
# Parameters
# =============================================================================

CREATE_ACCOUNT = 0
TRANSFER = 2

MAX_PERMITTED_DATA_LENGTH = 10 * 1024 * 1024  # bytes

TagLayout = CStruct("tag" / U32)
CreateAccountLayout = CStruct(
    "tag" / U32,
    "lamports" / U64,
    "space" / U64,
    "owner" / U8[32],
)
TransferLayout = CStruct(
    "tag" / U32,
    "lamports" / U64,
)


# =============================================================================
# Instruction builders
# =============================================================================

def create_account(from_pubkey: Pubkey, to_pubkey: Pubkey, lamports: int,
                   space: int, owner: Pubkey) -> Instruction:
    """Create a new account at to_pubkey funded by from_pubkey."""
    data = CreateAccountLayout.build({
        "tag": CREATE_ACCOUNT,
        "lamports": lamports,
        "space": space,
        "owner": list(bytes(owner)),
    })
    return Instruction(
        SYSTEM_PROGRAM_ID,
        data,
        [
            AccountMeta(from_pubkey, True, True),
            AccountMeta(to_pubkey, True, True),
        ],
    )


def transfer(from_pubkey: Pubkey, to_pubkey: Pubkey, lamports: int) -> Instruction:
    """Move lamports between two system-owned accounts."""
    data = TransferLayout.build({"tag": TRANSFER, "lamports": lamports})
    return Instruction(
        SYSTEM_PROGRAM_ID,
        data,
        [
            AccountMeta(from_pubkey, True, True),
            AccountMeta(to_pubkey, False, True),
        ],
    )


# =============================================================================
# Processor
# =============================================================================

def process_instruction(program_id: Pubkey, accounts: List[AccountInfo],
                        instruction_data: bytes, ctx) -> None:
    """Execute one system instruction."""
    data = bytes(instruction_data)
    if len(data) < TagLayout.sizeof():
        raise InvalidSystemInstruction("instruction data too short")
    tag = TagLayout.parse(data[:TagLayout.sizeof()]).tag

    if tag == CREATE_ACCOUNT:
        if len(data) != CreateAccountLayout.sizeof():
            raise InvalidSystemInstruction("malformed create_account")
        params = CreateAccountLayout.parse(data)
        _create_account(
            accounts, params.lamports, params.space, Pubkey(bytes(params.owner)), ctx,
        )
    elif tag == TRANSFER:
        if len(data) != TransferLayout.sizeof():
            raise InvalidSystemInstruction("malformed transfer")
        params = TransferLayout.parse(data)
        _transfer(accounts, params.lamports, ctx)
    else:
        raise InvalidSystemInstruction(f"unsupported system instruction {tag}")


def _two_accounts(accounts: List[AccountInfo]):
    if len(accounts) < 2:
        raise NotEnoughAccountKeys(f"expected 2 accounts, got {len(accounts)}")
    return accounts[0], accounts[1]


def _create_account(accounts: List[AccountInfo], lamports: int, space: int,
                    owner: Pubkey, ctx) -> None:
    funder, new_account = _two_accounts(accounts)

    if not funder.is_signer:
        raise MissingRequiredSignature(f"funding account {funder.key} must sign")
    if not new_account.is_signer:
        raise MissingRequiredSignature(f"new account {new_account.key} must sign")

    if (new_account.lamports > 0 or not new_account.data_is_empty
            or new_account.owner != SYSTEM_PROGRAM_ID):
        raise AccountAlreadyInUse(f"account {new_account.key} already in use")

    if space > MAX_PERMITTED_DATA_LENGTH:
        raise InvalidArgument(f"requested space {space} exceeds {MAX_PERMITTED_DATA_LENGTH}")

    _debit(funder, lamports)
    new_account.lamports += lamports
    new_account.data = bytearray(space)
    new_account.owner = owner
    ctx.log(f"Created account {new_account.key} with {lamports} lamports and {space} bytes")


def _transfer(accounts: List[AccountInfo], lamports: int, ctx) -> None:
    source, destination = _two_accounts(accounts)

    if not source.is_signer:
        raise MissingRequiredSignature(f"transfer source {source.key} must sign")
    if not source.data_is_empty:
        raise InvalidArgument("transfer source must not carry data")

    _debit(source, lamports)
    destination.lamports += lamports


def _debit(account: AccountInfo, lamports: int) -> None:
    if account.owner != SYSTEM_PROGRAM_ID:
        raise ExternalAccountLamportSpend(f"account {account.key} is not system owned")
    if account.lamports < lamports:
        raise InsufficientLamports(
            f"account {account.key} has {account.lamports} lamports, needs {lamports}"
        )
    account.lamports -= lamports
