"""
The vault record stored in each derived vault account.

Layout: 32-byte owner followed by a little-endian u64 balance, 40 bytes,
no padding and no version tag. An all-zero owner means unclaimed.
"""

from dataclasses import dataclass, field
from typing import Tuple

from borsh_construct import CStruct, U8, U64
from solders.pubkey import Pubkey

from ..chain.primitives import U64_MAX, derive_address
from .errors import DecodeError


VAULT_SEED = b"deposit"

DepositAccountLayout = CStruct(
    "owner" / U8[32],
    "balance" / U64,
)
DEPOSIT_ACCOUNT_LEN = DepositAccountLayout.sizeof()


def find_vault_address(program_id: Pubkey, depositor: Pubkey) -> Tuple[Pubkey, int]:
    """Derived vault address of depositor and its bump seed."""
    return derive_address([VAULT_SEED, bytes(depositor)], program_id)


@dataclass
class DepositAccount:
    owner: Pubkey = field(default_factory=Pubkey.default)
    balance: int = 0

    @property
    def is_claimed(self) -> bool:
        return self.owner != Pubkey.default()

    def pack(self) -> bytes:
        if not 0 <= self.balance <= U64_MAX:
            raise ValueError(f"balance out of u64 range: {self.balance}")
        return DepositAccountLayout.build({
            "owner": list(bytes(self.owner)),
            "balance": self.balance,
        })

    @classmethod
    def unpack(cls, data: bytes) -> 'DepositAccount':
        """Decode a record; any length other than the record width is rejected."""
        data = bytes(data)
        if len(data) != DEPOSIT_ACCOUNT_LEN:
            raise DecodeError(f"vault record must be {DEPOSIT_ACCOUNT_LEN} bytes, got {len(data)}")
        parsed = DepositAccountLayout.parse(data)
        return cls(owner=Pubkey(bytes(parsed.owner)), balance=parsed.balance)
