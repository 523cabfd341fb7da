"""
Storage slots: stored accounts and the borrowed views programs work on.
"""

from dataclasses import dataclass, field

from solders.pubkey import Pubkey

from .primitives import SYSTEM_PROGRAM_ID


@dataclass
class Account:
    """
    A stored account.

    An address that was never written reads as the default account: no
    lamports, no data, owned by the system program.
    """
    lamports: int = 0
    data: bytearray = field(default_factory=bytearray)
    owner: Pubkey = SYSTEM_PROGRAM_ID
    executable: bool = False

    def __post_init__(self):
        self.data = bytearray(self.data)

    def copy(self) -> 'Account':
        return Account(
            lamports=self.lamports,
            data=bytearray(self.data),
            owner=self.owner,
            executable=self.executable,
        )


class AccountInfo:
    """
    A program's view of one account for the duration of an instruction.

    Infos for the same key share the underlying Account, so a change made
    through one (or by a cross-program call) is seen by all of them. The
    signer and writable flags belong to the view, not the account.
    """

    def __init__(self, key: Pubkey, account: Account,
                 is_signer: bool = False, is_writable: bool = False):
        self.key = key
        self.account = account
        self.is_signer = is_signer
        self.is_writable = is_writable

    @property
    def lamports(self) -> int:
        return self.account.lamports

    @lamports.setter
    def lamports(self, value: int):
        self.account.lamports = value

    @property
    def data(self) -> bytearray:
        return self.account.data

    @data.setter
    def data(self, value):
        self.account.data = bytearray(value)

    @property
    def owner(self) -> Pubkey:
        return self.account.owner

    @owner.setter
    def owner(self, value: Pubkey):
        self.account.owner = value

    @property
    def executable(self) -> bool:
        return self.account.executable

    @property
    def data_is_empty(self) -> bool:
        return len(self.account.data) == 0

    def with_privileges(self, is_signer: bool, is_writable: bool) -> 'AccountInfo':
        """Return another view of the same account with different flags."""
        return AccountInfo(self.key, self.account, is_signer=is_signer, is_writable=is_writable)

    def __repr__(self):
        flags = "".join([
            "s" if self.is_signer else "-",
            "w" if self.is_writable else "-",
        ])
        return f"AccountInfo({self.key}, {flags}, lamports={self.lamports}, data_len={len(self.data)})"
