"""
Errors raised by the deposit vault program.

Each carries a stable numeric code, the way custom program errors are
reported by the host.
"""

from ..chain.errors import ProgramError


class VaultError(ProgramError):
    """Base class for errors raised by the deposit vault program."""
    code = -1


class DecodeError(VaultError):
    """Malformed instruction or record bytes."""
    code = 0


class MissingAccount(VaultError):
    """Fewer accounts supplied than the instruction needs."""
    code = 1


class Unauthorized(VaultError):
    """Depositor did not sign, or is not the vault's owner."""
    code = 2


class InvalidProgramReference(VaultError):
    """Transfer authority account is not the system program."""
    code = 3


class InvalidAccountData(VaultError):
    """Vault account is not at the address derived from the depositor."""
    code = 4


class InvalidAmount(VaultError):
    code = 5


class InsufficientFunds(VaultError):
    code = 6


class ProvisioningFailed(VaultError):
    """The host could not create and fund the vault account."""
    code = 7


class ArithmeticOverflow(VaultError):
    code = 8


VAULT_ERRORS = {
    cls.__name__: cls
    for cls in (
        DecodeError,
        MissingAccount,
        Unauthorized,
        InvalidProgramReference,
        InvalidAccountData,
        InvalidAmount,
        InsufficientFunds,
        ProvisioningFailed,
        ArithmeticOverflow,
    )
}
