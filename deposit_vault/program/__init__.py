"""
The deposit vault program.

This package provides:
- instruction: Deposit/Withdraw codec and client builders
- state: the vault record and its derived address
- processor: the entry point the host invokes
- errors: the program's error taxonomy
"""

from .errors import (
    VaultError,
    DecodeError,
    MissingAccount,
    Unauthorized,
    InvalidProgramReference,
    InvalidAccountData,
    InvalidAmount,
    InsufficientFunds,
    ProvisioningFailed,
    ArithmeticOverflow,
    VAULT_ERRORS,
)

from .state import (
    VAULT_SEED,
    DEPOSIT_ACCOUNT_LEN,
    DepositAccount,
    find_vault_address,
)

from .instruction import (
    DEPOSIT,
    WITHDRAW,
    INSTRUCTION_LEN,
    Deposit,
    Withdraw,
    VaultInstruction,
    decode,
    encode,
    deposit,
    withdraw,
)

from .processor import (
    process_instruction,
    resolve_accounts,
    provision_vault,
    apply_instruction,
)

__all__ = [
    # Errors
    "VaultError",
    "DecodeError",
    "MissingAccount",
    "Unauthorized",
    "InvalidProgramReference",
    "InvalidAccountData",
    "InvalidAmount",
    "InsufficientFunds",
    "ProvisioningFailed",
    "ArithmeticOverflow",
    "VAULT_ERRORS",
    # State
    "VAULT_SEED",
    "DEPOSIT_ACCOUNT_LEN",
    "DepositAccount",
    "find_vault_address",
    # Instructions
    "DEPOSIT",
    "WITHDRAW",
    "INSTRUCTION_LEN",
    "Deposit",
    "Withdraw",
    "VaultInstruction",
    "decode",
    "encode",
    "deposit",
    "withdraw",
    # Processor
    "process_instruction",
    "resolve_accounts",
    "provision_vault",
    "apply_instruction",
]
