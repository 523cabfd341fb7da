"""
Deposit Vault Chain - In-process host engine.

This package provides:
- primitives: identities, signatures, hashing and derived addresses
- accounts: stored accounts and the views programs borrow
- system_program: native-asset transfers and account creation
- bank: signed transactions, invocation and atomic commit
"""

from .primitives import (
    SYSTEM_PROGRAM_ID,
    NATIVE_LOADER_ID,
    U64_MAX,
    hash_data,
    sign,
    verify_sig,
    generate_identity,
    derive_address,
    signer_for_seeds,
)

from .accounts import Account, AccountInfo

from .errors import (
    InstructionError,
    ProgramError,
    TransactionError,
    SignatureFailure,
)

from .bank import (
    Bank,
    InvokeContext,
    Transaction,
    TransactionReceipt,
    build_transaction,
)

__all__ = [
    # Primitives
    "SYSTEM_PROGRAM_ID",
    "NATIVE_LOADER_ID",
    "U64_MAX",
    "hash_data",
    "sign",
    "verify_sig",
    "generate_identity",
    "derive_address",
    "signer_for_seeds",
    # Accounts
    "Account",
    "AccountInfo",
    # Errors
    "InstructionError",
    "ProgramError",
    "TransactionError",
    "SignatureFailure",
    # Bank
    "Bank",
    "InvokeContext",
    "Transaction",
    "TransactionReceipt",
    "build_transaction",
]
