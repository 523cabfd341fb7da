"""
Deposit vault program: instruction dispatch and account validation.

Each invocation runs four stages in order and stops at the first failure:

1. decode the instruction bytes
2. resolve the depositor, vault and system program accounts and
   authenticate the depositor
3. check the vault sits at the depositor's derived address and create it
   on first use
4. claim or authenticate the vault record, apply Deposit or Withdraw and
   write the record back

The host commits nothing from a failed invocation, so no stage undoes work
of an earlier one.
"""

from typing import List, Sequence, Tuple

from solders.pubkey import Pubkey

from ..chain import system_program
from ..chain.accounts import AccountInfo
from ..chain.errors import InstructionError
from ..chain.primitives import SYSTEM_PROGRAM_ID, U64_MAX
from .errors import (
    ArithmeticOverflow,
    DecodeError,
    InsufficientFunds,
    InvalidAccountData,
    InvalidAmount,
    InvalidProgramReference,
    MissingAccount,
    ProvisioningFailed,
    Unauthorized,
)
from .instruction import Deposit, VaultInstruction, Withdraw, decode
from .state import DEPOSIT_ACCOUNT_LEN, VAULT_SEED, DepositAccount


def process_instruction(program_id: Pubkey, accounts: List[AccountInfo],
                        instruction_data: bytes, ctx) -> None:
    """Entry point called by the host for every vault instruction."""
    instruction = decode(instruction_data)
    depositor, vault, system_program_info = resolve_accounts(accounts)
    provision_vault(program_id, depositor, vault, system_program_info, ctx)
    apply_instruction(instruction, depositor, vault, system_program_info, ctx)


# =============================================================================
# Account resolution
# =============================================================================

def resolve_accounts(accounts: Sequence[AccountInfo]) -> Tuple[AccountInfo, AccountInfo, AccountInfo]:
    """
    Pick depositor, vault and system program from the fixed positions.

    Trailing accounts are ignored.
    """
    if len(accounts) < 3:
        raise MissingAccount(f"expected 3 accounts, got {len(accounts)}")
    depositor, vault, system_program_info = accounts[0], accounts[1], accounts[2]

    if not depositor.is_signer:
        raise Unauthorized(f"depositor {depositor.key} did not sign")

    if system_program_info.key != SYSTEM_PROGRAM_ID:
        raise InvalidProgramReference(f"expected system program, got {system_program_info.key}")

    return depositor, vault, system_program_info


# =============================================================================
# Provisioning
# =============================================================================

def provision_vault(program_id: Pubkey, depositor: AccountInfo, vault: AccountInfo,
                    system_program_info: AccountInfo, ctx) -> None:
    """Reject a substituted vault and create the real one if it is unfunded."""
    expected, bump = ctx.find_program_address([VAULT_SEED, bytes(depositor.key)])
    if vault.key != expected:
        raise InvalidAccountData(f"vault {vault.key} is not the derived address {expected}")

    if vault.lamports != 0:
        return

    create = system_program.create_account(
        depositor.key,
        vault.key,
        ctx.minimum_balance(DEPOSIT_ACCOUNT_LEN),
        DEPOSIT_ACCOUNT_LEN,
        program_id,
    )
    signer_seeds = [VAULT_SEED, bytes(depositor.key), bytes([bump])]
    try:
        ctx.invoke_signed(create, [depositor, vault, system_program_info], [signer_seeds])
    except InstructionError as e:
        raise ProvisioningFailed(f"{type(e).__name__}: {e}") from e


# =============================================================================
# Ledger state machine
# =============================================================================

def apply_instruction(instruction: VaultInstruction, depositor: AccountInfo, vault: AccountInfo,
                      system_program_info: AccountInfo, ctx) -> DepositAccount:
    record = DepositAccount.unpack(vault.data)

    if not record.is_claimed:
        record.owner = depositor.key
    elif record.owner != depositor.key:
        raise Unauthorized(f"vault is owned by {record.owner}, not {depositor.key}")

    if isinstance(instruction, Deposit):
        _deposit(record, instruction.amount, depositor, vault, system_program_info, ctx)
    elif isinstance(instruction, Withdraw):
        _withdraw(record, instruction.amount, depositor, vault, ctx)
    else:
        raise DecodeError(f"unsupported instruction {instruction!r}")

    vault.data[:] = record.pack()
    return record


def _deposit(record: DepositAccount, amount: int, depositor: AccountInfo, vault: AccountInfo,
             system_program_info: AccountInfo, ctx) -> None:
    if amount == 0:
        raise InvalidAmount("deposit amount must be positive")
    if record.balance + amount > U64_MAX:
        raise ArithmeticOverflow(f"balance {record.balance} + {amount} exceeds u64")

    ctx.invoke(
        system_program.transfer(depositor.key, vault.key, amount),
        [depositor, vault, system_program_info],
    )
    record.balance += amount
    ctx.log(f"Deposit successful: {amount} lamports")


def _withdraw(record: DepositAccount, amount: int, depositor: AccountInfo,
              vault: AccountInfo, ctx) -> None:
    if amount > record.balance:
        raise InsufficientFunds(f"balance {record.balance} is less than {amount}")

    # The program owns the vault, so it moves lamports directly.
    vault.lamports -= amount
    depositor.lamports += amount
    record.balance -= amount
    ctx.log(f"Withdrawal successful: {amount} lamports")
