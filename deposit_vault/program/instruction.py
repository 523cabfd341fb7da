"""
Vault instructions: wire codec and client-side builders.

Wire format: Borsh enum, a u8 variant (0 = Deposit, 1 = Withdraw) followed
by a little-endian u64 amount. Nothing else is accepted.
"""

from dataclasses import dataclass
from typing import Optional, Union

from borsh_construct import CStruct, Enum, U64
from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from ..chain.primitives import SYSTEM_PROGRAM_ID, U64_MAX
from .errors import DecodeError
from .state import find_vault_address


DEPOSIT = 0
WITHDRAW = 1

InstructionLayout = Enum(
    "Deposit" / CStruct("amount" / U64),
    "Withdraw" / CStruct("amount" / U64),
    enum_name="VaultInstruction",
)
INSTRUCTION_LEN = 1 + U64.sizeof()


@dataclass(frozen=True)
class Deposit:
    """Move lamports from the depositor into its vault."""
    amount: int


@dataclass(frozen=True)
class Withdraw:
    """Move lamports from the vault back to the depositor."""
    amount: int


VaultInstruction = Union[Deposit, Withdraw]


def decode(data: bytes) -> VaultInstruction:
    """Decode instruction bytes, raising DecodeError on anything malformed."""
    data = bytes(data)
    if len(data) != INSTRUCTION_LEN:
        raise DecodeError(f"instruction must be {INSTRUCTION_LEN} bytes, got {len(data)}")

    variant = data[0]
    if variant not in (DEPOSIT, WITHDRAW):
        raise DecodeError(f"unknown instruction variant {variant}")

    parsed = InstructionLayout.parse(data)
    if variant == DEPOSIT:
        return Deposit(amount=parsed.amount)
    return Withdraw(amount=parsed.amount)


def encode(instruction: VaultInstruction) -> bytes:
    if isinstance(instruction, Deposit):
        variant = InstructionLayout.enum.Deposit
    elif isinstance(instruction, Withdraw):
        variant = InstructionLayout.enum.Withdraw
    else:
        raise TypeError(f"not a vault instruction: {instruction!r}")

    if not 0 <= instruction.amount <= U64_MAX:
        raise ValueError(f"amount out of u64 range: {instruction.amount}")
    return InstructionLayout.build(variant(amount=instruction.amount))


# =============================================================================
# Builders
# =============================================================================

def _build(program_id: Pubkey, depositor: Pubkey, instruction: VaultInstruction,
           vault: Optional[Pubkey], system_program_id: Pubkey,
           signed: bool) -> Instruction:
    if vault is None:
        vault, _ = find_vault_address(program_id, depositor)
    return Instruction(
        program_id,
        encode(instruction),
        [
            AccountMeta(depositor, signed, True),
            AccountMeta(vault, False, True),
            AccountMeta(system_program_id, False, False),
        ],
    )


def deposit(program_id: Pubkey, depositor: Pubkey, amount: int,
            vault: Optional[Pubkey] = None,
            system_program_id: Pubkey = SYSTEM_PROGRAM_ID,
            signed: bool = True) -> Instruction:
    """
    Build a Deposit instruction.

    vault defaults to the depositor's derived vault. The overrides exist to
    script rejected calls.
    """
    return _build(program_id, depositor, Deposit(amount), vault, system_program_id, signed)


def withdraw(program_id: Pubkey, depositor: Pubkey, amount: int,
             vault: Optional[Pubkey] = None,
             system_program_id: Pubkey = SYSTEM_PROGRAM_ID,
             signed: bool = True) -> Instruction:
    """Build a Withdraw instruction; see deposit for the overrides."""
    return _build(program_id, depositor, Withdraw(amount), vault, system_program_id, signed)
