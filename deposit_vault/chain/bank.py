"""
In-process host engine: account store, signed transactions and invocation.

A Bank executes one transaction at a time. Every transaction runs against
working copies of the accounts it references; the copies replace the stored
accounts only if every instruction succeeds.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Set

from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature

from ..config import ClusterConfig
from . import system_program
from .accounts import Account, AccountInfo
from .errors import (
    CallDepthExceeded,
    ExternalAccountDataModified,
    ExternalAccountLamportSpend,
    InstructionError,
    MissingRequiredSignature,
    ModifiedProgramId,
    NotEnoughAccountKeys,
    PrivilegeEscalation,
    ReadonlyDataModified,
    ReadonlyLamportChange,
    SignatureFailure,
    TransactionError,
    UnbalancedInstruction,
    UnknownProgram,
)
from .primitives import (
    NATIVE_LOADER_ID,
    SYSTEM_PROGRAM_ID,
    derive_address,
    hash_data,
    sign,
    signer_for_seeds,
    verify_sig,
)


MAX_INVOKE_DEPTH = 4

ProcessFn = Callable[[Pubkey, List[AccountInfo], bytes, "InvokeContext"], None]


# =============================================================================
# Transactions
# =============================================================================

def message_bytes(instructions: Sequence[Instruction], nonce: int) -> bytes:
    """Canonical byte string that signers sign."""
    parts = [nonce.to_bytes(8, "little"), len(instructions).to_bytes(2, "little")]
    for ix in instructions:
        parts.append(bytes(ix.program_id))
        parts.append(len(ix.accounts).to_bytes(2, "little"))
        for meta in ix.accounts:
            parts.append(bytes(meta.pubkey))
            parts.append(bytes([int(meta.is_signer), int(meta.is_writable)]))
        data = bytes(ix.data)
        parts.append(len(data).to_bytes(4, "little"))
        parts.append(data)
    return b"".join(parts)


@dataclass
class Transaction:
    instructions: List[Instruction]
    nonce: int = 0
    signatures: Dict[Pubkey, Signature] = field(default_factory=dict)

    def message(self) -> bytes:
        return message_bytes(self.instructions, self.nonce)

    @property
    def tx_id(self) -> str:
        return hash_data(self.message()).hex()[:16]

    def required_signers(self) -> List[Pubkey]:
        """Keys marked as signer by any instruction, in first-seen order."""
        seen: List[Pubkey] = []
        for ix in self.instructions:
            for meta in ix.accounts:
                if meta.is_signer and meta.pubkey not in seen:
                    seen.append(meta.pubkey)
        return seen


def build_transaction(instructions: Sequence[Instruction], signers: Sequence[Keypair],
                      nonce: int = 0) -> Transaction:
    """Assemble a transaction and sign it with every given keypair."""
    tx = Transaction(instructions=list(instructions), nonce=nonce)
    message = tx.message()
    for keypair in signers:
        tx.signatures[keypair.pubkey()] = sign(keypair, message)
    return tx


@dataclass
class TransactionReceipt:
    tx_id: str
    logs: List[str] = field(default_factory=list)


# =============================================================================
# Invocation
# =============================================================================

def _snapshot(infos: Sequence[AccountInfo]) -> Dict[Pubkey, Account]:
    return {info.key: info.account.copy() for info in infos}


def verify_changes(program_id: Pubkey, pre: Dict[Pubkey, Account],
                   infos: Sequence[AccountInfo]) -> None:
    """
    Check what a program did to the accounts it was handed.

    Only the owner may debit an account or change its data, read-only
    accounts must be untouched and lamports are conserved.
    """
    writable: Set[Pubkey] = {info.key for info in infos if info.is_writable}
    post: Dict[Pubkey, Account] = {info.key: info.account for info in infos}

    pre_total = sum(account.lamports for account in pre.values())
    post_total = sum(post[key].lamports for key in pre)
    if pre_total != post_total:
        raise UnbalancedInstruction(f"lamports before {pre_total}, after {post_total}")

    for key, before in pre.items():
        after = post[key]
        lamports_changed = after.lamports != before.lamports
        data_changed = after.data != before.data
        owner_changed = after.owner != before.owner

        if owner_changed:
            if before.owner != program_id or key not in writable:
                raise ModifiedProgramId(f"{program_id} may not reassign {key}")
            if any(before.data):
                raise ModifiedProgramId(f"{key} must be zeroed before reassignment")

        if after.lamports < before.lamports and before.owner != program_id:
            raise ExternalAccountLamportSpend(f"{program_id} debited {key} it does not own")

        if data_changed and before.owner != program_id:
            raise ExternalAccountDataModified(f"{program_id} modified data of {key}")

        if key not in writable:
            if lamports_changed:
                raise ReadonlyLamportChange(f"{key} is read-only")
            if data_changed:
                raise ReadonlyDataModified(f"{key} is read-only")


class InvokeContext:
    """
    Host services available to a program for the duration of one instruction.

    Handed to the program's process function together with its account
    infos. Nothing in it outlives the instruction.
    """

    def __init__(self, bank: 'Bank', program_id: Pubkey, logs: List[str], depth: int = 1,
                 infos: Sequence[AccountInfo] = ()):
        self.bank = bank
        self.program_id = program_id
        self.logs = logs
        self.depth = depth
        self.infos = list(infos)
        self.pre: Dict[Pubkey, Account] = _snapshot(self.infos)

    def log(self, message: str):
        self.logs.append(f"Program log: {message}")

    def minimum_balance(self, data_len: int) -> int:
        return self.bank.minimum_balance(data_len)

    def find_program_address(self, seeds: Sequence[bytes]):
        """Derive an address of the running program; returns (address, bump)."""
        return derive_address(seeds, self.program_id)

    def invoke(self, instruction: Instruction, account_infos: Sequence[AccountInfo]) -> None:
        self.invoke_signed(instruction, account_infos, [])

    def invoke_signed(self, instruction: Instruction, account_infos: Sequence[AccountInfo],
                      signer_seeds: Sequence[Sequence[bytes]]) -> None:
        """
        Call another program from the running one.

        Signer privilege comes from the caller's own infos or from seeds
        that derive an address of the calling program.
        """
        if self.depth >= MAX_INVOKE_DEPTH:
            raise CallDepthExceeded(f"invoke depth {self.depth + 1} exceeds {MAX_INVOKE_DEPTH}")

        pda_signers = set()
        for seeds in signer_seeds:
            try:
                pda_signers.add(signer_for_seeds(seeds, self.program_id))
            except ValueError as e:
                raise MissingRequiredSignature(str(e)) from e

        by_key = {info.key: info for info in account_infos}
        callee_infos: List[AccountInfo] = []
        for meta in instruction.accounts:
            caller_info = by_key.get(meta.pubkey)
            if caller_info is None:
                raise NotEnoughAccountKeys(f"account {meta.pubkey} not passed to invoke")
            if meta.is_signer and not (caller_info.is_signer or meta.pubkey in pda_signers):
                raise MissingRequiredSignature(f"{meta.pubkey} did not sign")
            if meta.is_writable and not caller_info.is_writable:
                raise PrivilegeEscalation(f"{meta.pubkey} escalated to writable")
            callee_infos.append(caller_info.with_privileges(meta.is_signer, meta.is_writable))

        # Whatever the caller changed so far must already be legal.
        verify_changes(self.program_id, self.pre, self.infos)
        self._refresh(self.infos)

        self.bank.execute(
            instruction.program_id, callee_infos, bytes(instruction.data),
            self.logs, depth=self.depth + 1,
        )

        # The callee's changes are already verified; judge the caller only
        # on what it does from here on.
        self._refresh(callee_infos)

    def _refresh(self, infos: Sequence[AccountInfo]):
        for info in infos:
            if info.key in self.pre:
                self.pre[info.key] = info.account.copy()


# =============================================================================
# Bank
# =============================================================================

class Bank:
    """
    The account store and transaction processor.

    Records:
    - accounts: every stored account by address
    - programs: process functions by program id
    - history: receipts of committed transactions
    """

    def __init__(self, config: Optional[ClusterConfig] = None):
        self.config = config or ClusterConfig()
        self.accounts: Dict[Pubkey, Account] = {}
        self.programs: Dict[Pubkey, ProcessFn] = {}
        self.history: List[TransactionReceipt] = []
        self.add_program(SYSTEM_PROGRAM_ID, system_program.process_instruction)

    # -------------------------------------------------------------------------
    # Account store
    # -------------------------------------------------------------------------

    def add_program(self, program_id: Pubkey, process: ProcessFn):
        """Register a program and its executable account."""
        self.programs[program_id] = process
        self.accounts[program_id] = Account(lamports=1, owner=NATIVE_LOADER_ID, executable=True)

    def set_account(self, pubkey: Pubkey, account: Account):
        self.accounts[pubkey] = account.copy()

    def get_account(self, pubkey: Pubkey) -> Optional[Account]:
        account = self.accounts.get(pubkey)
        return account.copy() if account is not None else None

    def get_balance(self, pubkey: Pubkey) -> int:
        account = self.accounts.get(pubkey)
        return account.lamports if account is not None else 0

    def airdrop(self, pubkey: Pubkey, lamports: int):
        """Mint lamports into an account, creating it if needed."""
        account = self.accounts.setdefault(pubkey, Account())
        account.lamports += lamports

    def minimum_balance(self, data_len: int) -> int:
        return self.config.rent.minimum_balance(data_len)

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def execute(self, program_id: Pubkey, infos: List[AccountInfo], data: bytes,
                logs: List[str], depth: int = 1) -> None:
        """Run one program over infos and verify what it changed."""
        process = self.programs.get(program_id)
        if process is None:
            raise UnknownProgram(f"program {program_id} is not deployed")

        logs.append(f"Program {program_id} invoke [{depth}]")
        ctx = InvokeContext(self, program_id, logs, depth, infos)
        try:
            process(program_id, infos, data, ctx)
            verify_changes(program_id, ctx.pre, ctx.infos)
        except InstructionError as e:
            logs.append(f"Program {program_id} failed: {type(e).__name__}: {e}")
            raise
        logs.append(f"Program {program_id} success")

    def _verify_signatures(self, tx: Transaction):
        message = tx.message()
        for signer in tx.required_signers():
            signature = tx.signatures.get(signer)
            if signature is None:
                raise SignatureFailure(f"missing signature for {signer}")
            if not verify_sig(signer, message, signature):
                raise SignatureFailure(f"invalid signature for {signer}")

    def process_transaction(self, tx: Transaction) -> TransactionReceipt:
        """
        Execute a transaction atomically.

        Raises SignatureFailure before anything runs, or TransactionError
        naming the failing instruction; either way the store is unchanged.
        """
        self._verify_signatures(tx)

        working: Dict[Pubkey, Account] = {}
        logs: List[str] = []

        for index, ix in enumerate(tx.instructions):
            infos = []
            for meta in ix.accounts:
                if meta.pubkey not in working:
                    stored = self.accounts.get(meta.pubkey)
                    working[meta.pubkey] = stored.copy() if stored is not None else Account()
                infos.append(AccountInfo(
                    meta.pubkey, working[meta.pubkey],
                    is_signer=meta.is_signer, is_writable=meta.is_writable,
                ))
            try:
                self.execute(ix.program_id, infos, bytes(ix.data), logs)
            except InstructionError as e:
                raise TransactionError(index, e, logs) from e

        for pubkey, account in working.items():
            if account.lamports == 0 and not account.executable:
                self.accounts.pop(pubkey, None)
            else:
                self.accounts[pubkey] = account

        receipt = TransactionReceipt(tx_id=tx.tx_id, logs=logs)
        self.history.append(receipt)
        return receipt
