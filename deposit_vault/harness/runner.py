"""
Scenario runner for the deposit vault.

Executes parsed scenario statements against a Bank with the vault program
deployed, one transaction per action.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from ..chain import Account, Bank, TransactionError, build_transaction, generate_identity
from ..chain.primitives import SYSTEM_PROGRAM_ID
from ..config import ClusterConfig
from ..program import (
    DEPOSIT_ACCOUNT_LEN,
    DecodeError,
    DepositAccount,
    deposit,
    find_vault_address,
    process_instruction,
    withdraw,
)
from .parser import OK, AccountStmt, ActionStmt, ExpectStmt, Scenario, ScenarioError, VaultStmt


def create_bank(config: Optional[ClusterConfig] = None) -> Bank:
    """A bank with the vault program deployed at the configured id."""
    bank = Bank(config)
    bank.add_program(bank.config.program_id, process_instruction)
    return bank


@dataclass
class StepResult:
    line: int
    description: str
    passed: bool
    detail: str = ""
    logs: List[str] = field(default_factory=list)


@dataclass
class ScenarioReport:
    steps: List[StepResult] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(step.passed for step in self.steps)

    @property
    def failures(self) -> List[StepResult]:
        return [step for step in self.steps if not step.passed]


class ScenarioRunner:
    """
    Runs scenarios against one bank.

    Named identities persist across runs on the same runner, so several
    scenarios can build on each other.
    """

    def __init__(self, bank: Bank, program_id: Optional[Pubkey] = None):
        self.bank = bank
        self.program_id = program_id or bank.config.program_id
        self.identities: Dict[str, Keypair] = {}
        self.nonce = 0

    def pubkey(self, name: str) -> Pubkey:
        if name not in self.identities:
            raise ScenarioError(f"unknown account '{name}'")
        return self.identities[name].pubkey()

    def vault_address(self, name: str) -> Pubkey:
        return find_vault_address(self.program_id, self.pubkey(name))[0]

    def run(self, scenario: Scenario) -> ScenarioReport:
        report = ScenarioReport()
        for stmt in scenario.statements:
            if isinstance(stmt, AccountStmt):
                result = self._account(stmt)
            elif isinstance(stmt, VaultStmt):
                result = self._vault(stmt)
            elif isinstance(stmt, ActionStmt):
                result = self._action(stmt)
            elif isinstance(stmt, ExpectStmt):
                result = self._expect(stmt)
            else:
                raise ScenarioError(f"unsupported statement {stmt!r}")
            report.steps.append(result)
        return report

    # -------------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------------

    def _account(self, stmt: AccountStmt) -> StepResult:
        if stmt.name in self.identities:
            raise ScenarioError(f"account '{stmt.name}' already exists", stmt.line)
        keypair = generate_identity()
        self.identities[stmt.name] = keypair
        self.bank.airdrop(keypair.pubkey(), stmt.lamports)
        return StepResult(
            line=stmt.line,
            description=f"account {stmt.name} = {keypair.pubkey()}",
            passed=True,
        )

    def _vault(self, stmt: VaultStmt) -> StepResult:
        owner = stmt.owner or stmt.name
        record = DepositAccount(owner=self.pubkey(owner), balance=stmt.balance)
        address = self.vault_address(stmt.name)
        self.bank.set_account(address, Account(
            lamports=self.bank.minimum_balance(DEPOSIT_ACCOUNT_LEN) + stmt.balance,
            data=record.pack(),
            owner=self.program_id,
        ))
        return StepResult(
            line=stmt.line,
            description=f"vault {stmt.name} = {address} (owner {owner}, balance {stmt.balance})",
            passed=True,
        )

    def _action(self, stmt: ActionStmt) -> StepResult:
        keypair = self.identities[stmt.actor]
        build = deposit if stmt.action == "deposit" else withdraw
        ix = build(
            self.program_id,
            keypair.pubkey(),
            stmt.amount,
            vault=self.vault_address(stmt.vault_of) if stmt.vault_of else None,
            system_program_id=self.pubkey(stmt.authority) if stmt.authority else SYSTEM_PROGRAM_ID,
            signed=stmt.signed,
        )
        signers = [keypair] if stmt.signed else []
        tx = build_transaction([ix], signers, nonce=self.nonce)
        self.nonce += 1

        try:
            receipt = self.bank.process_transaction(tx)
            outcome, logs = OK, receipt.logs
        except TransactionError as e:
            outcome, logs = e.error_name, e.logs

        passed = outcome == stmt.expected
        detail = outcome if passed else f"expected {stmt.expected}, got {outcome}"
        return StepResult(
            line=stmt.line,
            description=stmt.describe(),
            passed=passed,
            detail=detail,
            logs=logs,
        )

    def _expect(self, stmt: ExpectStmt) -> StepResult:
        description = f"expect {stmt.quantity} {stmt.name} == {stmt.expected}"

        if stmt.quantity == "lamports":
            actual = self.bank.get_balance(self.pubkey(stmt.name))
        elif stmt.quantity == "vault_lamports":
            actual = self.bank.get_balance(self.vault_address(stmt.name))
        else:
            record = self._record(stmt.name)
            if record is None:
                return StepResult(stmt.line, description, False, f"vault of {stmt.name} holds no record")
            if stmt.quantity == "balance":
                actual = record.balance
            else:
                actual = self._name_of(record.owner)

        passed = actual == stmt.expected
        detail = str(actual) if passed else f"expected {stmt.expected}, got {actual}"
        return StepResult(stmt.line, description, passed, detail)

    def _record(self, name: str) -> Optional[DepositAccount]:
        account = self.bank.get_account(self.vault_address(name))
        if account is None:
            return None
        try:
            return DepositAccount.unpack(account.data)
        except DecodeError:
            return None

    def _name_of(self, pubkey: Pubkey) -> str:
        for name, keypair in self.identities.items():
            if keypair.pubkey() == pubkey:
                return name
        return str(pubkey)
