"""
Parser for vault scenario scripts using Lark.

Uses the grammar in scenario.lark and Lark's Earley parser to produce the
statement dataclasses below, then checks what the grammar can't express.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Set, Union

from lark import Lark, Transformer, v_args

from ..chain.errors import HOST_ERRORS
from ..chain.primitives import U64_MAX
from ..program.errors import VAULT_ERRORS


GRAMMAR_PATH = Path(__file__).parent / "scenario.lark"

OK = "ok"
KNOWN_OUTCOMES = {OK, "SignatureFailure"} | set(VAULT_ERRORS) | set(HOST_ERRORS)


class ScenarioError(ValueError):
    """A scenario that parses but makes no sense."""

    def __init__(self, message: str, line: int = 0):
        self.line = line
        loc = f"line {line}: " if line else ""
        super().__init__(f"{loc}{message}")


# =============================================================================
# Statements
# =============================================================================

@dataclass
class AccountStmt:
    """Create and fund a named identity."""
    line: int
    name: str
    lamports: int


@dataclass
class VaultStmt:
    """Preload the derived vault of name with a record."""
    line: int
    name: str
    owner: Optional[str] = None  # defaults to name
    balance: int = 0


@dataclass
class ActionStmt:
    line: int
    action: str  # "deposit" or "withdraw"
    actor: str
    amount: int
    vault_of: Optional[str] = None
    signed: bool = True
    authority: Optional[str] = None
    expected: str = OK

    def describe(self) -> str:
        parts = [self.action, self.actor, str(self.amount)]
        if self.vault_of:
            parts += ["vault", self.vault_of]
        if not self.signed:
            parts.append("unsigned")
        if self.authority:
            parts += ["authority", self.authority]
        return " ".join(parts)


@dataclass
class ExpectStmt:
    line: int
    quantity: str  # balance, lamports, vault_lamports or owner
    name: str
    expected: Union[int, str]


Statement = Union[AccountStmt, VaultStmt, ActionStmt, ExpectStmt]


@dataclass
class Scenario:
    statements: List[Statement] = field(default_factory=list)
    source: Optional[str] = None


# =============================================================================
# Transformer
# =============================================================================

def _amount(token) -> int:
    return int(str(token).replace("_", ""))


@v_args(inline=True)
class ScenarioTransformer(Transformer):
    """Transform Lark parse tree into statements."""

    def start(self, *statements):
        return Scenario(statements=[s for s in statements if s is not None])

    def account_stmt(self, name, amount):
        return AccountStmt(line=name.line, name=str(name), lamports=_amount(amount))

    def vault_stmt(self, name, *options):
        stmt = VaultStmt(line=name.line, name=str(name))
        for key, value in options:
            setattr(stmt, key, value)
        return stmt

    def vault_owner(self, name):
        return ("owner", str(name))

    def vault_balance(self, amount):
        return ("balance", _amount(amount))

    def action_stmt(self, action, actor, amount, *options):
        stmt = ActionStmt(
            line=action.line,
            action=str(action),
            actor=str(actor),
            amount=_amount(amount),
        )
        for key, value in options:
            setattr(stmt, key, value)
        return stmt

    def vault_of(self, name):
        return ("vault_of", str(name))

    def unsigned(self):
        return ("signed", False)

    def authority(self, name):
        return ("authority", str(name))

    def outcome(self, name):
        return ("expected", str(name))

    def expect_amount(self, quantity, name, amount):
        return ExpectStmt(line=name.line, quantity=str(quantity), name=str(name),
                          expected=_amount(amount))

    def expect_owner(self, name, owner):
        return ExpectStmt(line=name.line, quantity="owner", name=str(name), expected=str(owner))


# =============================================================================
# Parsing
# =============================================================================

_parser = None


def get_parser():
    """Get or create the Lark parser instance."""
    global _parser
    if _parser is None:
        with open(GRAMMAR_PATH) as f:
            grammar = f.read()
        _parser = Lark(
            grammar,
            parser='earley',
            propagate_positions=True,
        )
    return _parser


def parse(source: str) -> Scenario:
    """Parse scenario source into a validated Scenario."""
    if not source.endswith("\n"):
        source += "\n"
    tree = get_parser().parse(source)
    scenario = ScenarioTransformer().transform(tree)
    validate_scenario(scenario)
    return scenario


def parse_file(path) -> Scenario:
    """Parse a scenario file."""
    with open(path) as f:
        scenario = parse(f.read())
    scenario.source = str(path)
    return scenario


# =============================================================================
# Validation
# =============================================================================

def validate_scenario(scenario: Scenario) -> None:
    """
    Check names are declared before use and that amounts and outcomes are valid.

    Raises ScenarioError at the first problem.
    """
    declared: Dict[str, int] = {}
    vaults: Set[str] = set()

    def require(name: str, line: int):
        if name not in declared:
            raise ScenarioError(f"unknown account '{name}'", line)

    def in_range(what: str, amount: int, line: int):
        if amount > U64_MAX:
            raise ScenarioError(f"{what} {amount} does not fit in u64", line)

    for stmt in scenario.statements:
        if isinstance(stmt, AccountStmt):
            if stmt.name in declared:
                raise ScenarioError(
                    f"account '{stmt.name}' already declared on line {declared[stmt.name]}", stmt.line
                )
            declared[stmt.name] = stmt.line
            in_range("lamports", stmt.lamports, stmt.line)

        elif isinstance(stmt, VaultStmt):
            require(stmt.name, stmt.line)
            if stmt.owner is not None:
                require(stmt.owner, stmt.line)
            if stmt.name in vaults:
                raise ScenarioError(f"vault of '{stmt.name}' already preloaded", stmt.line)
            vaults.add(stmt.name)
            in_range("balance", stmt.balance, stmt.line)

        elif isinstance(stmt, ActionStmt):
            require(stmt.actor, stmt.line)
            in_range("amount", stmt.amount, stmt.line)
            for name in (stmt.vault_of, stmt.authority):
                if name is not None:
                    require(name, stmt.line)
            if stmt.expected not in KNOWN_OUTCOMES:
                raise ScenarioError(f"unknown outcome '{stmt.expected}'", stmt.line)

        elif isinstance(stmt, ExpectStmt):
            require(stmt.name, stmt.line)
            if stmt.quantity == "owner":
                require(stmt.expected, stmt.line)
