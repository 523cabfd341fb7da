#!/usr/bin/env python3
"""
Command line tool for the deposit vault.

Usage:
    deposit-vault run scenarios/deposit_and_withdraw.vault [--verbose]
    deposit-vault derive <DEPOSITOR_PUBKEY> [--program-id ID]
    deposit-vault encode deposit 50_000_000
    deposit-vault decode 0080f0fa0200000000
"""

import argparse
import sys
from typing import List, Optional

from lark.exceptions import UnexpectedInput
from solders.pubkey import Pubkey

from .config import ConfigError, load_config
from .harness import ScenarioError, ScenarioRunner, create_bank, parse_file
from .program import DecodeError, Deposit, Withdraw, decode, encode, find_vault_address


def _amount(text: str) -> int:
    try:
        return int(text.replace("_", ""))
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an amount: {text}")


def _pubkey(text: str) -> Pubkey:
    try:
        return Pubkey.from_string(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a valid pubkey: {text}")


def cmd_run(args) -> int:
    config = load_config(args.config)
    total_failures = 0

    for path in args.files:
        try:
            scenario = parse_file(path)
        except FileNotFoundError:
            print(f"{path}: file not found")
            total_failures += 1
            continue
        except UnexpectedInput as e:
            print(f"{path}: parse error at line {e.line}, column {e.column}")
            total_failures += 1
            continue
        except ScenarioError as e:
            print(f"{path}: error: {e}")
            total_failures += 1
            continue

        # Each file gets a fresh chain.
        runner = ScenarioRunner(create_bank(config))
        report = runner.run(scenario)

        print(f"{path}:")
        for step in report.steps:
            status = "PASS" if step.passed else "FAIL"
            detail = f" ({step.detail})" if step.detail else ""
            print(f"  {status} line {step.line}: {step.description}{detail}")
            if args.verbose or not step.passed:
                for log in step.logs:
                    print(f"      {log}")
        total_failures += len(report.failures)

    if total_failures:
        print(f"\n{total_failures} failure(s)")
    else:
        print("\nall scenarios passed")
    return 1 if total_failures else 0


def cmd_derive(args) -> int:
    program_id = args.program_id or load_config(args.config).program_id
    address, bump = find_vault_address(program_id, args.depositor)
    print(f"vault: {address}")
    print(f"bump:  {bump}")
    return 0


def cmd_encode(args) -> int:
    instruction = Deposit(args.amount) if args.kind == "deposit" else Withdraw(args.amount)
    try:
        print(encode(instruction).hex())
    except ValueError as e:
        print(f"error: {e}")
        return 1
    return 0


def cmd_decode(args) -> int:
    try:
        data = bytes.fromhex(args.data)
    except ValueError:
        print(f"error: not hex: {args.data}")
        return 1
    try:
        instruction = decode(data)
    except DecodeError as e:
        print(f"DecodeError: {e}")
        return 1
    print(f"{type(instruction).__name__} amount={instruction.amount}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="deposit-vault",
        description="Run and inspect the deposit vault program",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run scenario scripts")
    run.add_argument("files", nargs="+", help="Scenario files (.vault)")
    run.add_argument("--config", help="Cluster config YAML")
    run.add_argument("--verbose", "-v", action="store_true", help="Print program logs")
    run.set_defaults(func=cmd_run)

    derive = sub.add_parser("derive", help="Print a depositor's vault address")
    derive.add_argument("depositor", type=_pubkey, help="Depositor pubkey")
    derive.add_argument("--program-id", type=_pubkey, help="Program id (defaults to config)")
    derive.add_argument("--config", help="Cluster config YAML")
    derive.set_defaults(func=cmd_derive)

    enc = sub.add_parser("encode", help="Encode an instruction as hex")
    enc.add_argument("kind", choices=["deposit", "withdraw"])
    enc.add_argument("amount", type=_amount)
    enc.set_defaults(func=cmd_encode)

    dec = sub.add_parser("decode", help="Decode instruction hex")
    dec.add_argument("data", help="Instruction bytes as hex")
    dec.set_defaults(func=cmd_decode)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except ConfigError as e:
        print(f"config error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
