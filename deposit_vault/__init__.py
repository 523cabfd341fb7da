"""
Deposit Vault - a per-depositor lamport vault program and the host it runs on.

Subpackages:
- chain: in-process host engine (accounts, system program, bank)
- program: the vault program itself
- harness: scenario scripts for driving the program through a bank
"""

__version__ = "0.1.0"
