"""
Core host primitives: identities, signatures, hashing and derived addresses.
"""

import hashlib
from typing import List, Sequence, Tuple

from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature


# =============================================================================
# Well-known identities
# =============================================================================

SYSTEM_PROGRAM_ID = Pubkey.from_string("11111111111111111111111111111111")
NATIVE_LOADER_ID = Pubkey.from_string("NativeLoader1111111111111111111111111111111")

U64_MAX = 2**64 - 1

MAX_SEEDS = 16
MAX_SEED_LEN = 32


# =============================================================================
# Cryptographic Primitives
# =============================================================================

def hash_data(*parts: bytes) -> bytes:
    """Compute deterministic sha256 digest of the concatenated parts."""
    digest = hashlib.sha256()
    for part in parts:
        digest.update(part)
    return digest.digest()


def sign(keypair: Keypair, message: bytes) -> Signature:
    """Sign a message with an ed25519 keypair."""
    return keypair.sign_message(message)


def verify_sig(pubkey: Pubkey, message: bytes, signature: Signature) -> bool:
    """Check that signature was produced by pubkey over message."""
    return signature.verify(pubkey, message)


def generate_identity() -> Keypair:
    """Generate a fresh random keypair."""
    return Keypair()


# =============================================================================
# Derived Addresses
# =============================================================================

def _check_seeds(seeds: Sequence[bytes]):
    if len(seeds) > MAX_SEEDS:
        raise ValueError(f"Too many seeds: {len(seeds)} > {MAX_SEEDS}")
    for seed in seeds:
        if len(seed) > MAX_SEED_LEN:
            raise ValueError(f"Seed longer than {MAX_SEED_LEN} bytes: {seed!r}")


def derive_address(seeds: Sequence[bytes], program_id: Pubkey) -> Tuple[Pubkey, int]:
    """
    Find the program derived address for seeds under program_id.

    Returns the address together with its bump seed. The bump is the proof
    that lets program_id sign for the address in a cross-program call.
    """
    seeds = [bytes(s) for s in seeds]
    # Room is left for the bump seed.
    _check_seeds(seeds + [b"\x00"])
    return Pubkey.find_program_address(seeds, program_id)


def signer_for_seeds(seeds: Sequence[bytes], program_id: Pubkey) -> Pubkey:
    """
    Resolve signer seeds (ending with the bump) to the address they sign for.

    Only the canonical bump is accepted.
    """
    seeds: List[bytes] = [bytes(s) for s in seeds]
    _check_seeds(seeds)
    if not seeds or len(seeds[-1]) != 1:
        raise ValueError("Signer seeds must end with a one-byte bump seed")
    address, bump = Pubkey.find_program_address(seeds[:-1], program_id)
    if bytes([bump]) != seeds[-1]:
        raise ValueError(f"Bump {seeds[-1][0]} is not the canonical bump {bump}")
    return address
