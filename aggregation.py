"""Encrypted aggregation of provider submissions ahead of threshold sharing.

The ciphertext layer is a capability: anything with ``encrypt``, ``decrypt``,
``add``, ``scalar_mul`` and ``sub`` works. ``PaillierBackend`` wraps ``phe``,
which is additively homomorphic and therefore has no encrypted comparison.
"""
import logging
from dataclasses import dataclass
from typing import Any, List, Protocol, runtime_checkable

from phe import paillier

from errors import ConfigInvalid
from settings import PAILLIER_KEY_BITS, ThresholdPolicy
from shamir import ShareGenerator, SharingRound

logger = logging.getLogger(__name__)

Ciphertext = Any


@runtime_checkable
class CiphertextBackend(Protocol):
    def encrypt(self, plaintext: int) -> Ciphertext: ...

    def decrypt(self, ciphertext: Ciphertext) -> int: ...

    def add(self, a: Ciphertext, b: Ciphertext) -> Ciphertext: ...

    def scalar_mul(self, ciphertext: Ciphertext, scalar: int) -> Ciphertext: ...

    def sub(self, a: Ciphertext, b: Ciphertext) -> Ciphertext: ...


@runtime_checkable
class ComparisonBackend(CiphertextBackend, Protocol):
    def greater_than(self, a: Ciphertext, b: Ciphertext) -> Ciphertext: ...


class PaillierBackend:
    def __init__(self, public_key=None, private_key=None, key_bits: int = PAILLIER_KEY_BITS):
        if public_key is None:
            public_key, private_key = paillier.generate_paillier_keypair(n_length=key_bits)
        self.public_key = public_key
        self.private_key = private_key

    def encrypt(self, plaintext: int) -> paillier.EncryptedNumber:
        return self.public_key.encrypt(int(plaintext))

    def decrypt(self, ciphertext: paillier.EncryptedNumber) -> int:
        if self.private_key is None:
            raise ConfigInvalid("Backend holds only the public key and cannot decrypt.")
        return self.private_key.decrypt(ciphertext)

    def add(self, a, b):
        return a + b

    def scalar_mul(self, ciphertext, scalar: int):
        return ciphertext * int(scalar)

    def sub(self, a, b):
        return a - b


@dataclass
class ProviderSubmission:
    provider_id: str
    quantized_value: int
    weight: int = 1


def homomorphic_aggregate(backend: CiphertextBackend, submissions: List[ProviderSubmission]) -> Ciphertext:
    """Encrypted ``sum(weight_i * value_i)`` over all submissions."""
    aggregate = backend.encrypt(0)
    for submission in submissions:
        ct_value = backend.encrypt(submission.quantized_value)
        aggregate = backend.add(aggregate, backend.scalar_mul(ct_value, submission.weight))
    logger.info("Aggregated %d provider submissions", len(submissions))
    return aggregate


def threshold_compare(backend: ComparisonBackend, ct_aggregate: Ciphertext, threshold: int) -> Ciphertext:
    """Encrypted ``aggregate > threshold``."""
    if not isinstance(backend, ComparisonBackend):
        raise TypeError(f"{type(backend).__name__} does not support encrypted comparison")
    return backend.greater_than(ct_aggregate, backend.encrypt(threshold))


def share_aggregate(
    backend: CiphertextBackend,
    ciphertext: Ciphertext,
    policy: ThresholdPolicy,
    generator: ShareGenerator,
) -> SharingRound:
    """Decrypt the aggregate once and split the plaintext across the decryptor committee.

    The round carries whatever commitment kind ``generator`` publishes.
    """
    plaintext = backend.decrypt(ciphertext)
    if plaintext < 0:
        raise ConfigInvalid("Aggregate decrypted to a negative value and cannot be shared.")
    return generator.split(plaintext, policy)
