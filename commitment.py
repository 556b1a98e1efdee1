"""Public commitments used to check a share against the sharing polynomial.

Two flavours share the ``verify_share(x, value) -> bool`` contract:

- ``CoefficientCommitment`` publishes the raw coefficients. Anyone holding it
  can read the secret, so it only suits tests and trusted audit.
- ``FeldmanCommitment`` publishes ``g^{a_j} mod P`` in a prime-order subgroup
  whose order is the field modulus. It is binding and hides the coefficients
  under the discrete-log assumption.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from Crypto.Hash import SHA256
from Crypto.Util.number import getRandomNBitInteger, long_to_bytes
from sympy import isprime

from errors import ConfigInvalid
from field import PrimeField
from polynomial import Polynomial
from settings import FELDMAN_COFACTOR_BITS

logger = logging.getLogger(__name__)


class Commitment(ABC):
    kind: str = ""

    @abstractmethod
    def verify_share(self, x: int, value: int) -> bool:
        """True iff ``value`` is the committed polynomial evaluated at ``x``."""

    @abstractmethod
    def public_values(self) -> Tuple[int, ...]:
        """Integers published by this commitment, in a fixed order."""

    def fingerprint(self) -> str:
        """SHA-256 over the published values, for audit records."""
        h = SHA256.new(data=self.kind.encode("utf-8"))
        for v in self.public_values():
            encoded = long_to_bytes(v)
            h.update(len(encoded).to_bytes(4, "big"))
            h.update(encoded)
        return h.hexdigest()


class CoefficientCommitment(Commitment):
    kind = "coefficients"

    def __init__(self, coefficients: Iterable[int], field: PrimeField):
        self.coefficients = tuple(coefficients)
        self.field = field

    @classmethod
    def from_polynomial(cls, polynomial: Polynomial) -> 'CoefficientCommitment':
        return cls(polynomial.coefficients, polynomial.field)

    def verify_share(self, x: int, value: int) -> bool:
        field = self.field
        if not field.contains(value):
            return False
        expected = 0
        for coeff in reversed(self.coefficients):
            expected = field.add(field.mul(expected, x), coeff)
        return expected == value

    def public_values(self) -> Tuple[int, ...]:
        return (self.field.modulus,) + self.coefficients


@dataclass(frozen=True)
class SchnorrGroup:
    p: int
    """Prime modulus of the group, ``p = r*q + 1``."""
    q: int
    """Prime order of the subgroup generated by ``g``; equals the field modulus."""
    g: int
    """Generator of the order-``q`` subgroup."""

    def validate(self) -> None:
        if not (isprime(self.p) and isprime(self.q)):
            raise ConfigInvalid("Group moduli must be prime.")
        if (self.p - 1) % self.q != 0:
            raise ConfigInvalid(f"Subgroup order {self.q} does not divide p - 1.")
        if not 1 < self.g < self.p or pow(self.g, self.q, self.p) != 1:
            raise ConfigInvalid(f"{self.g} does not generate the order-q subgroup.")


def generate_group(q: int, cofactor_bits: int = FELDMAN_COFACTOR_BITS) -> SchnorrGroup:
    """Find a group ``Z_p^*`` with a subgroup of prime order ``q``."""
    if not isprime(q):
        raise ConfigInvalid(f"Subgroup order {q} is not prime.")
    r = getRandomNBitInteger(cofactor_bits)
    r += r % 2
    while not isprime(r * q + 1):
        r += 2
    p = r * q + 1

    h = 2
    while True:
        g = pow(h, r, p)
        if g != 1:
            break
        h += 1
    logger.debug("Generated %d-bit commitment group for %d-bit field", p.bit_length(), q.bit_length())
    return SchnorrGroup(p, q, g)


class FeldmanCommitment(Commitment):
    kind = "feldman"

    def __init__(self, group: SchnorrGroup, commitments: Iterable[int]):
        self.group = group
        self.commitments = tuple(commitments)

    @classmethod
    def from_polynomial(cls, polynomial: Polynomial, group: Optional[SchnorrGroup] = None) -> 'FeldmanCommitment':
        q = polynomial.field.modulus
        if group is None:
            group = generate_group(q)
        elif group.q != q:
            raise ConfigInvalid(f"Group order {group.q} does not match field modulus {q}.")
        commitments = [pow(group.g, a, group.p) for a in polynomial.coefficients]
        return cls(group, commitments)

    def verify_share(self, x: int, value: int) -> bool:
        p, q, g = self.group.p, self.group.q, self.group.g
        if not 0 <= value < q:
            return False
        left = pow(g, value, p)
        right = 1
        for j, c in enumerate(self.commitments):
            right = (right * pow(c, pow(x, j, q), p)) % p
        return left == right

    def public_values(self) -> Tuple[int, ...]:
        return (self.group.p, self.group.q, self.group.g) + self.commitments
