import logging
from enum import Enum
from threading import Lock
from typing import Dict, Iterable, List, Sequence, Tuple

from errors import DuplicateParticipant, InconsistentShares, InsufficientShares
from field import PrimeField
from shamir import SecretShare

logger = logging.getLogger(__name__)

# Distinct id sets whose L_i(0) values are kept per reconstructor.
LAGRANGE_CACHE_SIZE = 256


class SelectionPolicy(Enum):
    LOWEST_ID = "lowest_id"
    """First ``threshold`` shares by ascending id."""
    REGISTRATION_ORDER = "registration_order"
    """First ``threshold`` shares in the order they were registered."""


def _check_distinct(x_s: Iterable[int], p: int) -> None:
    seen = set()
    for x in x_s:
        if x % p in seen:
            raise DuplicateParticipant(x)
        seen.add(x % p)


class LagrangeReconstructor:
    """Recombines shares into the secret by exact interpolation at x = 0."""

    def __init__(self, field: PrimeField):
        self.field = field
        self._lagrange_cache: Dict[Tuple[int, ...], Dict[int, int]] = {}
        self._cache_lock = Lock()

    def _basis(self, x: int, x_i: int, x_s: Sequence[int]) -> int:
        field = self.field
        numerator, denominator = 1, 1
        for x_j in x_s:
            if x_j == x_i:
                continue
            numerator = field.mul(numerator, field.sub(x, x_j))
            denominator = field.mul(denominator, field.sub(x_i, x_j))
        if denominator == 0:
            raise DuplicateParticipant(x_i)
        return field.div(numerator, denominator)

    def coefficient(self, x_i: int, x_s: Sequence[int]) -> int:
        """L_i(0) = prod_{j != i} (-x_j) / (x_i - x_j) mod p."""
        _check_distinct(x_s, self.field.modulus)
        return self._basis(0, x_i, x_s)

    def coefficients(self, x_s: Sequence[int]) -> Dict[int, int]:
        """Basis coefficients at 0 for every id in ``x_s``."""
        _check_distinct(x_s, self.field.modulus)
        key = tuple(sorted(x_s))

        with self._cache_lock:
            if key in self._lagrange_cache:
                return self._lagrange_cache[key]

        coeffs = {x_i: self._basis(0, x_i, key) for x_i in key}

        with self._cache_lock:
            while len(self._lagrange_cache) >= LAGRANGE_CACHE_SIZE:
                # dicts keep insertion order, drop the oldest set
                del self._lagrange_cache[next(iter(self._lagrange_cache))]
            self._lagrange_cache[key] = coeffs
        return coeffs

    def interpolate(self, shares: Sequence[SecretShare]) -> int:
        """Secret estimate from exactly the shares given."""
        field = self.field
        lambdas = self.coefficients([s.id for s in shares])
        secret = 0
        for share in shares:
            secret = field.add(secret, field.mul(share.value, lambdas[share.id]))
        return secret

    def evaluate_at(self, shares: Sequence[SecretShare], x: int) -> int:
        """Value at ``x`` of the polynomial through ``shares``. Not cached."""
        if self.field.reduce(x) == 0:
            return self.interpolate(shares)
        field = self.field
        x_s = [s.id for s in shares]
        _check_distinct(x_s, field.modulus)
        value = 0
        for share in shares:
            value = field.add(value, field.mul(share.value, self._basis(x, share.id, x_s)))
        return value

    @staticmethod
    def select(
        shares: Sequence[SecretShare],
        threshold: int,
        policy: SelectionPolicy = SelectionPolicy.LOWEST_ID,
    ) -> List[SecretShare]:
        """Pick ``threshold`` shares from ``shares`` (given in registration order)."""
        if len(shares) < threshold:
            raise InsufficientShares(len(shares), threshold)
        if policy is SelectionPolicy.LOWEST_ID:
            ordered = sorted(shares, key=lambda s: s.id)
        elif policy is SelectionPolicy.REGISTRATION_ORDER:
            ordered = list(shares)
        else:
            raise ValueError(f"Unknown selection policy {policy!r}")
        return ordered[:threshold]

    def reconstruct(
        self,
        shares: Sequence[SecretShare],
        threshold: int,
        overdetermined: bool = False,
        policy: SelectionPolicy = SelectionPolicy.LOWEST_ID,
    ) -> int:
        """Recover the secret from ``shares``.

        Normally the ``threshold`` shares chosen by ``policy`` are used. With
        ``overdetermined`` every share takes part: the lowest ``threshold``
        ids fix the polynomial and each remaining share must lie on it, which
        holds exactly when every ``threshold``-sized subset agrees.
        """
        if len(shares) < threshold:
            raise InsufficientShares(len(shares), threshold)
        _check_distinct([s.id for s in shares], self.field.modulus)

        if not overdetermined:
            return self.interpolate(self.select(shares, threshold, policy))

        ordered = sorted(shares, key=lambda s: s.id)
        base, extra = ordered[:threshold], ordered[threshold:]
        secret = self.interpolate(base)
        for share in extra:
            # every k-subset agrees exactly when all points lie on one polynomial
            if self.evaluate_at(base, share.id) != self.field.reduce(share.value):
                logger.warning("Over-determined reconstruction: share %d is off the polynomial", share.id)
                raise InconsistentShares([s.id for s in ordered])
        logger.debug("All %d shares lie on one polynomial of degree %d", len(ordered), threshold - 1)
        return secret
