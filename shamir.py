import logging
from dataclasses import dataclass, field as dataclass_field
from typing import List, Optional, Sequence, Tuple

from commitment import CoefficientCommitment, Commitment, FeldmanCommitment, SchnorrGroup, generate_group
from errors import ConfigInvalid
from field import PrimeField
from polynomial import Polynomial
from settings import COMMITMENT_KINDS, ThresholdPolicy

logger = logging.getLogger(__name__)

_GENERATOR_DEFAULT = object()


def _check_commitment_kind(kind) -> None:
    if kind not in COMMITMENT_KINDS:
        raise ConfigInvalid(
            "{} is not one of the commitment kinds. "
            "Please choose one of the following: {}".format(kind, list(COMMITMENT_KINDS))
        )


@dataclass
class SecretShare:
    id: int
    """Positive x-coordinate of the share."""
    value: int
    """P(id) mod p."""
    verified: Optional[bool] = None
    """Cached verification result, None until first checked."""

    def __post_init__(self):
        if self.id < 1:
            raise ValueError(f"Share id must be a positive integer, got {self.id}")

    def as_point(self) -> Tuple[int, int]:
        return (self.id, self.value)


@dataclass
class SharingRound:
    policy: ThresholdPolicy
    polynomial: Polynomial = dataclass_field(repr=False)
    shares: List[SecretShare]
    commitment: Optional[Commitment] = None

    def share(self, share_id: int) -> SecretShare:
        for s in self.shares:
            if s.id == share_id:
                return s
        raise KeyError(f"No share with id {share_id}")

    @property
    def modulus(self) -> int:
        return self.polynomial.field.modulus


class ShareGenerator:
    """Splits secrets into Shamir shares over a fixed prime field."""

    def __init__(
        self,
        field: PrimeField,
        group: Optional[SchnorrGroup] = None,
        commitment: Optional[str] = "feldman",
    ):
        self.field = field
        if group is not None:
            group.validate()
            if group.q != field.modulus:
                raise ConfigInvalid(f"Group order {group.q} does not match field modulus {field.modulus}.")
        _check_commitment_kind(commitment)
        self.commitment = commitment
        self._group = group

    @property
    def group(self) -> SchnorrGroup:
        # One group serves every round of this generator; it is public data.
        if self._group is None:
            self._group = generate_group(self.field.modulus)
        return self._group

    def split(
        self,
        secret: int,
        policy: ThresholdPolicy,
        coefficients: Optional[Sequence[int]] = None,
        commitment: Optional[str] = _GENERATOR_DEFAULT,
    ) -> SharingRound:
        """Split ``secret`` into ``policy.total`` shares, any ``policy.threshold`` of which recover it.

        ``coefficients`` are ``a1..a_{k-1}``; when omitted they are drawn from
        the CSPRNG. Passing them is meant for reproducing known vectors.
        ``commitment`` defaults to the generator's own kind; None publishes
        nothing.
        """
        if commitment is _GENERATOR_DEFAULT:
            commitment = self.commitment
        field = self.field
        k, n = policy.threshold, policy.total
        if not field.contains(secret):
            raise ConfigInvalid(f"Secret must lie in [0, {field.modulus}).")
        if n >= field.modulus:
            raise ConfigInvalid(f"Field of size {field.modulus} cannot index {n} shares.")

        if coefficients is None:
            polynomial = Polynomial.random(secret, k, field)
        else:
            if len(coefficients) != k - 1:
                raise ConfigInvalid(
                    f"Expected {k - 1} coefficients for threshold {k}, got {len(coefficients)}."
                )
            polynomial = Polynomial([secret] + list(coefficients), field)
            if polynomial.coefficients[-1] == 0:
                logger.warning("Leading coefficient is zero; polynomial degree is below %d", k - 1)

        shares = [SecretShare(x, polynomial.evaluate_at(x)) for x in range(1, n + 1)]
        logger.info("Split secret into %d shares (%s)", n, policy.name)
        return SharingRound(policy, polynomial, shares, self.commit(polynomial, commitment))

    def commit(self, polynomial: Polynomial, kind: Optional[str] = "feldman") -> Optional[Commitment]:
        _check_commitment_kind(kind)
        if kind == "feldman":
            return FeldmanCommitment.from_polynomial(polynomial, self.group)
        if kind == "coefficients":
            return CoefficientCommitment.from_polynomial(polynomial)
        return None
