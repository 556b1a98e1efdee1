from typing import Sequence, Tuple

from errors import ConfigInvalid
from field import PrimeField


class Polynomial:
    """Secret-defining polynomial ``P(x) = a0 + a1*x + ... + a_{k-1}*x^{k-1} mod p``.

    ``a0`` is the secret. Coefficients are fixed once constructed.
    """

    __slots__ = ("_coefficients", "_field")

    def __init__(self, coefficients: Sequence[int], field: PrimeField):
        if len(coefficients) == 0:
            raise ConfigInvalid("Polynomial needs at least the secret coefficient.")
        for c in coefficients:
            if not field.contains(c):
                raise ConfigInvalid(f"Coefficient {c} outside field range [0, {field.modulus}).")
        object.__setattr__(self, "_coefficients", tuple(coefficients))
        object.__setattr__(self, "_field", field)

    def __setattr__(self, name, value):
        raise AttributeError("Polynomial is immutable")

    @classmethod
    def random(cls, secret: int, threshold: int, field: PrimeField) -> 'Polynomial':
        """Degree ``threshold - 1`` polynomial with CSPRNG coefficients."""
        coefficients = [secret] + [field.random_element() for _ in range(threshold - 1)]
        return cls(coefficients, field)

    @property
    def coefficients(self) -> Tuple[int, ...]:
        return self._coefficients

    @property
    def field(self) -> PrimeField:
        return self._field

    @property
    def secret(self) -> int:
        return self._coefficients[0]

    @property
    def degree(self) -> int:
        return len(self._coefficients) - 1

    def evaluate_at(self, x: int) -> int:
        # Horner: ((a_{k-1} x + a_{k-2}) x + ...) x + a0
        field = self._field
        result = 0
        for coeff in reversed(self._coefficients):
            result = field.add(field.mul(result, x), coeff)
        return result

    def __len__(self):
        return len(self._coefficients)

    def __eq__(self, other):
        return (
            isinstance(other, Polynomial)
            and self._field == other._field
            and self._coefficients == other._coefficients
        )

    def __hash__(self):
        return hash((self._field, self._coefficients))

    def __repr__(self):
        # coefficients are secret material
        return f"Polynomial(degree={self.degree}, field={self._field!r})"
