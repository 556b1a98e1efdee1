from Crypto.Random import random
from sympy import isprime

from errors import ConfigInvalid, NoInverse


def modinv(a, p):
    """Modular inverse using Extended Euclidean Algorithm."""
    low, high = a % p, p
    if low == 0:
        raise NoInverse(a, p)
    lm, hm = 1, 0
    while low > 1:
        r = high // low
        nm, new = hm - lm * r, high - low * r
        lm, low, hm, high = nm, new, lm, low
    if low != 1:
        # gcd(a, p) > 1, only possible for a composite modulus
        raise NoInverse(a, p)
    return lm % p


class PrimeField:
    """Arithmetic over the integers modulo a prime.

    Every operation returns a canonical residue in ``[0, modulus)``.
    """

    def __init__(self, modulus: int):
        if modulus < 3 or not isprime(modulus):
            raise ConfigInvalid(f"Modulus {modulus} is not an odd prime.")
        self.modulus = modulus

    def reduce(self, a: int) -> int:
        return a % self.modulus

    def contains(self, a: int) -> bool:
        return 0 <= a < self.modulus

    def add(self, a: int, b: int) -> int:
        return (a + b) % self.modulus

    def sub(self, a: int, b: int) -> int:
        return (a - b) % self.modulus

    def mul(self, a: int, b: int) -> int:
        return (a * b) % self.modulus

    def neg(self, a: int) -> int:
        return -a % self.modulus

    def pow(self, a: int, e: int) -> int:
        return pow(a, e, self.modulus)

    def inverse(self, a: int) -> int:
        return modinv(a, self.modulus)

    def div(self, a: int, b: int) -> int:
        return self.mul(a, self.inverse(b))

    def random_element(self) -> int:
        """Uniform element of the field from the OS CSPRNG."""
        return random.randrange(0, self.modulus)

    def __eq__(self, other) -> bool:
        return isinstance(other, PrimeField) and self.modulus == other.modulus

    def __hash__(self):
        return hash(self.modulus)

    def __repr__(self):
        return f"PrimeField({self.modulus})"

