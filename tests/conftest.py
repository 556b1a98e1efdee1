import pytest

from field import PrimeField
from settings import DEFAULT_PRIME, ThresholdPolicy
from shamir import ShareGenerator

# Small prime used where a readable modulus helps
SMALL_PRIME = 1_000_000_007


class PlaintextBackend:
    """Stand-in for an FHE library: "ciphertexts" are tagged plaintexts."""

    def encrypt(self, plaintext):
        return ("ct", plaintext)

    def decrypt(self, ciphertext):
        return ciphertext[1]

    def add(self, a, b):
        return ("ct", a[1] + b[1])

    def scalar_mul(self, ciphertext, scalar):
        return ("ct", ciphertext[1] * scalar)

    def sub(self, a, b):
        return ("ct", a[1] - b[1])

    def greater_than(self, a, b):
        return ("ct", int(a[1] > b[1]))


@pytest.fixture(scope="session")
def field():
    return PrimeField(DEFAULT_PRIME)


@pytest.fixture(scope="session")
def small_field():
    return PrimeField(SMALL_PRIME)


@pytest.fixture(scope="session")
def generator(field):
    gen = ShareGenerator(field)
    gen.group  # generate the commitment group once per session
    return gen


@pytest.fixture(scope="session")
def small_generator(small_field):
    return ShareGenerator(small_field)


@pytest.fixture
def policy():
    return ThresholdPolicy(3, 5)


@pytest.fixture
def scenario_round(generator, policy):
    """P(x) = 42 + 10x with k=3, n=5: shares 52, 62, 72, 82, 92."""
    return generator.split(42, policy, coefficients=[10, 0], commitment="coefficients")


@pytest.fixture
def plaintext_backend():
    return PlaintextBackend()
