import random

import pytest

from errors import ConfigInvalid, NoInverse
from field import PrimeField, modinv

P = 1_000_000_007


def test_mod_operations():
    f = PrimeField(P)
    assert f.add(5, 3) == 8
    assert f.add(P - 8, 8) == 0
    assert f.sub(8, 3) == 5
    assert f.sub(3, 8) == P - 5
    assert f.mul(3, 4) == 12
    assert f.mul(1000, 1001) == 1_001_000
    assert f.neg(0) == 0
    assert f.neg(1) == P - 1


def test_results_are_canonical():
    f = PrimeField(P)
    for a, b in [(-5, 3), (P + 7, 2 * P), (-P - 1, -1)]:
        for result in (f.add(a, b), f.sub(a, b), f.mul(a, b), f.reduce(a)):
            assert 0 <= result < P


def test_inverse_small_values():
    f = PrimeField(P)
    for a in range(1, 20):
        assert f.mul(a, f.inverse(a)) == 1


def test_inverse_random_values(field):
    for _ in range(50):
        a = random.randrange(1, field.modulus)
        assert field.mul(a, field.inverse(a)) == 1


def test_inverse_of_negative_input():
    assert (-3 * modinv(-3, P)) % P == 1


def test_inverse_of_zero_raises():
    f = PrimeField(P)
    with pytest.raises(NoInverse):
        f.inverse(0)
    with pytest.raises(NoInverse):
        f.inverse(P)


def test_modinv_composite_modulus_raises():
    with pytest.raises(NoInverse) as exc:
        modinv(6, 9)
    assert exc.value.value == 6
    assert exc.value.modulus == 9


@pytest.mark.parametrize("modulus", [1, 2, 4, 15, 1_000_000_008])
def test_non_prime_modulus_rejected(modulus):
    with pytest.raises(ConfigInvalid):
        PrimeField(modulus)


def test_random_element_in_range(small_field):
    for _ in range(20):
        assert small_field.contains(small_field.random_element())


def test_every_result_is_canonical():
    f = PrimeField(7)
    values = range(-20, 21)
    for a in values:
        assert f.contains(f.reduce(a))
        for b in values:
            for result in (f.add(a, b), f.sub(a, b), f.mul(a, b)):
                assert f.contains(result)
    assert f.reduce(-1) == 6
    assert f.reduce(15) == 1
    assert not f.contains(7)
    assert not f.contains(-1)


def test_pow_and_division():
    f = PrimeField(7)
    assert f.pow(5, 6) == 1
    assert f.div(5, 4) == f.mul(5, f.inverse(4))
    assert f.mul(f.div(5, 4), 4) == 5
    with pytest.raises(NoInverse):
        f.div(3, 0)
