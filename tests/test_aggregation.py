import pytest

from aggregation import (
    CiphertextBackend,
    ComparisonBackend,
    PaillierBackend,
    ProviderSubmission,
    homomorphic_aggregate,
    share_aggregate,
    threshold_compare,
)
from commitment import CoefficientCommitment
from errors import ConfigInvalid
from quantize import quantize_price
from settings import ThresholdPolicy
from shamir import ShareGenerator
from threshold import ThresholdScheme


@pytest.fixture(scope="module")
def paillier_backend():
    # small key keeps the test fast; production uses PAILLIER_KEY_BITS
    return PaillierBackend(key_bits=512)


def price_submissions():
    return [
        ProviderSubmission("provider-a", quantize_price(3250.50)),
        ProviderSubmission("provider-b", quantize_price(3248.50)),
        ProviderSubmission("provider-c", quantize_price(3252.50)),
    ]


def test_paillier_backend_operations(paillier_backend):
    b = paillier_backend
    a, c = b.encrypt(20), b.encrypt(7)
    assert b.decrypt(b.add(a, c)) == 27
    assert b.decrypt(b.sub(a, c)) == 13
    assert b.decrypt(b.scalar_mul(a, 3)) == 60


def test_paillier_backend_is_not_comparison(paillier_backend):
    assert isinstance(paillier_backend, CiphertextBackend)
    assert not isinstance(paillier_backend, ComparisonBackend)
    with pytest.raises(TypeError):
        threshold_compare(paillier_backend, paillier_backend.encrypt(1), 0)


def test_public_only_backend_cannot_decrypt(paillier_backend):
    public = PaillierBackend(public_key=paillier_backend.public_key)
    with pytest.raises(ConfigInvalid):
        public.decrypt(public.encrypt(1))


def test_weighted_aggregate(plaintext_backend):
    submissions = [ProviderSubmission("a", 10, weight=2), ProviderSubmission("b", 5, weight=3)]
    aggregate = homomorphic_aggregate(plaintext_backend, submissions)
    assert plaintext_backend.decrypt(aggregate) == 35


def test_price_average(paillier_backend):
    total = paillier_backend.decrypt(homomorphic_aggregate(paillier_backend, price_submissions()))
    average = total // 3 / 1e8
    assert abs(average - 3250.50) < 0.01


def test_threshold_compare(plaintext_backend):
    aggregate = homomorphic_aggregate(plaintext_backend, price_submissions())
    assert plaintext_backend.decrypt(threshold_compare(plaintext_backend, aggregate, quantize_price(9000.0))) == 1
    assert plaintext_backend.decrypt(threshold_compare(plaintext_backend, aggregate, quantize_price(10000.0))) == 0


def test_aggregate_shared_and_recovered(paillier_backend, generator):
    aggregate = homomorphic_aggregate(paillier_backend, price_submissions())
    expected = paillier_backend.decrypt(aggregate)

    sharing = share_aggregate(paillier_backend, aggregate, ThresholdPolicy(3, 5), generator)
    scheme = ThresholdScheme.for_round(sharing)
    for share_id in (2, 4, 5):
        scheme.register_share(sharing.share(share_id))
    assert scheme.decrypt() == expected


def test_negative_aggregate_rejected(plaintext_backend, generator):
    with pytest.raises(ConfigInvalid):
        share_aggregate(plaintext_backend, plaintext_backend.encrypt(-1), ThresholdPolicy(2, 3), generator)


def test_shared_aggregate_uses_generator_commitment(plaintext_backend, small_field):
    generator = ShareGenerator(small_field, commitment="coefficients")
    aggregate = homomorphic_aggregate(plaintext_backend, [ProviderSubmission("a", 7), ProviderSubmission("b", 5)])
    sharing = share_aggregate(plaintext_backend, aggregate, policy=ThresholdPolicy(2, 3), generator=generator)
    assert isinstance(sharing.commitment, CoefficientCommitment)
    assert sharing.polynomial.secret == 12
