from dataclasses import dataclass

from errors import ConfigInvalid

# ====================================================
# === Global Parameters ==============================
# ====================================================

DEFAULT_PRIME = 2**127 - 1      # Mersenne prime M127, field for shares
DEFAULT_THRESHOLD = 3           # k: shares needed to reconstruct
DEFAULT_TOTAL = 5               # n: decryptors in the committee
FELDMAN_COFACTOR_BITS = 128     # Bit length of r in p = r*q + 1 for commitments
PAILLIER_KEY_BITS = 2048        # Modulus size for the aggregation backend

PERCENT_SCALE = 10000           # 50.5% -> 5050
PRICE_DECIMALS = 8              # $1.00 -> 100000000
RATIO_SCALE = 1000000           # 0.527 -> 527000
MAX_PRICE = 92233720.36         # Keeps quantized prices below 2**63

SELECTION_POLICIES = ("lowest_id", "registration_order")
COMMITMENT_KINDS = ("feldman", "coefficients", None)


@dataclass(frozen=True)
class ThresholdPolicy:
    threshold: int
    """Minimum number of shares required to reconstruct (k)."""
    total: int
    """Number of shares issued to decryptors (n)."""

    def __post_init__(self):
        if self.threshold < 2:
            raise ConfigInvalid(f"Threshold must be at least 2, got {self.threshold}.")
        if self.threshold > self.total:
            raise ConfigInvalid(
                f"Threshold ({self.threshold}) cannot be greater than total shares ({self.total})."
            )

    @property
    def name(self) -> str:
        return f"shamir_{self.threshold}_of_{self.total}"

    def __str__(self):
        return f"Threshold Scheme: {self.threshold}/{self.total} ({self.name})"
