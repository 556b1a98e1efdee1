import logging
from dataclasses import dataclass, field as dataclass_field, replace
from enum import Enum
from threading import Lock
from typing import Any, Dict, List, Optional, Sequence, Tuple

from Crypto.Random import get_random_bytes

from commitment import Commitment
from errors import (
    CapacityExceeded,
    ConfigInvalid,
    DuplicateParticipant,
    InsufficientShares,
    InsufficientVerifiedShares,
    RoundClosed,
)
from field import PrimeField
from lagrange import LagrangeReconstructor, SelectionPolicy
from settings import (
    COMMITMENT_KINDS,
    DEFAULT_PRIME,
    DEFAULT_THRESHOLD,
    DEFAULT_TOTAL,
    SELECTION_POLICIES,
    ThresholdPolicy,
)
from shamir import SecretShare, ShareGenerator, SharingRound

logger = logging.getLogger(__name__)

__all__ = ["Decryptor", "SchemeSetup", "SchemeState", "ThresholdPolicy", "ThresholdScheme"]


class SchemeState(Enum):
    CONFIGURED = "configured"
    COLLECTING = "collecting"
    RECONSTRUCTABLE = "reconstructable"
    DECRYPTED = "decrypted"


@dataclass
class Decryptor:
    id: int
    name: str
    key_share: SecretShare


class ThresholdScheme:
    """One sharing round: collects decryptor shares, filters Byzantine ones, recovers the secret.

    Registration and reconstruction hold ``_lock`` so capacity and threshold
    checks see a consistent share table when decryptors submit concurrently.
    """

    def __init__(
        self,
        policy: ThresholdPolicy,
        field: Optional[PrimeField] = None,
        commitment: Optional[Commitment] = None,
        selection: SelectionPolicy = SelectionPolicy.LOWEST_ID,
        scheme_id: Optional[str] = None,
    ):
        self.policy = policy
        self.field = field if field is not None else PrimeField(DEFAULT_PRIME)
        self.commitment = commitment
        self.selection = selection
        self.scheme_id = scheme_id or get_random_bytes(16).hex()
        self.reconstructor = LagrangeReconstructor(self.field)
        self._decryptors: List[Decryptor] = []
        self._decrypted = False
        self._lock = Lock()

    @classmethod
    def for_round(cls, sharing_round: SharingRound, **kwargs) -> 'ThresholdScheme':
        """Scheme bound to the field and commitment of ``sharing_round``."""
        return cls(
            sharing_round.policy,
            field=sharing_round.polynomial.field,
            commitment=sharing_round.commitment,
            **kwargs,
        )

    # -- state ---------------------------------------------------------------

    @property
    def threshold(self) -> int:
        return self.policy.threshold

    @property
    def total(self) -> int:
        return self.policy.total

    @property
    def registered_count(self) -> int:
        return len(self._decryptors)

    @property
    def state(self) -> SchemeState:
        if self._decrypted:
            return SchemeState.DECRYPTED
        if self.registered_count >= self.threshold:
            return SchemeState.RECONSTRUCTABLE
        if self.registered_count > 0:
            return SchemeState.COLLECTING
        return SchemeState.CONFIGURED

    def can_decrypt(self) -> bool:
        return self.registered_count >= self.threshold

    def participants(self) -> List[Decryptor]:
        """Registered decryptors in registration order."""
        return list(self._decryptors)

    def _shares(self) -> List[SecretShare]:
        return [d.key_share for d in self._decryptors]

    # -- registration --------------------------------------------------------

    def register_share(self, share: SecretShare, name: Optional[str] = None) -> Decryptor:
        """Record the share held by one decryptor.

        The scheme keeps its own copy; later changes to ``share`` do not leak in.
        """
        with self._lock:
            if self._decrypted:
                raise RoundClosed(f"Scheme {self.scheme_id} has already been decrypted.")
            if self.registered_count >= self.total:
                raise CapacityExceeded(self.total)
            if any(d.id == share.id for d in self._decryptors):
                raise DuplicateParticipant(share.id)
            decryptor = Decryptor(share.id, name or f"Decryptor {share.id}", replace(share, verified=None))
            self._decryptors.append(decryptor)
            logger.info(
                "Registered share %d for scheme %s (%d/%d)",
                share.id, self.scheme_id, self.registered_count, self.total,
            )
            return decryptor

    # -- verification --------------------------------------------------------

    def _require_commitment(self) -> Commitment:
        if self.commitment is None:
            raise ConfigInvalid("No commitment was published for this round; shares cannot be verified.")
        return self.commitment

    def verify_share(self, share_id: int, value: int) -> bool:
        """Check an incoming share against the round's commitment."""
        return self._require_commitment().verify_share(share_id, value)

    def _classify(self, share: SecretShare) -> bool:
        if share.verified is None:
            share.verified = self._require_commitment().verify_share(share.id, share.value)
            if not share.verified:
                logger.warning("Share %d failed verification in scheme %s", share.id, self.scheme_id)
        return share.verified

    def verified_shares(self) -> List[SecretShare]:
        with self._lock:
            return [s for s in self._shares() if self._classify(s)]

    def corrupted_ids(self) -> List[int]:
        with self._lock:
            return sorted(s.id for s in self._shares() if not self._classify(s))

    def detect_byzantine_shares(self) -> Tuple[int, int]:
        """``(verified_count, corrupted_count)`` over every registered share."""
        with self._lock:
            flags = [self._classify(s) for s in self._shares()]
        verified = sum(flags)
        return verified, len(flags) - verified

    def simulate_corruption(self, share_id: int, corruption: int) -> None:
        """Model a Byzantine decryptor by shifting its registered share value."""
        with self._lock:
            for share in self._shares():
                if share.id == share_id:
                    share.value = self.field.add(share.value, corruption)
                    share.verified = None
                    logger.warning("Simulated corruption of share %d in scheme %s", share_id, self.scheme_id)
                    return
        raise KeyError(f"No share with id {share_id}")

    # -- reconstruction ------------------------------------------------------

    def decrypt(
        self,
        participants: Optional[Sequence[int]] = None,
        verify: Optional[bool] = None,
        overdetermined: bool = False,
    ) -> int:
        """Reconstruct the shared secret.

        ``participants`` fixes which share ids are used and in what order;
        otherwise the scheme's selection policy picks them. ``verify``
        defaults to True whenever the round has a commitment, and then only
        verified shares are eligible.
        """
        with self._lock:
            k = self.threshold
            if not self.can_decrypt():
                raise InsufficientShares(self.registered_count, k)

            if verify is None:
                verify = self.commitment is not None
            shares = self._shares()
            if verify:
                self._require_commitment()
                eligible = [s for s in shares if self._classify(s)]
                corrupted = [s.id for s in shares if not s.verified]
                if len(eligible) < k:
                    logger.warning(
                        "Scheme %s has %d verified shares, threshold is %d", self.scheme_id, len(eligible), k
                    )
                    raise InsufficientVerifiedShares(len(eligible), k, corrupted)
            else:
                eligible, corrupted = shares, []

            if participants is None:
                secret = self.reconstructor.reconstruct(eligible, k, overdetermined, self.selection)
            else:
                chosen = self._choose(participants, shares, eligible, corrupted)
                if not overdetermined:
                    chosen = chosen[:k]
                secret = self.reconstructor.reconstruct(
                    chosen, k, overdetermined, SelectionPolicy.REGISTRATION_ORDER
                )

            self._decrypted = True
            logger.info("Scheme %s decrypted with threshold %d", self.scheme_id, k)
            return secret

    def _choose(self, participants, shares, eligible, corrupted) -> List[SecretShare]:
        seen = set()
        for pid in participants:
            if pid in seen:
                raise DuplicateParticipant(pid)
            seen.add(pid)
        by_id = {s.id: s for s in shares}
        missing = [pid for pid in participants if pid not in by_id]
        if missing:
            raise KeyError(f"Participants {missing} have not registered shares")
        eligible_ids = {s.id for s in eligible}
        if any(pid not in eligible_ids for pid in participants):
            raise InsufficientVerifiedShares(len(eligible), self.threshold, corrupted)
        chosen = [by_id[pid] for pid in participants]
        if len(chosen) < self.threshold:
            raise InsufficientShares(len(chosen), self.threshold)
        return chosen

    # -- persistence ---------------------------------------------------------

    def to_record(self) -> Dict[str, Any]:
        record = {
            "scheme_id": self.scheme_id,
            "prime_modulus": self.field.modulus,
            "threshold": self.threshold,
            "total_shares": self.total,
            "shares": [],
        }
        with self._lock:
            for s in self._shares():
                record["shares"].append({"id": s.id, "value": s.value, "verified": s.verified})
        if self.commitment is not None:
            record["commitment"] = self.commitment.fingerprint()
        return record

    @classmethod
    def from_record(cls, record: Dict[str, Any], commitment: Optional[Commitment] = None) -> 'ThresholdScheme':
        expected = record.get("commitment")
        if commitment is not None and expected is not None and commitment.fingerprint() != expected:
            raise ConfigInvalid("Commitment does not match the one recorded for this scheme.")
        scheme = cls(
            ThresholdPolicy(record["threshold"], record["total_shares"]),
            field=PrimeField(record["prime_modulus"]),
            commitment=commitment,
            scheme_id=record["scheme_id"],
        )
        for entry in record["shares"]:
            decryptor = scheme.register_share(SecretShare(entry["id"], entry["value"]))
            if commitment is None:
                # nothing to re-check against, keep the recorded flags
                decryptor.key_share.verified = entry.get("verified")
        return scheme


@dataclass(frozen=True)
class SchemeSetup:
    modulus: int = DEFAULT_PRIME
    """Prime modulus of the share field."""
    threshold: int = DEFAULT_THRESHOLD
    total: int = DEFAULT_TOTAL
    selection: str = "lowest_id"
    """How participants are chosen when more than ``threshold`` shares qualify."""
    commitment: Optional[str] = "feldman"
    """Commitment published with each sharing round, or None for no verification."""
    policy: ThresholdPolicy = dataclass_field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "policy", ThresholdPolicy(self.threshold, self.total))
        if self.selection not in SELECTION_POLICIES:
            raise ConfigInvalid(
                "{} is not one of the selection policies. "
                "Please choose one of the following: {}".format(self.selection, list(SELECTION_POLICIES))
            )
        if self.commitment not in COMMITMENT_KINDS:
            raise ConfigInvalid(
                "{} is not one of the commitment kinds. "
                "Please choose one of the following: {}".format(self.commitment, list(COMMITMENT_KINDS))
            )

    def field(self) -> PrimeField:
        return PrimeField(self.modulus)

    def build(self) -> Tuple[ShareGenerator, ThresholdPolicy]:
        """Generator that publishes this setup's commitment kind, and the policy to split with."""
        return ShareGenerator(self.field(), commitment=self.commitment), self.policy

    def new_scheme(self, sharing_round: SharingRound) -> ThresholdScheme:
        """Scheme for ``sharing_round`` using this setup's selection policy."""
        if sharing_round.policy != self.policy:
            raise ConfigInvalid(f"Round was split as {sharing_round.policy.name}, setup expects {self.policy.name}.")
        if sharing_round.modulus != self.modulus:
            raise ConfigInvalid(f"Round field modulus {sharing_round.modulus} does not match {self.modulus}.")
        return ThresholdScheme.for_round(sharing_round, selection=SelectionPolicy(self.selection))
