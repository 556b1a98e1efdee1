class ThresholdError(Exception):
    def __init__(self, message):
        self.message = message
        super().__init__(self.message)


class ConfigInvalid(ThresholdError):
    def __init__(self, message):
        super().__init__(f"Invalid threshold configuration. {message}")


class CapacityExceeded(ThresholdError):
    def __init__(self, total: int):
        self.total = total
        super().__init__(f"Cannot register more than {total} shares.")


class InsufficientShares(ThresholdError):
    def __init__(self, available: int, threshold: int):
        self.available = available
        self.threshold = threshold
        super().__init__(f"Need {threshold} shares, only have {available}.")


class InsufficientVerifiedShares(ThresholdError):
    def __init__(self, verified: int, threshold: int, corrupted_ids):
        self.verified = verified
        self.threshold = threshold
        self.corrupted_ids = sorted(corrupted_ids)
        super().__init__(
            f"Need {threshold} verified shares, only {verified} passed verification. "
            f"Corrupted ids: {self.corrupted_ids}"
        )


class DuplicateParticipant(ThresholdError):
    def __init__(self, participant_id: int):
        self.participant_id = participant_id
        super().__init__(f"Participant id {participant_id} appears more than once.")


class NoInverse(ThresholdError):
    def __init__(self, value: int, modulus: int):
        self.value = value
        self.modulus = modulus
        super().__init__(f"No inverse for {value} modulo {modulus}.")


class InconsistentShares(ThresholdError):
    def __init__(self, participant_ids):
        self.participant_ids = sorted(participant_ids)
        super().__init__(
            f"Subsets of participants {self.participant_ids} reconstruct different values."
        )


class RoundClosed(ThresholdError):
    def __init__(self, message):
        super().__init__(f"Sharing round is closed. {message}")


class QuantizationError(ThresholdError, ValueError):
    def __init__(self, message):
        super().__init__(f"Quantization failed. {message}")
