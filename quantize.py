"""Fixed-point conversion of oracle inputs before they are encrypted and shared."""
import math

from errors import QuantizationError
from settings import MAX_PRICE, PERCENT_SCALE, PRICE_DECIMALS, RATIO_SCALE


def _round_half_up(x: float) -> int:
    # inputs are non-negative here, so this is round-half-away-from-zero
    return int(math.floor(x + 0.5))


def _check_number(value, label: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise QuantizationError(f"{label} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise QuantizationError(f"{label} must be finite (not NaN or Infinity)")
    return float(value)


def quantize_percent(value, scale: int = PERCENT_SCALE) -> int:
    """50.5 -> 5050 with the default scale. 0% and 100% are rejected as unfalsifiable."""
    percent = _check_number(value, "Percentage")
    if percent <= 0.0 or percent >= 100.0:
        raise QuantizationError(f"Percentage out of range (0, 100): {percent}")
    quantized = _round_half_up(percent * (scale / 100.0))
    if quantized <= 0 or quantized >= scale:
        raise QuantizationError(f"Quantized value is extreme (unfalsifiable): {quantized}")
    return quantized


def quantize_price(value, decimals: int = PRICE_DECIMALS) -> int:
    price = _check_number(value, "Price")
    if price < 0.0:
        raise QuantizationError(f"Price cannot be negative: {price}")
    if price > MAX_PRICE:
        raise QuantizationError(f"Price exceeds maximum [{MAX_PRICE}]: {price}")
    return _round_half_up(price * 10 ** decimals)


def quantize_ratio(value, scale: int = RATIO_SCALE) -> int:
    ratio = _check_number(value, "Ratio")
    if ratio < 0.0 or ratio > 1.0:
        raise QuantizationError(f"Ratio out of range [0.0, 1.0]: {ratio}")
    return _round_half_up(ratio * scale)


def dequantize(quantized: int, scale: int) -> float:
    return quantized / scale
