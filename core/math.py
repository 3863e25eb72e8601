"""
core/math.py - Fixed-point math.

CRITICAL: No float allowed in amounts, prices or PnL.
All values are int, either in a token's native decimals or in
18-decimal fixed point (1.0 == 10**18).
"""

from decimal import Decimal, InvalidOperation, ROUND_DOWN, localcontext

from core.constants import FIXED_POINT_DECIMALS, ONE
from core.exceptions import ErrorCode, ValidationError


# =============================================================================
# VALIDATION
# =============================================================================

def validate_no_float(*values: object) -> None:
    """
    Validate that none of the values are floats.

    Raises ValidationError if any float is found.
    """
    for i, value in enumerate(values):
        if isinstance(value, float):
            raise ValidationError(
                f"Float value at position {i} is not allowed",
                {"position": i, "value": value},
                code=ErrorCode.MATH_FLOAT_NOT_ALLOWED,
            )


def validate_decimals(decimals: int) -> None:
    """Token decimals must lie in [0, 18] to scale against 18-decimal fixed point."""
    if not isinstance(decimals, int) or isinstance(decimals, bool):
        raise ValidationError(
            f"Decimals must be int, got {type(decimals).__name__}",
            {"decimals": decimals},
            code=ErrorCode.MATH_DECIMALS_OUT_OF_RANGE,
        )
    if decimals < 0 or decimals > FIXED_POINT_DECIMALS:
        raise ValidationError(
            f"Invalid decimals: {decimals}",
            {"decimals": decimals, "min": 0, "max": FIXED_POINT_DECIMALS},
            code=ErrorCode.MATH_DECIMALS_OUT_OF_RANGE,
        )


def safe_int(value: int | str) -> int:
    """
    Convert an on-chain or API integer value to int.

    Accepts int, decimal strings and 0x-prefixed hex strings.
    """
    validate_no_float(value)
    if isinstance(value, bool):
        raise ValidationError(f"Cannot convert to int: {value}", {"value": value})
    if isinstance(value, int):
        return value
    try:
        text = str(value).strip()
        if text.lower().startswith("0x"):
            return int(text, 16)
        return int(text)
    except (ValueError, TypeError) as e:
        raise ValidationError(
            f"Cannot convert to int: {value}",
            {"value": value, "type": type(value).__name__, "error": str(e)},
        )


# =============================================================================
# INTEGER ARITHMETIC
# =============================================================================

def trunc_div(a: int, b: int) -> int:
    """Integer division truncating toward zero (Python's // floors)."""
    validate_no_float(a, b)
    if b == 0:
        raise ZeroDivisionError("division by zero")
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def fp_mul(a: int, b: int) -> int:
    """Multiply two 18-decimal fixed-point values."""
    return trunc_div(a * b, ONE)


def fp_div(a: int, b: int) -> int:
    """Divide two 18-decimal fixed-point values."""
    return trunc_div(a * ONE, b)


# =============================================================================
# DECIMAL SCALING
# =============================================================================

def scale_to_18(amount: int, decimals: int) -> int:
    """
    Scale an amount from a token's native decimals to 18-decimal fixed point.

    Example: scale_to_18(1_000_000, 6) -> 10**18  # 1 USDC
    """
    validate_no_float(amount)
    validate_decimals(decimals)
    return amount * 10 ** (FIXED_POINT_DECIMALS - decimals)


def scale_from_18(amount: int, decimals: int) -> int:
    """
    Scale an 18-decimal fixed-point amount down to a token's native decimals.

    Truncates toward zero. scale_from_18(scale_to_18(x, d), d) == x.
    """
    validate_no_float(amount)
    validate_decimals(decimals)
    return trunc_div(amount, 10 ** (FIXED_POINT_DECIMALS - decimals))


# =============================================================================
# STRING CONVERSIONS
# =============================================================================

def parse_units(value: str | int, decimals: int = FIXED_POINT_DECIMALS) -> int:
    """
    Parse a decimal string into an integer with the given decimals.

    Fractional digits beyond `decimals` are truncated toward zero.

    Example: parse_units("0.5") -> 5 * 10**17
    """
    validate_no_float(value)
    validate_decimals(decimals)
    if isinstance(value, bool):
        raise ValidationError(f"Cannot parse units: {value}", {"value": value})
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(
            f"Cannot parse units: {value}",
            {"value": value, "error": str(e)},
        )
    if not amount.is_finite():
        raise ValidationError(f"Cannot parse units: {value}", {"value": value})
    with localcontext() as ctx:
        # uint256 values need 78 significant digits
        ctx.prec = 100
        scaled = amount.scaleb(decimals).to_integral_value(rounding=ROUND_DOWN)
    return int(scaled)


def format_units(value: int, decimals: int = FIXED_POINT_DECIMALS) -> str:
    """
    Format an integer amount as a decimal string.

    Always keeps a fractional part: format_units(10**18) -> "1.0"
    """
    validate_no_float(value)
    validate_decimals(decimals)
    sign = "-" if value < 0 else ""
    whole, frac = divmod(abs(value), 10**decimals)
    frac_str = str(frac).zfill(decimals).rstrip("0") if decimals else ""
    return f"{sign}{whole}.{frac_str or '0'}"
