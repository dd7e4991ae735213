"""
Money Helpers Module

Cent-precision Decimal handling shared by the ledger and the interest engine.
NEVER uses float for monetary values.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, getcontext
from typing import Union
import re

from .exceptions import ValidationError

# Set global decimal context for financial precision
getcontext().prec = 28

CENT = Decimal('0.01')
ZERO = Decimal('0.00')


def to_decimal(value: Union[Decimal, int, str, float], field: str = "amount") -> Decimal:
    """
    Convert a value to Decimal without going through binary floating point
    
    Raises:
        ValidationError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise ValidationError(f"Cannot convert {value!r} to a number", field=field)
    
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise ValidationError(f"Cannot convert {value!r} to a number", field=field)
    
    if not result.is_finite():
        raise ValidationError(f"{field.capitalize()} must be a finite number, got {value!r}", field=field)
    return result


def round_money(value: Decimal) -> Decimal:
    """Round to cent precision using half-up rounding"""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def decimal_from_string(value: str, field: str = "amount") -> Decimal:
    """
    Parse a user-entered amount such as "100", "100.50" or "1,000.25"
    
    Args:
        value: String representation of number
        field: Field name reported in errors
        
    Returns:
        Decimal value
        
    Raises:
        ValidationError: If string cannot be converted to a valid Decimal
    """
    if not value or not isinstance(value, str):
        raise ValidationError(f"{field.capitalize()} must be a non-empty string", field=field)
    
    clean_value = value.strip()
    if not re.fullmatch(r'[+-]?(\d{1,3}(,\d{3})+|\d+)(\.\d+)?|[+-]?\.\d+', clean_value):
        raise ValidationError(f"Cannot convert '{value}' to a number", field=field)
    
    # Comma is only ever a thousands separator here
    return to_decimal(clean_value.replace(',', ''), field=field)


def format_amount(value: Decimal) -> str:
    """Format for display with exactly two decimal places"""
    return f"{round_money(value):.2f}"
