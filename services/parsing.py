"""
Parsing Service

Functions for parsing quantities and numbers from invoice and form data.
"""

import math
import re
from decimal import Decimal, ROUND_HALF_UP

from constants import UNICODE_FRACTIONS, COMMON_FRACTIONS


def float_to_fraction(value):
    """Convert float to fraction string for display."""
    if value is None or value == 0:
        return '0'
    # Check if it's a whole number
    if value == int(value):
        return str(int(value))
    whole = int(value)
    decimal = value - whole
    # Check common fractions (with tolerance)
    for dec, frac in COMMON_FRACTIONS.items():
        if abs(decimal - dec) < 0.02:
            if whole > 0:
                return f"{whole} {frac}"
            return frac
    return f"{value:.2f}".rstrip('0').rstrip('.')


def normalize_fractions(text):
    """Replace Unicode fraction characters with decimal equivalents."""
    # Normalize all whitespace (including non-breaking spaces) to regular spaces
    text = re.sub(r'[\s\u00a0\u2000-\u200b]+', ' ', text)

    for char, value in UNICODE_FRACTIONS.items():
        if char in text:
            # Mixed fraction like "1½" or "1 ½"
            pattern = r'(\d+)\s*' + re.escape(char)
            match = re.search(pattern, text)
            if match:
                whole = float(match.group(1))
                text = re.sub(pattern, str(whole + value), text)
            else:
                text = text.replace(char, str(value))
    return text


def parse_quantity(value, default=None):
    """
    Parse an invoice quantity into a float.

    Handles: 2, 0.5, 1/2, 1 1/2, ½, 1½, "1,250". Returns default when the
    value can't be parsed or is not positive.
    """
    if value is None:
        return default
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value) if value > 0 else default

    s = normalize_fractions(str(value)).replace(',', '').strip()
    if not s:
        return default

    # Mixed fraction like "1 1/2"
    mixed_match = re.match(r'^(\d+(?:\.\d+)?)\s+(\d+)\s*/\s*(\d+)$', s)
    # Simple fraction like "1/2"
    frac_match = re.match(r'^(\d+)\s*/\s*(\d+)$', s)

    try:
        if mixed_match:
            result = float(mixed_match.group(1)) + float(mixed_match.group(2)) / float(mixed_match.group(3))
        elif frac_match:
            result = float(frac_match.group(1)) / float(frac_match.group(2))
        else:
            # "1 0.5" after unicode normalization
            result = sum(float(part) for part in s.split())
    except (ValueError, ZeroDivisionError):
        return default

    return result if result > 0 else default


def safe_float(value, default=0.0, min_val=None, max_val=None):
    """Safely parse a float value with optional bounds."""
    try:
        result = float(value) if value not in (None, '') else default
        if result is None:
            return None
        if min_val is not None:
            result = max(min_val, result)
        if max_val is not None:
            result = min(max_val, result)
        return result
    except (ValueError, TypeError):
        return default


def parse_money(value):
    """Parse an amount like '$1,250.50' into a float, or None."""
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value) if math.isfinite(value) else None
    cleaned = str(value).replace('$', '').replace(',', '').strip()
    if not cleaned:
        return None
    try:
        amount = float(cleaned)
    except ValueError:
        return None
    return amount if math.isfinite(amount) else None


def format_money(value, places=2):
    """Format an amount as '$1,250.50'. Small unit costs keep more places."""
    if value is None:
        return '-'
    return f'${value:,.{places}f}'


def round_half_up(value, places=2):
    """Half-up rounding: 77.1875 -> 77.19."""
    if value is None:
        return None
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def format_percent(fraction, places=1):
    """Format a margin fraction (0.771875) as '77.2%'."""
    if fraction is None:
        return '-'
    return f'{round_half_up(fraction * 100, places):.{places}f}%'
