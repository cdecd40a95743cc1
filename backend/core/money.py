"""
Money helpers.

Every amount in the ledger is an integer number of paise (1/100 INR).
Rupee strings only exist at the edges, for display and for parsing user input.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import NewType

from .exceptions import InvalidArgument

Paise = NewType('Paise', int)

PAISE_PER_RUPEE = 100


def to_paise(value, signed=False) -> Paise:
    """Tag a plain int as a paise amount, rejecting floats and negatives."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(f"Amount must be an integer number of paise, got {value!r}.")
    if value < 0 and not signed:
        raise InvalidArgument(f"Amount must not be negative, got {value}.")
    return Paise(value)


def rupees_to_paise(rupees) -> Paise:
    """
    Parse a rupee string such as "100.50" into paise (10050).

    Fractions of a paisa are rounded half up. Blank, malformed, non-finite
    and negative input raise InvalidArgument.
    """
    text = str(rupees).strip() if rupees is not None else ''
    if not text:
        raise InvalidArgument("Amount is required.")
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise InvalidArgument(f"Could not parse '{rupees}' as an amount.")
    if not value.is_finite():
        raise InvalidArgument(f"Could not parse '{rupees}' as an amount.")
    if value < 0:
        raise InvalidArgument(f"Amount must not be negative, got {rupees}.")

    paise = (value * PAISE_PER_RUPEE).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
    return Paise(int(paise))


def paise_to_rupees(paise) -> str:
    """10050 -> "100.50"."""
    paise = to_paise(paise, signed=True)
    sign = '-' if paise < 0 else ''
    rupees, rest = divmod(abs(paise), PAISE_PER_RUPEE)
    return f"{sign}{rupees}.{rest:02d}"


def _group_indian(digits):
    # 1234567 -> 12,34,567
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ','.join(pairs + [tail])


def format_inr(paise) -> str:
    """10000050 -> "₹1,00,000.50"."""
    text = paise_to_rupees(paise)
    sign = ''
    if text.startswith('-'):
        sign, text = '-', text[1:]
    rupees, fraction = text.split('.')
    return f"{sign}₹{_group_indian(rupees)}.{fraction}"
