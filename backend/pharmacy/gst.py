"""
GST calculation engine for intra-state sales (CGST + SGST).

All amounts are integer paise. Selling prices and MRP are GST-inclusive, so the
taxable value is back-calculated from them.

Rounding is round-half-up on the exact rational value (0.5 paise goes up,
never to the even neighbour). Intermediate values are fractions.Fraction so no
binary float is ever involved.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from fractions import Fraction

from core.exceptions import InvalidArgument
from core.money import Paise, to_paise

ZERO_RATE = Decimal('0')


@dataclass(frozen=True)
class GstBreakdown:
    cgst_rate: Decimal
    cgst_amount: Paise
    sgst_rate: Decimal
    sgst_amount: Paise
    total_gst: Paise


def parse_rate(rate) -> Decimal:
    """Normalise a GST percentage (5, "12", Decimal("2.5")) to a finite, non-negative Decimal."""
    if rate is None or isinstance(rate, bool):
        raise InvalidArgument(f"Malformed GST rate: {rate!r}.")
    try:
        value = Decimal(str(rate).strip())
    except (InvalidOperation, ValueError):
        raise InvalidArgument(f"Malformed GST rate: {rate!r}.")
    if not value.is_finite() or value < 0:
        raise InvalidArgument(f"Malformed GST rate: {rate!r}.")
    return value


def round_half_up(value: Fraction) -> int:
    """Round an exact rational to the nearest integer, halves away from zero."""
    if value < 0:
        return -round_half_up(-value)
    return (2 * value.numerator + value.denominator) // (2 * value.denominator)


def taxable_from_inclusive_price(selling_price, gst_rate) -> Paise:
    """
    Back-calculate the pre-tax value of a GST-inclusive amount.

    taxable = round_half_up(selling_price * 100 / (100 + rate))

    A zero rate returns the selling price untouched.
    """
    selling_price = to_paise(selling_price)
    rate = parse_rate(gst_rate)
    if rate == 0:
        return selling_price
    taxable = Fraction(selling_price * 100) / (100 + Fraction(rate))
    return Paise(round_half_up(taxable))


def split_gst(taxable_amount, gst_rate) -> GstBreakdown:
    """
    Compute GST on a taxable value and split it into CGST and SGST.

    CGST takes the floor of half the total and SGST takes the remainder, so an
    odd paisa lands on SGST and cgst_amount + sgst_amount == total_gst always.
    """
    taxable_amount = to_paise(taxable_amount)
    rate = parse_rate(gst_rate)
    if rate == 0:
        return GstBreakdown(
            cgst_rate=ZERO_RATE,
            cgst_amount=Paise(0),
            sgst_rate=ZERO_RATE,
            sgst_amount=Paise(0),
            total_gst=Paise(0),
        )

    total_gst = round_half_up(Fraction(taxable_amount) * Fraction(rate) / 100)
    cgst = total_gst // 2
    half_rate = rate / 2
    return GstBreakdown(
        cgst_rate=half_rate,
        cgst_amount=Paise(cgst),
        sgst_rate=half_rate,
        sgst_amount=Paise(total_gst - cgst),
        total_gst=Paise(total_gst),
    )


def validate_not_above_ceiling(selling_price, ceiling_price) -> bool:
    """True if the selling price does not exceed the MRP."""
    return selling_price <= ceiling_price
