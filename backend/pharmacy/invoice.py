from dataclasses import dataclass
from decimal import Decimal

from core.exceptions import InvalidArgument
from core.money import Paise, to_paise
from .gst import split_gst, taxable_from_inclusive_price


@dataclass(frozen=True)
class LineComputation:
    unit_price: Paise
    quantity: int
    discount: Paise
    taxable_amount: Paise
    cgst_rate: Decimal
    cgst_amount: Paise
    sgst_rate: Decimal
    sgst_amount: Paise
    total_gst: Paise
    total: Paise

    @property
    def subtotal(self) -> Paise:
        return Paise(self.unit_price * self.quantity)


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Paise = Paise(0)
    discount: Paise = Paise(0)
    total_cgst: Paise = Paise(0)
    total_sgst: Paise = Paise(0)
    total_gst: Paise = Paise(0)
    grand_total: Paise = Paise(0)


def _check_quantity(quantity):
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidArgument(f"Quantity must be a whole number of at least 1, got {quantity!r}.")
    return quantity


def compute_line(unit_price, quantity, gst_rate, discount=0) -> LineComputation:
    """
    Price one sale line.

    The discount comes off the GST-inclusive subtotal *before* the taxable
    value is back-calculated:

        after_discount = unit_price * quantity - discount
        taxable        = taxable_from_inclusive_price(after_discount, rate)
        total          = taxable + GST(taxable)

    Out-of-range discounts are rejected, not clamped; see clamp_discount().
    """
    unit_price = to_paise(unit_price)
    quantity = _check_quantity(quantity)
    discount = to_paise(discount)

    line_subtotal = unit_price * quantity
    if discount > line_subtotal:
        raise InvalidArgument(
            f"Discount {discount} exceeds the line subtotal {line_subtotal}."
        )

    taxable = taxable_from_inclusive_price(line_subtotal - discount, gst_rate)
    gst = split_gst(taxable, gst_rate)

    return LineComputation(
        unit_price=unit_price,
        quantity=quantity,
        discount=discount,
        taxable_amount=taxable,
        cgst_rate=gst.cgst_rate,
        cgst_amount=gst.cgst_amount,
        sgst_rate=gst.sgst_rate,
        sgst_amount=gst.sgst_amount,
        total_gst=gst.total_gst,
        total=Paise(taxable + gst.total_gst),
    )


def compute_invoice_totals(lines) -> InvoiceTotals:
    """Fold line computations into invoice totals. An empty sale totals to zero."""
    subtotal = discount = cgst = sgst = total_gst = grand_total = 0
    for line in lines:
        subtotal += line.unit_price * line.quantity
        discount += line.discount
        cgst += line.cgst_amount
        sgst += line.sgst_amount
        total_gst += line.total_gst
        grand_total += line.total

    return InvoiceTotals(
        subtotal=Paise(subtotal),
        discount=Paise(discount),
        total_cgst=Paise(cgst),
        total_sgst=Paise(sgst),
        total_gst=Paise(total_gst),
        grand_total=Paise(grand_total),
    )


def clamp_discount(discount, unit_price, quantity) -> Paise:
    """Pull a user-entered discount into [0, unit_price * quantity]."""
    ceiling = to_paise(unit_price) * _check_quantity(quantity)
    return Paise(max(0, min(int(discount), ceiling)))


def distribute_discount(discount, weights) -> list:
    """
    Split a discount across line portions in proportion to their gross amounts.

    Each share is the difference of cumulative floors, so the shares add up to
    exactly `discount` and no share exceeds its own weight.
    """
    discount = to_paise(discount)
    weights = [to_paise(w) for w in weights]
    pool = sum(weights)
    if discount > pool:
        raise InvalidArgument(f"Discount {discount} exceeds the amount {pool} it applies to.")
    if discount == 0:
        return [Paise(0) for _ in weights]

    shares = []
    running = given = 0
    for weight in weights:
        running += weight
        upto = running * discount // pool
        shares.append(Paise(upto - given))
        given = upto
    return shares
