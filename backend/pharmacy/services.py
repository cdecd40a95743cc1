"""
Sale orchestration: FEFO allocation, pricing and the atomic sale write.

quote_sale() is the staging step: it prices a request without writing
anything. record_sale() repeats the same work against locked, live rows and
persists the invoice number, the sale header, its items and the batch
decrements as one atomic unit.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.db.models import F
from django.utils import timezone

from core.exceptions import CeilingViolation, InvalidArgument, PharmacyError, TransactionFailure
from core.money import to_paise
from .fefo import allocate
from .gst import validate_not_above_ceiling
from .invoice import LineComputation, InvoiceTotals, compute_invoice_totals, compute_line, distribute_discount
from .models import Customer, Medicine, PharmacySettings, Sale, SaleItem, StockBatch

logger = logging.getLogger(__name__)

INVOICE_NUMBER_WIDTH = 6
PAYMENT_MODES = {code for code, _ in Sale.PAYMENT_MODE_CHOICES}


@dataclass(frozen=True)
class SaleLineRequest:
    medicine_id: Any
    quantity: int
    discount: int = 0
    # Price the counter agreed on; None means each batch's own selling price
    unit_price: Optional[int] = None


@dataclass(frozen=True)
class SaleRequest:
    lines: list = field(default_factory=list)
    customer_id: Any = None
    payment_mode: str = 'CASH'
    notes: str = ''
    invoice_number: Optional[str] = None


@dataclass(frozen=True)
class QuotedLine:
    medicine: Medicine
    batch: StockBatch
    computation: LineComputation


@dataclass(frozen=True)
class SaleQuote:
    lines: list
    totals: InvoiceTotals


def fefo_batches(medicine_id, today=None, lock=False):
    """
    Sellable batches of a medicine, earliest expiry first.

    Batches expiring on the same day come out in receipt order, which is the
    order allocate() will draw them in. lock=True must run inside a transaction.
    """
    today = today or timezone.localdate()
    qs = (
        StockBatch.objects
        .filter(medicine_id=medicine_id, qty_available__gt=0, expiry_date__gt=today)
        .order_by('expiry_date', 'created_at', 'id')
    )
    if lock:
        qs = qs.select_for_update()
    return list(qs)


def _get_medicine(medicine_id):
    try:
        return Medicine.objects.get(pk=medicine_id, is_active=True)
    except (Medicine.DoesNotExist, ValidationError):
        raise InvalidArgument(f"Unknown medicine: {medicine_id}.")


def _check_request(request):
    if not request.lines:
        raise InvalidArgument("A sale needs at least one item.")
    if request.payment_mode not in PAYMENT_MODES:
        raise InvalidArgument(f"Unknown payment mode: {request.payment_mode!r}.")

    medicine_ids = [str(line.medicine_id) for line in request.lines]
    if len(set(medicine_ids)) != len(medicine_ids):
        raise InvalidArgument("Each medicine may appear only once in a sale.")

    if request.customer_id is not None:
        try:
            found = Customer.objects.filter(pk=request.customer_id).exists()
        except ValidationError:
            found = False
        if not found:
            raise InvalidArgument(f"Unknown customer: {request.customer_id}.")


def _price_line(line, lock):
    medicine = _get_medicine(line.medicine_id)
    allocations = allocate(fefo_batches(medicine.pk, lock=lock), line.quantity, item_name=medicine.name)

    prices = []
    for alloc in allocations:
        batch = alloc.batch
        price = batch.selling_price if line.unit_price is None else to_paise(line.unit_price)
        if not validate_not_above_ceiling(price, batch.mrp):
            raise CeilingViolation(f"{medicine.name} ({batch.batch_no})", price, batch.mrp)
        prices.append(price)

    # one line discount, spread over however many batches FEFO drew from
    shares = distribute_discount(
        line.discount,
        [price * alloc.quantity for price, alloc in zip(prices, allocations)],
    )
    return [
        QuotedLine(
            medicine=medicine,
            batch=alloc.batch,
            computation=compute_line(price, alloc.quantity, medicine.gst_rate, share),
        )
        for alloc, price, share in zip(allocations, prices, shares)
    ]


def _build_quote(request, lock=False):
    _check_request(request)
    quoted = []
    for line in request.lines:
        quoted.extend(_price_line(line, lock))
    totals = compute_invoice_totals(q.computation for q in quoted)
    return SaleQuote(lines=quoted, totals=totals)


def quote_sale(request) -> SaleQuote:
    """Stage a sale: allocate, check every price against its MRP and total it up. Writes nothing."""
    return _build_quote(request, lock=False)


def _format_invoice_number(prefix, number):
    return f"{prefix}-{number:0{INVOICE_NUMBER_WIDTH}d}"


def _next_invoice_number():
    settings = PharmacySettings.load(for_update=True)
    number = settings.next_invoice_number
    # manually numbered sales may already hold numbers the counter has not reached
    while Sale.objects.filter(
        invoice_number=_format_invoice_number(settings.invoice_prefix, number)
    ).exists():
        number += 1
    PharmacySettings.objects.filter(pk=settings.pk).update(next_invoice_number=number + 1)
    return _format_invoice_number(settings.invoice_prefix, number)


def _decrement_batch(batch, quantity):
    updated = (
        StockBatch.objects
        .filter(pk=batch.pk, qty_available__gte=quantity)
        .update(qty_available=F('qty_available') - quantity, updated_at=timezone.now())
    )
    if updated != 1:
        raise TransactionFailure(f"Stock for batch {batch.batch_no} changed during the sale.")


def _write_sale(request, quote):
    invoice_number = (request.invoice_number or '').strip() or _next_invoice_number()
    totals = quote.totals

    sale = Sale.objects.create(
        invoice_number=invoice_number,
        customer_id=request.customer_id,
        payment_mode=request.payment_mode,
        notes=request.notes or '',
        subtotal=totals.subtotal,
        discount=totals.discount,
        total_cgst=totals.total_cgst,
        total_sgst=totals.total_sgst,
        total_gst=totals.total_gst,
        grand_total=totals.grand_total,
    )

    SaleItem.objects.bulk_create([
        SaleItem(
            sale=sale,
            batch=line.batch,
            medicine=line.medicine,
            quantity=line.computation.quantity,
            unit_price=line.computation.unit_price,
            discount=line.computation.discount,
            taxable_amount=line.computation.taxable_amount,
            cgst_rate=line.computation.cgst_rate,
            cgst_amount=line.computation.cgst_amount,
            sgst_rate=line.computation.sgst_rate,
            sgst_amount=line.computation.sgst_amount,
            total=line.computation.total,
            hsn_code=line.medicine.hsn_code,
        )
        for line in quote.lines
    ])

    for line in quote.lines:
        _decrement_batch(line.batch, line.computation.quantity)

    return sale


def record_sale(request):
    """
    Persist a sale and return its id.

    Everything happens in one transaction: prices are re-checked against the
    live MRP of locked batches, the invoice counter is read and bumped, then
    the header, items and stock decrements are written. On any failure the
    transaction is rolled back before the error leaves this function, so
    nothing of the sale is ever visible.
    """
    try:
        with transaction.atomic():
            quote = _build_quote(request, lock=True)
            sale = _write_sale(request, quote)
    except PharmacyError as exc:
        logger.warning("Sale aborted, nothing written: %s", exc)
        raise
    except DatabaseError as exc:
        logger.exception("Sale transaction rolled back")
        raise TransactionFailure("Sale could not be completed, please retry.") from exc

    logger.info(
        "Recorded sale %s: %d item(s), grand total %d paise",
        sale.invoice_number, len(quote.lines), sale.grand_total,
    )
    return sale.id


def restock_batch(batch_id, quantity):
    """Put units back on a batch (customer return). Returns the new quantity."""
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidArgument("Restock quantity must be greater than 0.")

    try:
        with transaction.atomic():
            updated = StockBatch.objects.filter(pk=batch_id).update(
                qty_available=F('qty_available') + quantity, updated_at=timezone.now()
            )
            if not updated:
                raise InvalidArgument(f"Unknown batch: {batch_id}.")
            new_qty = StockBatch.objects.values_list('qty_available', flat=True).get(pk=batch_id)
    except DatabaseError as exc:
        logger.exception("Restock of batch %s rolled back", batch_id)
        raise TransactionFailure("Stock could not be updated, please retry.") from exc

    logger.info("Restocked batch %s by %d, now %d", batch_id, quantity, new_qty)
    return new_qty
