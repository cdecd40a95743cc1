import logging
import uuid
from decimal import Decimal

import pytest
from django.db import DatabaseError

from core.exceptions import CeilingViolation, InsufficientStock, InvalidArgument, TransactionFailure
from pharmacy.models import Medicine, PharmacySettings, Sale, SaleItem, StockBatch
from pharmacy.services import (
    SaleLineRequest, SaleRequest, fefo_batches, quote_sale, record_sale, restock_batch
)

pytestmark = pytest.mark.django_db


def qty_of(batch):
    return StockBatch.objects.get(pk=batch.pk).qty_available


def counter():
    return PharmacySettings.objects.get(pk=1).next_invoice_number


def test_fefo_batches_skips_expired_and_empty(medicine, make_batch):
    expired = make_batch(medicine, 'EXP', 10, days_to_expiry=-5)
    expires_today = make_batch(medicine, 'TODAY', 10, days_to_expiry=0)
    empty = make_batch(medicine, 'EMPTY', 0, days_to_expiry=10)
    late = make_batch(medicine, 'LATE', 10, days_to_expiry=200)
    soon = make_batch(medicine, 'SOON', 10, days_to_expiry=30)

    batches = fefo_batches(medicine.pk)
    assert [b.batch_no for b in batches] == ['SOON', 'LATE']
    assert expired not in batches and expires_today not in batches and empty not in batches
    assert late in batches and soon in batches


def test_record_sale_writes_header_items_and_stock(store, medicine, customer, make_batch):
    batch = make_batch(medicine, 'A1', 10)

    sale_id = record_sale(SaleRequest(
        lines=[SaleLineRequest(medicine_id=medicine.pk, quantity=2, discount=200)],
        customer_id=customer.pk,
        payment_mode='UPI',
    ))

    sale = Sale.objects.get(pk=sale_id)
    assert sale.invoice_number == 'INV-000001'
    assert sale.customer == customer
    assert sale.payment_mode == 'UPI'
    assert sale.subtotal == 9600
    assert sale.discount == 200
    assert sale.grand_total == 9400
    assert sale.total_cgst + sale.total_sgst == sale.total_gst

    item = sale.items.get()
    assert item.batch == batch
    assert item.quantity == 2
    assert item.taxable_amount == 8952
    assert item.total == 9400
    assert item.hsn_code == '3004'
    assert qty_of(batch) == 8
    assert counter() == 2


def test_fractional_slab_keeps_exact_half_rates(store, make_batch):
    medicine = Medicine.objects.create(name='Ayurvedic Balm', gst_rate=Decimal('0.25'))
    make_batch(medicine, 'AB1', 5)

    sale_id = record_sale(SaleRequest(lines=[SaleLineRequest(medicine_id=medicine.pk, quantity=1)]))

    item = SaleItem.objects.get(sale_id=sale_id)
    assert item.cgst_rate == Decimal('0.125')
    assert item.sgst_rate == Decimal('0.125')


def test_invoice_numbers_run_in_sequence(store, medicine, make_batch):
    make_batch(medicine, 'A1', 10)
    request = SaleRequest(lines=[SaleLineRequest(medicine_id=medicine.pk, quantity=1)])

    first = Sale.objects.get(pk=record_sale(request))
    second = Sale.objects.get(pk=record_sale(request))
    assert (first.invoice_number, second.invoice_number) == ('INV-000001', 'INV-000002')


def test_invoice_prefix_comes_from_settings(store, medicine, make_batch):
    store.invoice_prefix = 'PC'
    store.next_invoice_number = 41
    store.save()
    make_batch(medicine, 'A1', 10)

    sale_id = record_sale(SaleRequest(lines=[SaleLineRequest(medicine_id=medicine.pk, quantity=1)]))
    assert Sale.objects.get(pk=sale_id).invoice_number == 'PC-000041'


def test_sale_splits_across_batches_in_expiry_order(store, medicine, make_batch):
    early = make_batch(medicine, 'EARLY', 3, days_to_expiry=20, selling_price=4800)
    later = make_batch(medicine, 'LATER', 10, days_to_expiry=300, selling_price=4500)

    sale_id = record_sale(SaleRequest(
        lines=[SaleLineRequest(medicine_id=medicine.pk, quantity=5, discount=100)]
    ))

    items = list(SaleItem.objects.filter(sale_id=sale_id).order_by('batch__expiry_date'))
    assert [(i.batch_id, i.quantity, i.unit_price) for i in items] == [
        (early.pk, 3, 4800), (later.pk, 2, 4500),
    ]
    assert sum(i.discount for i in items) == 100
    assert qty_of(early) == 0
    assert qty_of(later) == 8

    sale = Sale.objects.get(pk=sale_id)
    assert sale.grand_total == sum(i.total for i in items)


def test_insufficient_stock_writes_nothing(store, medicine, make_batch):
    batch = make_batch(medicine, 'A1', 3)
    make_batch(medicine, 'OLD', 50, days_to_expiry=-1)

    with pytest.raises(InsufficientStock) as excinfo:
        record_sale(SaleRequest(lines=[SaleLineRequest(medicine_id=medicine.pk, quantity=4)]))

    assert excinfo.value.available == 3
    assert Sale.objects.count() == 0
    assert qty_of(batch) == 3
    assert counter() == 1


def test_failure_on_second_line_rolls_back_the_first(store, medicine, make_batch):
    other = Medicine.objects.create(name='Amoxicillin 250mg', gst_rate=12)
    batch = make_batch(medicine, 'A1', 10)
    make_batch(other, 'B1', 1)

    with pytest.raises(InsufficientStock):
        record_sale(SaleRequest(lines=[
            SaleLineRequest(medicine_id=medicine.pk, quantity=2),
            SaleLineRequest(medicine_id=other.pk, quantity=5),
        ]))

    assert Sale.objects.count() == 0
    assert SaleItem.objects.count() == 0
    assert qty_of(batch) == 10


def test_price_raised_above_mrp_after_quote_is_caught_at_commit(store, medicine, make_batch):
    batch = make_batch(medicine, 'A1', 10, mrp=5000, selling_price=4800)
    request = SaleRequest(lines=[SaleLineRequest(medicine_id=medicine.pk, quantity=1)])
    assert quote_sale(request).totals.grand_total == 4800

    StockBatch.objects.filter(pk=batch.pk).update(selling_price=5200)

    with pytest.raises(CeilingViolation) as excinfo:
        record_sale(request)
    assert excinfo.value.selling_price == 5200
    assert excinfo.value.ceiling_price == 5000
    assert 'A1' in excinfo.value.item_name
    assert Sale.objects.count() == 0
    assert qty_of(batch) == 10
    assert counter() == 1


def test_price_override_is_checked_against_mrp(store, medicine, make_batch):
    make_batch(medicine, 'A1', 10, mrp=5000)

    with pytest.raises(CeilingViolation):
        record_sale(SaleRequest(lines=[SaleLineRequest(medicine_id=medicine.pk, quantity=1, unit_price=5001)]))

    sale_id = record_sale(SaleRequest(lines=[SaleLineRequest(medicine_id=medicine.pk, quantity=1, unit_price=5000)]))
    assert Sale.objects.get(pk=sale_id).items.get().unit_price == 5000


def test_database_failure_becomes_transaction_failure(store, medicine, make_batch, monkeypatch, caplog):
    batch = make_batch(medicine, 'A1', 10)

    def broken_decrement(batch, quantity):
        raise DatabaseError('disk I/O error')

    monkeypatch.setattr('pharmacy.services._decrement_batch', broken_decrement)

    with caplog.at_level(logging.ERROR, logger='pharmacy.services'):
        with pytest.raises(TransactionFailure):
            record_sale(SaleRequest(lines=[SaleLineRequest(medicine_id=medicine.pk, quantity=2)]))

    assert 'rolled back' in caplog.text
    assert Sale.objects.count() == 0
    assert SaleItem.objects.count() == 0
    assert qty_of(batch) == 10
    assert counter() == 1


def test_counter_skips_numbers_taken_by_manual_invoices(store, medicine, make_batch):
    make_batch(medicine, 'A1', 10)
    line = SaleLineRequest(medicine_id=medicine.pk, quantity=1)
    record_sale(SaleRequest(lines=[line], invoice_number='INV-000001'))
    record_sale(SaleRequest(lines=[line], invoice_number='INV-000002'))

    numbers = [
        Sale.objects.get(pk=record_sale(SaleRequest(lines=[line]))).invoice_number
        for _ in range(3)
    ]

    assert numbers == ['INV-000003', 'INV-000004', 'INV-000005']
    assert counter() == 6


def test_duplicate_invoice_number_becomes_transaction_failure(store, medicine, make_batch):
    batch = make_batch(medicine, 'A1', 10)
    line = SaleLineRequest(medicine_id=medicine.pk, quantity=1)
    record_sale(SaleRequest(lines=[line], invoice_number='MANUAL-1'))

    with pytest.raises(TransactionFailure):
        record_sale(SaleRequest(lines=[line], invoice_number='MANUAL-1'))

    assert Sale.objects.count() == 1
    assert qty_of(batch) == 9


@pytest.mark.parametrize('request_kwargs', [
    {'lines': []},
    {'payment_mode': 'CHEQUE'},
    {'customer_id': uuid.uuid4()},
    {'customer_id': 'not-a-uuid'},
])
def test_invalid_requests(store, medicine, make_batch, request_kwargs):
    make_batch(medicine, 'A1', 10)
    kwargs = {'lines': [SaleLineRequest(medicine_id=medicine.pk, quantity=1)]}
    kwargs.update(request_kwargs)

    with pytest.raises(InvalidArgument):
        record_sale(SaleRequest(**kwargs))
    assert Sale.objects.count() == 0


def test_same_medicine_twice_is_rejected(store, medicine, make_batch):
    make_batch(medicine, 'A1', 10)
    line = SaleLineRequest(medicine_id=medicine.pk, quantity=1)
    with pytest.raises(InvalidArgument):
        quote_sale(SaleRequest(lines=[line, line]))


def test_unknown_or_inactive_medicine(store, medicine, make_batch):
    make_batch(medicine, 'A1', 10)
    medicine.is_active = False
    medicine.save()

    with pytest.raises(InvalidArgument):
        quote_sale(SaleRequest(lines=[SaleLineRequest(medicine_id=medicine.pk, quantity=1)]))
    with pytest.raises(InvalidArgument):
        quote_sale(SaleRequest(lines=[SaleLineRequest(medicine_id=uuid.uuid4(), quantity=1)]))


def test_discount_larger_than_line_is_rejected(store, medicine, make_batch):
    make_batch(medicine, 'A1', 10, selling_price=4800)
    with pytest.raises(InvalidArgument):
        record_sale(SaleRequest(lines=[SaleLineRequest(medicine_id=medicine.pk, quantity=1, discount=4801)]))
    assert Sale.objects.count() == 0


def test_quote_writes_nothing(store, medicine, make_batch):
    batch = make_batch(medicine, 'A1', 10)
    quote = quote_sale(SaleRequest(lines=[SaleLineRequest(medicine_id=medicine.pk, quantity=2, discount=200)]))

    assert len(quote.lines) == 1
    assert quote.lines[0].batch == batch
    assert quote.totals.grand_total == 9400
    assert Sale.objects.count() == 0
    assert qty_of(batch) == 10
    assert counter() == 1


def test_restock_batch(medicine, make_batch):
    batch = make_batch(medicine, 'A1', 4)
    assert restock_batch(batch.pk, 6) == 10
    assert qty_of(batch) == 10


@pytest.mark.parametrize('qty', [0, -2, 1.5, True])
def test_restock_rejects_bad_quantity(medicine, make_batch, qty):
    batch = make_batch(medicine, 'A1', 4)
    with pytest.raises(InvalidArgument):
        restock_batch(batch.pk, qty)
    assert qty_of(batch) == 4


def test_restock_unknown_batch(db):
    with pytest.raises(InvalidArgument):
        restock_batch(uuid.uuid4(), 3)
