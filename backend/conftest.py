from datetime import timedelta

import pytest
from django.utils import timezone

from pharmacy.models import Customer, Medicine, PharmacySettings, StockBatch


@pytest.fixture
def today():
    return timezone.localdate()


@pytest.fixture
def store(db):
    return PharmacySettings.load()


@pytest.fixture
def medicine(db):
    return Medicine.objects.create(name='Paracetamol 500mg', gst_rate=5, reorder_level=10)


@pytest.fixture
def customer(db):
    return Customer.objects.create(name='Asha Menon', phone='9876543210')


@pytest.fixture
def make_batch(db, today):
    def _make(medicine, batch_no, qty, days_to_expiry=365, mrp=5000, selling_price=4800):
        return StockBatch.objects.create(
            medicine=medicine,
            batch_no=batch_no,
            expiry_date=today + timedelta(days=days_to_expiry),
            mrp=mrp,
            selling_price=selling_price,
            cost_price=3500,
            qty_available=qty,
        )
    return _make
