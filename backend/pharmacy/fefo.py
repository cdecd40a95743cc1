"""
FEFO (First Expiry First Out) batch allocation.

allocate() expects batches that are already non-expired, in stock and sorted
by expiry ascending (see services.fefo_batches). It does not re-sort or
re-filter, so batches sharing an expiry date are drawn in the order given.
"""
from dataclasses import dataclass
from datetime import date
from typing import Any

from core.exceptions import InsufficientStock, InvalidArgument


@dataclass(frozen=True)
class Allocation:
    batch: Any
    quantity: int

    @property
    def batch_id(self):
        return self.batch.id

    @property
    def batch_no(self):
        return self.batch.batch_no

    @property
    def expiry_date(self):
        return self.batch.expiry_date


def allocate(available_batches, requested_qty, item_name=None) -> list:
    """
    Decide how many units to draw from each batch, earliest expiry first.

    Either the whole request is covered or InsufficientStock is raised; a
    partial allocation is never returned.
    """
    if isinstance(requested_qty, bool) or not isinstance(requested_qty, int) or requested_qty <= 0:
        raise InvalidArgument("Requested quantity must be greater than 0.")

    # a batch listed twice is only counted and drawn once
    batches, seen = [], set()
    for batch in available_batches:
        if batch.qty_available > 0 and batch.id not in seen:
            batches.append(batch)
            seen.add(batch.id)

    total_available = sum(b.qty_available for b in batches)
    if total_available < requested_qty:
        raise InsufficientStock(requested_qty, total_available, item_name=item_name)

    allocations = []
    remaining = requested_qty
    for batch in batches:
        if remaining == 0:
            break
        take = min(batch.qty_available, remaining)
        allocations.append(Allocation(batch=batch, quantity=take))
        remaining -= take

    return allocations


def filter_non_expired(batches, today=None) -> list:
    """Keep batches whose expiry date is strictly after today."""
    today = today or date.today()
    return [b for b in batches if b.expiry_date > today]
