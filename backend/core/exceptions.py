class PharmacyError(Exception):
    """Base class for every failure the ledger core reports to its callers."""


class InvalidArgument(PharmacyError, ValueError):
    """Caller passed an out-of-contract value (negative quantity, bad rate...)."""


class InsufficientStock(PharmacyError):

    def __init__(self, requested, available, item_name=None):
        self.requested = requested
        self.available = available
        self.item_name = item_name
        label = f" for {item_name}" if item_name else ""
        super().__init__(
            f"Insufficient stock{label}: requested {requested}, available {available}"
        )


class CeilingViolation(PharmacyError):
    """A selling price is above its MRP. Selling above MRP is prohibited."""

    def __init__(self, item_name, selling_price, ceiling_price):
        self.item_name = item_name
        self.selling_price = selling_price
        self.ceiling_price = ceiling_price
        super().__init__(
            f"{item_name}: selling price {selling_price} paise exceeds MRP {ceiling_price} paise"
        )


class TransactionFailure(PharmacyError):
    """The atomic sale write failed and was rolled back. Safe to retry."""
