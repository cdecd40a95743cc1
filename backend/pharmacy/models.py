from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from core.models import BaseModel
from core.money import paise_to_rupees
from .gst import validate_not_above_ceiling


class Supplier(BaseModel):
    supplier_name = models.CharField(max_length=255)
    phone = models.CharField(max_length=20, blank=True)
    address = models.TextField(blank=True)
    gst_no = models.CharField(max_length=20, blank=True)
    drug_license_no = models.CharField(max_length=50, blank=True)
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return self.supplier_name


class Customer(BaseModel):
    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)
    address = models.TextField(blank=True)

    def __str__(self):
        return self.name


class Medicine(BaseModel):
    name = models.CharField(max_length=255, db_index=True)
    generic_name = models.CharField(max_length=255, blank=True)
    manufacturer = models.CharField(max_length=255, blank=True)
    hsn_code = models.CharField(max_length=20, default='3004')
    # GST slab in percent (0, 5, 12, 18); CGST and SGST are each half of it
    gst_rate = models.DecimalField(max_digits=5, decimal_places=2, default=0, validators=[MinValueValidator(0)])
    reorder_level = models.PositiveIntegerField(default=20)
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return self.name


class StockBatch(BaseModel):
    """
    One received lot of a medicine.

    Prices are integer paise. Batches are never deleted: they are drained to
    zero by sales, topped up by returns, or left to expire.
    """
    medicine = models.ForeignKey(Medicine, on_delete=models.PROTECT, related_name='batches')
    supplier = models.ForeignKey(Supplier, on_delete=models.SET_NULL, null=True, blank=True)
    batch_no = models.CharField(max_length=50)
    expiry_date = models.DateField(db_index=True)

    cost_price = models.PositiveBigIntegerField(default=0)
    mrp = models.PositiveBigIntegerField()
    selling_price = models.PositiveBigIntegerField()

    qty_available = models.PositiveIntegerField(default=0)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['medicine', 'batch_no'],
                name='unique_batch_per_medicine'
            )
        ]

    def clean(self):
        if self.selling_price is not None and self.mrp is not None:
            if not validate_not_above_ceiling(self.selling_price, self.mrp):
                raise ValidationError({
                    'selling_price': f"Selling price {paise_to_rupees(self.selling_price)} "
                                     f"exceeds MRP {paise_to_rupees(self.mrp)}."
                })

    def __str__(self):
        return f"{self.medicine.name} ({self.batch_no})"


class PharmacySettings(models.Model):
    """Single-row store settings; also holds the invoice counter."""
    id = models.PositiveSmallIntegerField(primary_key=True, default=1, editable=False)
    name = models.CharField(max_length=255, default='My Pharmacy')
    gstin = models.CharField(max_length=20, blank=True)
    invoice_prefix = models.CharField(max_length=10, default='INV')
    next_invoice_number = models.PositiveIntegerField(default=1)
    near_expiry_days = models.PositiveIntegerField(default=90)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = 'pharmacy settings'

    @classmethod
    def load(cls, for_update=False):
        qs = cls.objects.select_for_update() if for_update else cls.objects
        settings, _ = qs.get_or_create(pk=1)
        return settings

    def __str__(self):
        return self.name


class Sale(BaseModel):
    PAYMENT_MODE_CHOICES = (
        ('CASH', 'Cash'),
        ('CARD', 'Card'),
        ('UPI', 'UPI'),
        ('CREDIT', 'Credit'),
    )

    invoice_number = models.CharField(max_length=30, unique=True)
    customer = models.ForeignKey(Customer, on_delete=models.SET_NULL, null=True, blank=True, related_name='sales')
    sale_date = models.DateTimeField(auto_now_add=True, db_index=True)
    payment_mode = models.CharField(max_length=10, choices=PAYMENT_MODE_CHOICES, default='CASH')
    notes = models.TextField(blank=True)

    # Invoice totals in paise, as computed at sale time
    subtotal = models.PositiveBigIntegerField(default=0)
    discount = models.PositiveBigIntegerField(default=0)
    total_cgst = models.PositiveBigIntegerField(default=0)
    total_sgst = models.PositiveBigIntegerField(default=0)
    total_gst = models.PositiveBigIntegerField(default=0)
    grand_total = models.PositiveBigIntegerField(default=0)

    def __str__(self):
        return f"Sale {self.invoice_number}"


class SaleItem(BaseModel):
    """Snapshot of one priced line; later rate or price edits never touch it."""
    sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name='items')
    batch = models.ForeignKey(StockBatch, on_delete=models.PROTECT, related_name='sale_items')
    medicine = models.ForeignKey(Medicine, on_delete=models.PROTECT, related_name='sale_items')

    quantity = models.PositiveIntegerField()
    unit_price = models.PositiveBigIntegerField()
    discount = models.PositiveBigIntegerField(default=0)
    taxable_amount = models.PositiveBigIntegerField()
    # half of a two-decimal slab needs a third decimal
    cgst_rate = models.DecimalField(max_digits=6, decimal_places=3, default=0)
    cgst_amount = models.PositiveBigIntegerField(default=0)
    sgst_rate = models.DecimalField(max_digits=6, decimal_places=3, default=0)
    sgst_amount = models.PositiveBigIntegerField(default=0)
    total = models.PositiveBigIntegerField()
    hsn_code = models.CharField(max_length=20, blank=True)

    def __str__(self):
        return f"{self.medicine.name} x {self.quantity}"
