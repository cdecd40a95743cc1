from rest_framework import serializers
from core.money import paise_to_rupees
from .models import Medicine, StockBatch, Sale, SaleItem
from .services import SaleLineRequest, SaleRequest


class RupeesField(serializers.ReadOnlyField):
    """Read-only rupee string ("100.50") for an integer paise attribute."""

    def to_representation(self, value):
        return paise_to_rupees(value)


class MedicineSerializer(serializers.ModelSerializer):
    medicine_id = serializers.UUIDField(source='id', read_only=True)

    class Meta:
        model = Medicine
        fields = '__all__'
        read_only_fields = ['medicine_id', 'created_at', 'updated_at']


class StockBatchSerializer(serializers.ModelSerializer):
    batch_id = serializers.UUIDField(source='id', read_only=True)
    medicine_name = serializers.CharField(source='medicine.name', read_only=True)
    mrp_display = RupeesField(source='mrp')
    selling_price_display = RupeesField(source='selling_price')

    class Meta:
        model = StockBatch
        fields = '__all__'
        read_only_fields = ['batch_id', 'created_at', 'updated_at']


class AllocationSerializer(serializers.Serializer):
    batch_id = serializers.UUIDField(read_only=True)
    batch_no = serializers.CharField(read_only=True)
    expiry_date = serializers.DateField(read_only=True)
    quantity = serializers.IntegerField(read_only=True)


class SaleItemSerializer(serializers.ModelSerializer):
    item_id = serializers.UUIDField(source='id', read_only=True)
    med_name = serializers.CharField(source='medicine.name', read_only=True)
    batch_no = serializers.CharField(source='batch.batch_no', read_only=True)
    expiry_date = serializers.DateField(source='batch.expiry_date', read_only=True)
    total_display = RupeesField(source='total')

    class Meta:
        model = SaleItem
        exclude = ['sale']


class SaleSerializer(serializers.ModelSerializer):
    sale_id = serializers.UUIDField(source='id', read_only=True)
    customer_name = serializers.CharField(source='customer.name', read_only=True, default=None)
    items = SaleItemSerializer(many=True, read_only=True)
    grand_total_display = RupeesField(source='grand_total')

    class Meta:
        model = Sale
        fields = '__all__'


class SaleLineRequestSerializer(serializers.Serializer):
    medicine = serializers.UUIDField()
    qty = serializers.IntegerField(min_value=1)
    # paise
    discount = serializers.IntegerField(min_value=0, default=0)
    unit_price = serializers.IntegerField(min_value=0, required=False, allow_null=True, default=None)


class SaleRequestSerializer(serializers.Serializer):
    customer = serializers.UUIDField(required=False, allow_null=True, default=None)
    payment_mode = serializers.ChoiceField(choices=Sale.PAYMENT_MODE_CHOICES, default='CASH')
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    invoice_number = serializers.CharField(required=False, allow_blank=True, max_length=30, default='')
    items = SaleLineRequestSerializer(many=True, allow_empty=False)

    def to_request(self):
        data = self.validated_data
        return SaleRequest(
            lines=[
                SaleLineRequest(
                    medicine_id=item['medicine'],
                    quantity=item['qty'],
                    discount=item['discount'],
                    unit_price=item['unit_price'],
                )
                for item in data['items']
            ],
            customer_id=data['customer'],
            payment_mode=data['payment_mode'],
            notes=data['notes'],
            invoice_number=data['invoice_number'] or None,
        )


class QuotedLineSerializer(serializers.Serializer):
    medicine_id = serializers.UUIDField(source='medicine.id')
    medicine_name = serializers.CharField(source='medicine.name')
    batch_id = serializers.UUIDField(source='batch.id')
    batch_no = serializers.CharField(source='batch.batch_no')
    expiry_date = serializers.DateField(source='batch.expiry_date')
    quantity = serializers.IntegerField(source='computation.quantity')
    unit_price = serializers.IntegerField(source='computation.unit_price')
    discount = serializers.IntegerField(source='computation.discount')
    taxable_amount = serializers.IntegerField(source='computation.taxable_amount')
    cgst_rate = serializers.DecimalField(source='computation.cgst_rate', max_digits=6, decimal_places=3)
    cgst_amount = serializers.IntegerField(source='computation.cgst_amount')
    sgst_rate = serializers.DecimalField(source='computation.sgst_rate', max_digits=6, decimal_places=3)
    sgst_amount = serializers.IntegerField(source='computation.sgst_amount')
    total = serializers.IntegerField(source='computation.total')


class InvoiceTotalsSerializer(serializers.Serializer):
    subtotal = serializers.IntegerField()
    discount = serializers.IntegerField()
    total_cgst = serializers.IntegerField()
    total_sgst = serializers.IntegerField()
    total_gst = serializers.IntegerField()
    grand_total = serializers.IntegerField()
    grand_total_display = RupeesField(source='grand_total')


class SaleQuoteSerializer(serializers.Serializer):
    lines = QuotedLineSerializer(many=True)
    totals = InvoiceTotalsSerializer()
