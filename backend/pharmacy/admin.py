from django.contrib import admin
from .models import Supplier, Customer, Medicine, StockBatch, PharmacySettings, Sale, SaleItem


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ('supplier_name', 'phone', 'gst_no', 'drug_license_no', 'is_active')


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ('name', 'phone', 'email')
    search_fields = ('name', 'phone')


class StockBatchInline(admin.TabularInline):
    model = StockBatch
    extra = 0


@admin.register(Medicine)
class MedicineAdmin(admin.ModelAdmin):
    list_display = ('name', 'generic_name', 'hsn_code', 'gst_rate', 'reorder_level', 'is_active')
    search_fields = ('name', 'generic_name')
    inlines = [StockBatchInline]


@admin.register(StockBatch)
class StockBatchAdmin(admin.ModelAdmin):
    list_display = ('medicine', 'batch_no', 'expiry_date', 'qty_available', 'mrp', 'selling_price')
    search_fields = ('medicine__name', 'batch_no')
    list_filter = ('expiry_date',)


@admin.register(PharmacySettings)
class PharmacySettingsAdmin(admin.ModelAdmin):
    list_display = ('name', 'gstin', 'invoice_prefix', 'next_invoice_number')
    readonly_fields = ('next_invoice_number',)


class SaleItemInline(admin.TabularInline):
    model = SaleItem
    extra = 0
    can_delete = False

    def has_change_permission(self, request, obj=None):
        return False

    def has_add_permission(self, request, obj=None):
        return False


# Sales are written only through services.record_sale
@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    list_display = ('invoice_number', 'customer', 'grand_total', 'payment_mode', 'sale_date')
    search_fields = ('invoice_number',)
    inlines = [SaleItemInline]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    # deleting a sale would drop its items without putting the stock back
    def has_delete_permission(self, request, obj=None):
        return False
