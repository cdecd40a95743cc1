from uuid import UUID

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets, mixins, filters, serializers, status
from rest_framework.decorators import action
from rest_framework.response import Response

from core.exceptions import CeilingViolation, InsufficientStock, PharmacyError, TransactionFailure
from core.money import paise_to_rupees
from .fefo import allocate
from .filters import SaleFilter
from .models import Medicine, StockBatch, Sale
from .serializers import (
    AllocationSerializer, MedicineSerializer, StockBatchSerializer, SaleSerializer,
    SaleRequestSerializer, SaleQuoteSerializer
)
from .services import fefo_batches, quote_sale, record_sale, restock_batch


def error_response(exc):
    """Translate a ledger error into the API's {"error": ...} shape."""
    if isinstance(exc, InsufficientStock):
        return Response(
            {"error": str(exc), "requested": exc.requested, "available": exc.available},
            status=status.HTTP_409_CONFLICT
        )
    if isinstance(exc, CeilingViolation):
        return Response(
            {
                "error": f"Cannot sell {exc.item_name}: price {paise_to_rupees(exc.selling_price)} "
                         f"exceeds MRP {paise_to_rupees(exc.ceiling_price)}.",
                "item": exc.item_name,
            },
            status=status.HTTP_409_CONFLICT
        )
    if isinstance(exc, TransactionFailure):
        return Response(
            {"error": "Sale could not be completed, please retry."},
            status=status.HTTP_503_SERVICE_UNAVAILABLE
        )
    return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


def _positive_int(raw):
    # 1.9 is refused, not truncated
    try:
        return serializers.IntegerField(min_value=1).run_validation(raw)
    except serializers.ValidationError:
        return None


def _active_medicine(raw):
    try:
        medicine_id = UUID(str(raw))
    except ValueError:
        return None
    return Medicine.objects.filter(pk=medicine_id, is_active=True).first()


class MedicineViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = MedicineSerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_fields = ['is_active', 'gst_rate']
    search_fields = ['name', 'generic_name', 'manufacturer']

    def get_queryset(self):
        return Medicine.objects.order_by('name')


# Read-only: batches enter through purchases and leave through sales
class StockBatchViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = StockBatchSerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['medicine']
    search_fields = ['medicine__name', 'batch_no']
    ordering_fields = ['expiry_date', 'qty_available', 'updated_at']
    ordering = ['expiry_date']

    def get_queryset(self):
        return StockBatch.objects.select_related('medicine').order_by('expiry_date', 'created_at')

    @action(detail=False, methods=['get'], url_path='fefo')
    def fefo(self, request):
        """
        Preview which batches a sale would draw from.
        Input: ?medicine=<uuid>&qty=<n>
        """
        medicine = _active_medicine(request.query_params.get('medicine'))
        if medicine is None:
            return Response({"medicine": ["Unknown medicine."]}, status=status.HTTP_400_BAD_REQUEST)

        qty = _positive_int(request.query_params.get('qty'))
        if qty is None:
            return Response({"qty": ["Quantity must be greater than 0."]}, status=status.HTTP_400_BAD_REQUEST)

        try:
            allocations = allocate(fefo_batches(medicine.pk), qty, item_name=medicine.name)
        except PharmacyError as exc:
            return error_response(exc)
        return Response(AllocationSerializer(allocations, many=True).data)

    @action(detail=True, methods=['post'])
    def restock(self, request, pk=None):
        batch = self.get_object()
        qty = _positive_int(request.data.get('qty'))
        if qty is None:
            return Response({"qty": ["Quantity must be greater than 0."]}, status=status.HTTP_400_BAD_REQUEST)

        try:
            restock_batch(batch.pk, qty)
        except PharmacyError as exc:
            return error_response(exc)
        batch.refresh_from_db()
        return Response(self.get_serializer(batch).data)


class SaleViewSet(mixins.CreateModelMixin, viewsets.ReadOnlyModelViewSet):
    serializer_class = SaleSerializer
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_class = SaleFilter
    ordering_fields = ['sale_date', 'grand_total']

    def get_queryset(self):
        return (
            Sale.objects
            .select_related('customer')
            .prefetch_related('items__medicine', 'items__batch')
            .order_by('-sale_date')
        )

    def create(self, request, *args, **kwargs):
        payload = SaleRequestSerializer(data=request.data)
        payload.is_valid(raise_exception=True)

        try:
            sale_id = record_sale(payload.to_request())
        except PharmacyError as exc:
            return error_response(exc)

        sale = self.get_queryset().get(pk=sale_id)
        return Response(self.get_serializer(sale).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'])
    def quote(self, request):
        """Price a cart without saving it (staging step before checkout)."""
        payload = SaleRequestSerializer(data=request.data)
        payload.is_valid(raise_exception=True)

        try:
            quote = quote_sale(payload.to_request())
        except PharmacyError as exc:
            return error_response(exc)
        return Response(SaleQuoteSerializer(quote).data)
