from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import MedicineViewSet, StockBatchViewSet, SaleViewSet

router = DefaultRouter()
router.register(r'medicines', MedicineViewSet, basename='medicines')
router.register(r'stock', StockBatchViewSet, basename='stock')
router.register(r'sales', SaleViewSet, basename='sales')

urlpatterns = [
    path('', include(router.urls)),
]
