# pharmacy/views.py
import logging

from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiParameter, OpenApiResponse
from rest_framework import viewsets, filters, status
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from common.drf_auth import RolePermission, STAFF_ROLES, ADMIN, PHARMACY
from . import services
from .models import Medicine
from .serializers import (
    MedicineSerializer,
    MedicineCreateSerializer,
    MedicineListSerializer,
    StockUpdateSerializer,
    ExpiryWindowSerializer,
    PharmacyStatsSerializer,
)

logger = logging.getLogger(__name__)

INVENTORY_ROLES = [ADMIN, PHARMACY]


@extend_schema_view(
    list=extend_schema(
        summary="List Medicines",
        parameters=[
            OpenApiParameter('include_inactive', bool, description='Include deactivated medicines'),
            OpenApiParameter('low_stock', bool, description='Only medicines at or below their minimum level'),
        ],
        tags=['Pharmacy']
    ),
    create=extend_schema(summary="Add Medicine", request=MedicineCreateSerializer, tags=['Pharmacy']),
    retrieve=extend_schema(summary="Get Medicine", tags=['Pharmacy']),
    update=extend_schema(summary="Update Medicine", tags=['Pharmacy']),
    partial_update=extend_schema(summary="Partially Update Medicine", tags=['Pharmacy']),
    destroy=extend_schema(summary="Deactivate Medicine", tags=['Pharmacy']),
)
class MedicineViewSet(viewsets.ModelViewSet):
    """
    Medicine inventory.

    Deleting a medicine deactivates it. Stock levels are changed through
    the ``stock`` action only.
    """
    queryset = Medicine.objects.all()
    permission_classes = [RolePermission]
    role_permissions = {
        'list': STAFF_ROLES + [PHARMACY],
        'retrieve': STAFF_ROLES + [PHARMACY],
        'categories': STAFF_ROLES + [PHARMACY],
        'create': INVENTORY_ROLES,
        'update': INVENTORY_ROLES,
        'partial_update': INVENTORY_ROLES,
        'stock': INVENTORY_ROLES,
        'low_stock': INVENTORY_ROLES,
        'expired': INVENTORY_ROLES,
        'expiring_soon': INVENTORY_ROLES,
        'stats': INVENTORY_ROLES,
        'destroy': [ADMIN],
    }

    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['category', 'manufacturer', 'prescription_required', 'is_active']
    search_fields = ['name', 'generic_name', 'medicine_id', 'batch_number']
    ordering_fields = ['name', 'stock', 'expiry_date', 'selling_price', 'created_at']
    ordering = ['name']

    def get_serializer_class(self):
        if self.action == 'list':
            return MedicineListSerializer
        elif self.action == 'create':
            return MedicineCreateSerializer
        return MedicineSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action == 'list':
            if self.request.query_params.get('include_inactive', '').lower() != 'true':
                queryset = queryset.filter(is_active=True)
            if self.request.query_params.get('low_stock', '').lower() == 'true':
                queryset = services.low_stock(queryset)
        return queryset

    def perform_create(self, serializer):
        medicine = serializer.save()
        logger.info(f"Medicine {medicine.medicine_id} ({medicine.name}, batch {medicine.batch_number}) added")

    def destroy(self, request, *args, **kwargs):
        medicine = self.get_object()
        medicine.is_active = False
        medicine.save(update_fields=['is_active', 'updated_at'])
        logger.info(f"Medicine {medicine.medicine_id} deactivated")
        return Response({'success': True, 'message': 'Medicine deactivated'})

    def _listing(self, queryset, **extra):
        serializer = MedicineListSerializer(queryset, many=True)
        body = {'success': True, 'count': len(serializer.data)}
        body.update(extra)
        body['data'] = serializer.data
        return Response(body)

    @extend_schema(
        summary="Update Stock",
        request=StockUpdateSerializer,
        responses={
            200: MedicineSerializer,
            400: OpenApiResponse(description="Insufficient stock"),
        },
        tags=['Pharmacy']
    )
    @action(detail=True, methods=['post', 'put'])
    def stock(self, request, pk=None):
        medicine = self.get_object()
        serializer = StockUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        medicine = services.update_stock(
            medicine.pk,
            serializer.validated_data['operation'],
            serializer.validated_data['quantity'],
        )
        return Response({'success': True, 'data': MedicineSerializer(medicine).data, 'message': 'Stock updated'})

    @extend_schema(summary="Low Stock Medicines", tags=['Pharmacy'])
    @action(detail=False, methods=['get'], url_path='low-stock')
    def low_stock(self, request):
        return self._listing(services.low_stock())

    @extend_schema(summary="Expired Medicines", tags=['Pharmacy'])
    @action(detail=False, methods=['get'])
    def expired(self, request):
        return self._listing(services.expired())

    @extend_schema(
        summary="Medicines Expiring Soon",
        parameters=[OpenApiParameter('days', int, description='Window in days (default 30)')],
        tags=['Pharmacy']
    )
    @action(detail=False, methods=['get'], url_path='expiring-soon')
    def expiring_soon(self, request):
        query = ExpiryWindowSerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        days = query.validated_data['days']
        return self._listing(services.expiring_soon(days=days), threshold_days=days)

    @extend_schema(summary="Pharmacy Statistics", responses={200: PharmacyStatsSerializer}, tags=['Pharmacy'])
    @action(detail=False, methods=['get'])
    def stats(self, request):
        return Response({'success': True, 'data': PharmacyStatsSerializer(services.pharmacy_stats()).data})

    @extend_schema(summary="Medicine Categories", tags=['Pharmacy'])
    @action(detail=False, methods=['get'])
    def categories(self, request):
        data = [{'value': value, 'label': label} for value, label in Medicine.CATEGORY_CHOICES]
        return Response({'success': True, 'data': data})
