# diagnostics/views.py
import logging

from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiParameter, OpenApiResponse
from rest_framework import viewsets, filters, status
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from common.drf_auth import RolePermission, STAFF_ROLES, ADMIN, DOCTOR, NURSE, PATIENT, LAB
from common.exceptions import error_response
from . import services
from .models import LabTest, LabOrder
from .serializers import (
    LabTestSerializer,
    LabOrderListSerializer,
    LabOrderDetailSerializer,
    LabOrderCreateSerializer,
    LabResultSerializer,
    LabStatsSerializer,
)

logger = logging.getLogger(__name__)


@extend_schema_view(
    list=extend_schema(
        summary="List Lab Tests",
        parameters=[OpenApiParameter('include_inactive', bool, description='Include deactivated tests')],
        tags=['Lab - Tests']
    ),
    create=extend_schema(summary="Create Lab Test", tags=['Lab - Tests']),
    retrieve=extend_schema(summary="Get Lab Test", tags=['Lab - Tests']),
    update=extend_schema(summary="Update Lab Test", tags=['Lab - Tests']),
    partial_update=extend_schema(summary="Partially Update Lab Test", tags=['Lab - Tests']),
    destroy=extend_schema(summary="Deactivate Lab Test", tags=['Lab - Tests']),
)
class LabTestViewSet(viewsets.ModelViewSet):
    """
    Lab test catalog.

    Deleting a test deactivates it; past orders keep pointing at it.
    """
    queryset = LabTest.objects.all()
    serializer_class = LabTestSerializer
    permission_classes = [RolePermission]
    role_permissions = {
        'list': STAFF_ROLES + [LAB],
        'retrieve': STAFF_ROLES + [LAB],
        'categories': STAFF_ROLES + [LAB],
        'create': [ADMIN, LAB],
        'update': [ADMIN, LAB],
        'partial_update': [ADMIN, LAB],
        'destroy': [ADMIN],
    }

    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['category', 'is_active']
    search_fields = ['name', 'code', 'test_id']
    ordering_fields = ['name', 'price', 'category']
    ordering = ['category', 'name']

    def get_queryset(self):
        queryset = super().get_queryset()
        include_inactive = self.request.query_params.get('include_inactive', '').lower() == 'true'
        if self.action == 'list' and not include_inactive:
            queryset = queryset.filter(is_active=True)
        return queryset

    def perform_create(self, serializer):
        test = serializer.save()
        logger.info(f"Lab test {test.test_id} ({test.code}) created")

    def destroy(self, request, *args, **kwargs):
        test = self.get_object()
        test.is_active = False
        test.save(update_fields=['is_active', 'updated_at'])
        logger.info(f"Lab test {test.test_id} deactivated")
        return Response({'success': True, 'message': 'Lab test deactivated'})

    @extend_schema(summary="Lab Test Categories", tags=['Lab - Tests'])
    @action(detail=False, methods=['get'])
    def categories(self, request):
        data = [{'value': value, 'label': label} for value, label in LabTest.CATEGORY_CHOICES]
        return Response({'success': True, 'data': data})


@extend_schema_view(
    list=extend_schema(summary="List Lab Orders", tags=['Lab - Orders']),
    retrieve=extend_schema(summary="Get Lab Order", tags=['Lab - Orders']),
)
class LabOrderViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Lab orders and their sample/result steps.

    Orders only change through the lifecycle actions. Patients calling with
    their own token see only their own orders.
    """
    queryset = LabOrder.objects.select_related('patient', 'test', 'doctor')
    permission_classes = [RolePermission]
    role_permissions = {
        'list': STAFF_ROLES + [LAB, PATIENT],
        'retrieve': STAFF_ROLES + [LAB, PATIENT],
        'patient_history': STAFF_ROLES + [LAB, PATIENT],
        'create': [ADMIN, DOCTOR, LAB],
        'collect_sample': [ADMIN, LAB, NURSE],
        'result': [ADMIN, LAB],
        'cancel': [ADMIN, DOCTOR, LAB],
        'stats': [ADMIN, LAB],
    }

    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['patient', 'test', 'doctor', 'opd_record', 'status', 'priority', 'is_abnormal']
    search_fields = ['order_id', 'test__name', 'test__code', 'patient__first_name', 'patient__last_name', 'patient__patient_id']
    ordering_fields = ['order_date', 'priority', 'status']
    ordering = ['-order_date']

    def get_serializer_class(self):
        if self.action == 'list':
            return LabOrderListSerializer
        return LabOrderDetailSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        if getattr(self.request.user, 'role', None) == PATIENT:
            queryset = queryset.filter(patient__user_id=self.request.user.id)
        return queryset

    def _detail(self, order, status_code=status.HTTP_200_OK, message=None):
        order = self.get_queryset().get(pk=order.pk)
        body = {'success': True, 'data': LabOrderDetailSerializer(order).data}
        if message:
            body['message'] = message
        return Response(body, status=status_code)

    @extend_schema(
        summary="Order Lab Test",
        request=LabOrderCreateSerializer,
        responses={
            201: LabOrderDetailSerializer,
            400: OpenApiResponse(description="Test is inactive"),
            404: OpenApiResponse(description="Unknown patient, test, doctor or OPD record"),
        },
        tags=['Lab - Orders']
    )
    def create(self, request, *args, **kwargs):
        serializer = LabOrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = services.create_order(
            data['patient'],
            data['test'],
            actor_id=request.user.id,
            doctor_pk=data.get('doctor'),
            opd_record_pk=data.get('opd_record'),
            priority=data['priority'],
            notes=data['notes'],
        )
        return self._detail(order, status.HTTP_201_CREATED, 'Lab order created')

    @extend_schema(summary="Collect Sample", request=None, tags=['Lab - Orders'])
    @action(detail=True, methods=['post'], url_path='collect-sample')
    def collect_sample(self, request, pk=None):
        order = services.collect_sample(self.get_object().pk, actor_id=request.user.id)
        return self._detail(order, message='Sample collected')

    @extend_schema(summary="Enter Result", request=LabResultSerializer, tags=['Lab - Orders'])
    @action(detail=True, methods=['post'])
    def result(self, request, pk=None):
        order = self.get_object()
        serializer = LabResultSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = services.record_result(
            order.pk,
            data['value'],
            actor_id=request.user.id,
            unit=data['unit'],
            is_abnormal=data['is_abnormal'],
            notes=data['notes'],
        )
        return self._detail(order, message='Result recorded')

    @extend_schema(summary="Cancel Lab Order", request=None, tags=['Lab - Orders'])
    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        order = services.cancel_order(self.get_object().pk)
        return self._detail(order, message='Lab order cancelled')

    @extend_schema(summary="Patient Lab History", responses={200: LabOrderDetailSerializer(many=True)}, tags=['Lab - Orders'])
    @action(detail=False, methods=['get'], url_path=r'patient/(?P<patient_pk>\d+)')
    def patient_history(self, request, patient_pk=None):
        if request.user.role == PATIENT:
            from apps.patients.models import Patient
            if not Patient.objects.filter(pk=patient_pk, user_id=request.user.id).exists():
                return error_response(
                    'permission_denied',
                    'Patients can only view their own lab history',
                    status_code=status.HTTP_403_FORBIDDEN,
                )

        serializer = LabOrderDetailSerializer(services.patient_history(patient_pk), many=True)
        return Response({'success': True, 'count': len(serializer.data), 'data': serializer.data})

    @extend_schema(summary="Lab Statistics", responses={200: LabStatsSerializer}, tags=['Lab - Orders'])
    @action(detail=False, methods=['get'])
    def stats(self, request):
        return Response({'success': True, 'data': services.lab_stats()})
