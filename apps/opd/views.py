# opd/views.py
import logging

from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiResponse
from rest_framework import viewsets, filters, status
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from common.drf_auth import RolePermission, STAFF_ROLES, ADMIN, DOCTOR, PATIENT
from common.exceptions import error_response
from . import services
from .models import OPDRecord
from .serializers import (
    OPDRecordListSerializer,
    OPDRecordDetailSerializer,
    OPDRecordCreateSerializer,
    OPDRecordWriteSerializer,
    AddPrescriptionsSerializer,
    OPDStatsSerializer,
)

logger = logging.getLogger(__name__)


@extend_schema_view(
    list=extend_schema(summary="List OPD Records", tags=['OPD']),
    retrieve=extend_schema(summary="Get OPD Record", tags=['OPD']),
    update=extend_schema(summary="Update OPD Record", tags=['OPD']),
    partial_update=extend_schema(summary="Partially Update OPD Record", tags=['OPD']),
    destroy=extend_schema(summary="Delete OPD Record", tags=['OPD']),
)
class OPDRecordViewSet(viewsets.ModelViewSet):
    """
    Outpatient consultation records.

    Patients calling with their own token see only their own records.
    """
    queryset = OPDRecord.objects.select_related('patient', 'doctor')
    permission_classes = [RolePermission]
    role_permissions = {
        'list': STAFF_ROLES + [PATIENT],
        'retrieve': STAFF_ROLES + [PATIENT],
        'patient_history': STAFF_ROLES + [PATIENT],
        'create': [ADMIN, DOCTOR],
        'update': [ADMIN, DOCTOR],
        'partial_update': [ADMIN, DOCTOR],
        'prescriptions': [ADMIN, DOCTOR],
        'destroy': [ADMIN],
        'stats': STAFF_ROLES,
    }

    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['patient', 'doctor', 'appointment', 'follow_up_date']
    search_fields = ['record_id', 'diagnosis', 'patient__first_name', 'patient__last_name', 'patient__patient_id']
    ordering_fields = ['visit_date', 'created_at']
    ordering = ['-visit_date']

    def get_serializer_class(self):
        if self.action == 'list':
            return OPDRecordListSerializer
        elif self.action == 'create':
            return OPDRecordCreateSerializer
        elif self.action in ['update', 'partial_update']:
            return OPDRecordWriteSerializer
        return OPDRecordDetailSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        if getattr(self.request.user, 'role', None) == PATIENT:
            queryset = queryset.filter(patient__user_id=self.request.user.id)
        return queryset

    def _detail(self, record, status_code=status.HTTP_200_OK, message=None):
        record = self.get_queryset().prefetch_related('prescriptions').get(pk=record.pk)
        body = {'success': True, 'data': OPDRecordDetailSerializer(record).data}
        if message:
            body['message'] = message
        return Response(body, status=status_code)

    @extend_schema(
        summary="Record OPD Visit",
        request=OPDRecordCreateSerializer,
        responses={
            201: OPDRecordDetailSerializer,
            409: OpenApiResponse(description="Appointment already has a record"),
        },
        tags=['OPD']
    )
    def create(self, request, *args, **kwargs):
        serializer = OPDRecordCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        record = services.create_record(
            patient_pk=data.pop('patient'),
            doctor_pk=data.pop('doctor'),
            actor_id=request.user.id,
            appointment_pk=data.pop('appointment', None),
            prescriptions=[dict(item) for item in data.pop('prescriptions', [])],
            **data
        )
        return self._detail(record, status.HTTP_201_CREATED, 'OPD record created')

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        instance = self.get_object()
        serializer = OPDRecordWriteSerializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        logger.info(f"OPD record {instance.record_id} updated by {request.user.id}")
        return self._detail(instance)

    def perform_destroy(self, instance):
        record_id = instance.record_id
        instance.delete()
        logger.info(f"OPD record {record_id} deleted")

    @extend_schema(summary="Add Prescriptions", request=AddPrescriptionsSerializer, tags=['OPD'])
    @action(detail=True, methods=['post'])
    def prescriptions(self, request, pk=None):
        record = self.get_object()
        serializer = AddPrescriptionsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        record = services.add_prescriptions(
            record.pk,
            [dict(item) for item in serializer.validated_data['prescriptions']],
            actor_id=request.user.id,
        )
        return self._detail(record, status.HTTP_201_CREATED, 'Prescriptions added')

    @extend_schema(summary="Patient OPD History", responses={200: OPDRecordListSerializer(many=True)}, tags=['OPD'])
    @action(detail=False, methods=['get'], url_path=r'patient/(?P<patient_pk>\d+)')
    def patient_history(self, request, patient_pk=None):
        if request.user.role == PATIENT:
            from apps.patients.models import Patient
            if not Patient.objects.filter(pk=patient_pk, user_id=request.user.id).exists():
                return error_response(
                    'permission_denied',
                    'Patients can only view their own visit history',
                    status_code=status.HTTP_403_FORBIDDEN,
                )

        records = services.patient_history(patient_pk).prefetch_related('prescriptions')
        serializer = OPDRecordDetailSerializer(records, many=True)
        return Response({'success': True, 'count': len(serializer.data), 'data': serializer.data})

    @extend_schema(summary="OPD Statistics", responses={200: OPDStatsSerializer}, tags=['OPD'])
    @action(detail=False, methods=['get'])
    def stats(self, request):
        queryset = self.get_queryset()
        if request.user.role == DOCTOR:
            queryset = queryset.filter(doctor__user_id=request.user.id)
        return Response({'success': True, 'data': services.opd_stats(queryset=queryset)})

