# ipd/views.py
import logging

from django.db.models import ProtectedError
from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiParameter, OpenApiResponse
from rest_framework import viewsets, filters, status
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from common.drf_auth import RolePermission, STAFF_ROLES, CLINICAL_ROLES, FRONT_DESK_ROLES, ADMIN, DOCTOR, NURSE, PATIENT
from common.exceptions import Conflict
from . import services
from .models import Ward, Bed, Admission
from .serializers import (
    WardSerializer,
    BedSerializer,
    BedListSerializer,
    BedStatsSerializer,
    AdmissionListSerializer,
    AdmissionDetailSerializer,
    AdmissionUpdateSerializer,
    AdmitSerializer,
    DischargeSerializer,
    TransferSerializer,
    BedTransferSerializer,
    TreatmentNoteSerializer,
    VitalRecordSerializer,
    MedicationEntrySerializer,
    IPDStatsSerializer,
)

logger = logging.getLogger(__name__)


@extend_schema_view(
    list=extend_schema(summary="List Wards", tags=['IPD - Wards']),
    create=extend_schema(summary="Create Ward", tags=['IPD - Wards']),
    retrieve=extend_schema(summary="Get Ward", tags=['IPD - Wards']),
    update=extend_schema(summary="Update Ward", tags=['IPD - Wards']),
    partial_update=extend_schema(summary="Partially Update Ward", tags=['IPD - Wards']),
    destroy=extend_schema(summary="Delete Ward", tags=['IPD - Wards']),
)
class WardViewSet(viewsets.ModelViewSet):
    """ViewSet for Ward management."""

    queryset = Ward.objects.all()
    serializer_class = WardSerializer
    permission_classes = [RolePermission]
    role_permissions = {
        'list': STAFF_ROLES,
        'retrieve': STAFF_ROLES,
        '*': [ADMIN],
    }

    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['ward_type', 'is_active', 'floor']
    search_fields = ['name']
    ordering_fields = ['name', 'floor', 'created_at']
    ordering = ['floor', 'name']

    def perform_destroy(self, instance):
        try:
            instance.delete()
        except ProtectedError:
            raise Conflict('Ward still has beds and cannot be deleted', ward=instance.name)
        logger.info(f"Ward {instance.name} deleted")


@extend_schema_view(
    list=extend_schema(summary="List Beds", tags=['IPD - Beds']),
    create=extend_schema(summary="Create Bed", tags=['IPD - Beds']),
    retrieve=extend_schema(summary="Get Bed", tags=['IPD - Beds']),
    update=extend_schema(summary="Update Bed", tags=['IPD - Beds']),
    partial_update=extend_schema(summary="Partially Update Bed", tags=['IPD - Beds']),
    destroy=extend_schema(
        summary="Delete Bed",
        responses={204: None, 409: OpenApiResponse(description="Bed is occupied")},
        tags=['IPD - Beds']
    ),
)
class BedViewSet(viewsets.ModelViewSet):
    """
    ViewSet for Bed management.

    Bed status is never written directly; it moves through admissions and
    the maintenance/reserve/mark-available actions.
    """

    queryset = Bed.objects.select_related('ward', 'current_patient')
    permission_classes = [RolePermission]
    role_permissions = {
        'list': STAFF_ROLES,
        'retrieve': STAFF_ROLES,
        'available': STAFF_ROLES,
        'stats': STAFF_ROLES,
        'maintenance': [ADMIN, NURSE],
        'reserve': FRONT_DESK_ROLES + [NURSE],
        'mark_available': [ADMIN, NURSE],
        '*': [ADMIN],
    }

    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['ward', 'status', 'ward__ward_type']
    search_fields = ['bed_number', 'ward__name']
    ordering_fields = ['bed_number', 'daily_rate', 'created_at']
    ordering = ['ward', 'bed_number']

    def get_serializer_class(self):
        if self.action in ['list', 'available']:
            return BedListSerializer
        return BedSerializer

    def perform_create(self, serializer):
        bed = serializer.save()
        logger.info(f"Bed {bed.bed_number} created in {bed.ward.name}")

    def destroy(self, request, *args, **kwargs):
        services.delete_bed(self.get_object().pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    def _bed_response(self, bed, message):
        return Response({
            'success': True,
            'message': message,
            'data': BedSerializer(bed).data
        })

    @extend_schema(
        summary="Available Beds",
        parameters=[OpenApiParameter(name='ward_type', type=str, description='Filter by ward type')],
        tags=['IPD - Beds']
    )
    @action(detail=False, methods=['get'])
    def available(self, request):
        """Beds ready for admission, optionally for one ward type"""
        beds = self.get_queryset().filter(status=Bed.STATUS_AVAILABLE, ward__is_active=True)
        ward_type = request.query_params.get('ward_type')
        if ward_type:
            beds = beds.filter(ward__ward_type=ward_type.upper())

        serializer = BedListSerializer(beds, many=True)
        return Response({
            'success': True,
            'count': len(serializer.data),
            'data': serializer.data
        })

    @extend_schema(summary="Bed Statistics", responses={200: BedStatsSerializer}, tags=['IPD - Beds'])
    @action(detail=False, methods=['get'])
    def stats(self, request):
        return Response({'success': True, 'data': services.bed_stats()})

    @extend_schema(summary="Mark Bed Under Maintenance", request=None, tags=['IPD - Beds'])
    @action(detail=True, methods=['post'])
    def maintenance(self, request, pk=None):
        bed = services.mark_maintenance(self.get_object().pk)
        return self._bed_response(bed, 'Bed marked for maintenance')

    @extend_schema(summary="Reserve Bed", request=None, tags=['IPD - Beds'])
    @action(detail=True, methods=['post'])
    def reserve(self, request, pk=None):
        bed = services.reserve_bed(self.get_object().pk)
        return self._bed_response(bed, 'Bed reserved')

    @extend_schema(summary="Mark Bed Available", request=None, tags=['IPD - Beds'])
    @action(detail=True, methods=['post'], url_path='mark-available')
    def mark_available(self, request, pk=None):
        """Return a bed from maintenance (stamping the cleaning time) or reservation"""
        bed = self.get_object()
        bed = services.mark_available(bed.pk, cleaned=bed.status == Bed.STATUS_MAINTENANCE)
        return self._bed_response(bed, 'Bed is available')


@extend_schema_view(
    list=extend_schema(summary="List Admissions", tags=['IPD - Admissions']),
    retrieve=extend_schema(summary="Get Admission Details", tags=['IPD - Admissions']),
    update=extend_schema(summary="Update Admission", tags=['IPD - Admissions']),
    partial_update=extend_schema(summary="Partially Update Admission", tags=['IPD - Admissions']),
)
class AdmissionViewSet(viewsets.ModelViewSet):
    """
    ViewSet for IPD Admission management.

    Stays are opened with POST (admit) and closed with discharge; they
    are never deleted.
    """

    queryset = Admission.objects.select_related('patient', 'doctor', 'bed', 'bed__ward')
    permission_classes = [RolePermission]
    http_method_names = ['get', 'post', 'put', 'patch', 'head', 'options']
    role_permissions = {
        'list': STAFF_ROLES + [PATIENT],
        'retrieve': STAFF_ROLES + [PATIENT],
        'create': FRONT_DESK_ROLES + [DOCTOR],
        'update': CLINICAL_ROLES,
        'partial_update': CLINICAL_ROLES,
        'discharge': [ADMIN, DOCTOR],
        'transfer': CLINICAL_ROLES,
        'notes': CLINICAL_ROLES,
        'vitals': CLINICAL_ROLES,
        'medications': CLINICAL_ROLES,
        'transfers': STAFF_ROLES,
        'active': STAFF_ROLES,
        'stats': STAFF_ROLES,
    }

    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['status', 'doctor', 'patient', 'bed', 'bed__ward']
    search_fields = ['admission_id', 'patient__first_name', 'patient__last_name', 'patient__patient_id']
    ordering_fields = ['admission_date', 'discharge_date', 'created_at']
    ordering = ['-admission_date']

    def get_serializer_class(self):
        if self.action in ['list', 'active']:
            return AdmissionListSerializer
        elif self.action == 'create':
            return AdmitSerializer
        elif self.action in ['update', 'partial_update']:
            return AdmissionUpdateSerializer
        return AdmissionDetailSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        if getattr(self.request.user, 'role', None) == PATIENT:
            queryset = queryset.filter(patient__user_id=self.request.user.id)
        return queryset

    def _detail(self, admission, status_code=status.HTTP_200_OK, message=None):
        admission = self.get_queryset().get(pk=admission.pk)
        body = {'success': True, 'data': AdmissionDetailSerializer(admission).data}
        if message:
            body['message'] = message
        return Response(body, status=status_code)

    @extend_schema(
        summary="Admit Patient",
        request=AdmitSerializer,
        responses={
            201: AdmissionDetailSerializer,
            404: OpenApiResponse(description="Patient, doctor or bed not found"),
            409: OpenApiResponse(description="Bed not available or patient already admitted"),
        },
        tags=['IPD - Admissions']
    )
    def create(self, request, *args, **kwargs):
        serializer = AdmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        admission = services.admit_patient(
            patient_pk=data['patient'],
            doctor_pk=data['doctor'],
            bed_pk=data['bed'],
            reason=data['reason'],
            actor_id=request.user.id,
            provisional_diagnosis=data['provisional_diagnosis'],
            admission_date=data.get('admission_date'),
        )
        return self._detail(admission, status.HTTP_201_CREATED, 'Patient admitted')

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return self._detail(instance)

    @extend_schema(summary="Discharge Patient", request=DischargeSerializer, tags=['IPD - Admissions'])
    @action(detail=True, methods=['post'])
    def discharge(self, request, pk=None):
        admission = self.get_object()
        serializer = DischargeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        admission = services.discharge_patient(
            admission.pk,
            actor_id=request.user.id,
            discharge_condition=data['discharge_condition'],
            discharge_instructions=data['discharge_instructions'],
            final_diagnosis=data['final_diagnosis'],
            follow_up_date=data['follow_up_date'],
            discharge_medications=[dict(item) for item in data['discharge_medications']],
        )
        return self._detail(admission, message='Patient discharged')

    @extend_schema(summary="Transfer Patient to Another Bed", request=TransferSerializer, tags=['IPD - Admissions'])
    @action(detail=True, methods=['post'])
    def transfer(self, request, pk=None):
        admission = self.get_object()
        serializer = TransferSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        services.transfer_patient(
            admission.pk,
            serializer.validated_data['to_bed'],
            actor_id=request.user.id,
            reason=serializer.validated_data['reason'],
        )
        return self._detail(admission, message='Patient transferred')

    @extend_schema(summary="Bed Transfer History", responses={200: BedTransferSerializer(many=True)}, tags=['IPD - Admissions'])
    @action(detail=True, methods=['get'])
    def transfers(self, request, pk=None):
        admission = self.get_object()
        serializer = BedTransferSerializer(admission.bed_transfers.all(), many=True)
        return Response({'success': True, 'count': len(serializer.data), 'data': serializer.data})

    def _clinical_log(self, request, serializer_class, related_name, add):
        """GET lists the entries of a stay; POST appends one."""
        admission = self.get_object()

        if request.method == 'POST':
            serializer = serializer_class(data=request.data)
            serializer.is_valid(raise_exception=True)
            entry = add(admission.pk, request.user.id, serializer.validated_data)
            return Response({
                'success': True,
                'data': serializer_class(entry).data
            }, status=status.HTTP_201_CREATED)

        serializer = serializer_class(getattr(admission, related_name).all(), many=True)
        return Response({'success': True, 'count': len(serializer.data), 'data': serializer.data})

    @extend_schema(summary="Treatment Notes", request=TreatmentNoteSerializer, tags=['IPD - Admissions'])
    @action(detail=True, methods=['get', 'post'])
    def notes(self, request, pk=None):
        return self._clinical_log(
            request, TreatmentNoteSerializer, 'treatment_notes',
            lambda admission_pk, actor_id, data: services.add_treatment_note(
                admission_pk, data['note'], actor_id=actor_id
            ),
        )

    @extend_schema(summary="Vital Records", request=VitalRecordSerializer, tags=['IPD - Admissions'])
    @action(detail=True, methods=['get', 'post'])
    def vitals(self, request, pk=None):
        return self._clinical_log(
            request, VitalRecordSerializer, 'vital_records',
            lambda admission_pk, actor_id, data: services.add_vital_record(
                admission_pk, actor_id=actor_id, **data
            ),
        )

    @extend_schema(summary="Medications", request=MedicationEntrySerializer, tags=['IPD - Admissions'])
    @action(detail=True, methods=['get', 'post'])
    def medications(self, request, pk=None):
        return self._clinical_log(
            request, MedicationEntrySerializer, 'medications',
            lambda admission_pk, actor_id, data: services.add_medication(
                admission_pk, actor_id=actor_id, **data
            ),
        )

    @extend_schema(summary="Active Admissions", tags=['IPD - Admissions'])
    @action(detail=False, methods=['get'])
    def active(self, request):
        """Patients currently admitted"""
        admissions = self.get_queryset().filter(status=Admission.STATUS_ADMITTED)
        serializer = AdmissionListSerializer(admissions, many=True)
        return Response({
            'success': True,
            'count': len(serializer.data),
            'data': serializer.data
        })

    @extend_schema(summary="IPD Statistics", responses={200: IPDStatsSerializer}, tags=['IPD - Admissions'])
    @action(detail=False, methods=['get'])
    def stats(self, request):
        return Response({'success': True, 'data': services.ipd_stats()})
