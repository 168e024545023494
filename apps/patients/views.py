import logging

from django.db.models import ProtectedError
from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import viewsets, filters, status
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from common.drf_auth import RolePermission, STAFF_ROLES, FRONT_DESK_ROLES, PATIENT, ADMIN
from common.exceptions import Conflict
from .models import Patient
from .serializers import (
    PatientListSerializer,
    PatientDetailSerializer,
    PatientCreateUpdateSerializer,
)

logger = logging.getLogger(__name__)


@extend_schema_view(
    list=extend_schema(summary="List Patients", tags=['Patients']),
    create=extend_schema(summary="Register Patient", tags=['Patients']),
    retrieve=extend_schema(summary="Get Patient Details", tags=['Patients']),
    update=extend_schema(summary="Update Patient", tags=['Patients']),
    partial_update=extend_schema(summary="Partially Update Patient", tags=['Patients']),
    destroy=extend_schema(summary="Delete Patient", tags=['Patients']),
)
class PatientViewSet(viewsets.ModelViewSet):
    """
    Patient registry.

    Patients calling with their own token only ever see their own record.
    """
    queryset = Patient.objects.all()
    permission_classes = [RolePermission]
    role_permissions = {
        'list': STAFF_ROLES,
        'retrieve': STAFF_ROLES + [PATIENT],
        'me': [PATIENT],
        'create': FRONT_DESK_ROLES,
        'update': FRONT_DESK_ROLES,
        'partial_update': FRONT_DESK_ROLES,
        'destroy': [ADMIN],
    }

    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['gender', 'blood_group']
    search_fields = ['patient_id', 'first_name', 'last_name', 'phone', 'email']
    ordering_fields = ['created_at', 'first_name', 'last_name']
    ordering = ['-created_at']

    def get_serializer_class(self):
        if self.action == 'list':
            return PatientListSerializer
        elif self.action in ['create', 'update', 'partial_update']:
            return PatientCreateUpdateSerializer
        return PatientDetailSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        if getattr(self.request.user, 'role', None) == PATIENT:
            queryset = queryset.filter(user_id=self.request.user.id)
        return queryset

    def perform_create(self, serializer):
        patient = serializer.save(created_by_user_id=self.request.user.id)
        logger.info(f"Patient {patient.patient_id} registered by {self.request.user.id}")

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.perform_create(serializer)
        return Response({
            'success': True,
            'data': PatientDetailSerializer(serializer.instance).data
        }, status=status.HTTP_201_CREATED)

    def perform_destroy(self, instance):
        try:
            instance.delete()
        except ProtectedError:
            raise Conflict(
                'Patient has clinical or billing records and cannot be deleted',
                patient_id=instance.patient_id,
            )
        logger.info(f"Patient {instance.patient_id} deleted")

    @extend_schema(summary="Get Own Patient Profile", tags=['Patients'])
    @action(detail=False, methods=['get'])
    def me(self, request):
        """Return the calling patient's own profile."""
        patient = self.get_queryset().first()
        if patient is None:
            return Response({
                'success': False,
                'error': {'code': 'not_found', 'message': 'No patient profile linked to this account', 'detail': {}}
            }, status=status.HTTP_404_NOT_FOUND)
        return Response({'success': True, 'data': PatientDetailSerializer(patient).data})
