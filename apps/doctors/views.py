import logging

from django.db import transaction
from django.db.models import ProtectedError
from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiParameter, OpenApiResponse
from rest_framework import viewsets, filters, status
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from common.drf_auth import RolePermission, ROLES, ADMIN, DOCTOR
from common.exceptions import Conflict
from .models import DoctorProfile, DoctorAvailability
from .serializers import (
    DoctorProfileListSerializer,
    DoctorProfileDetailSerializer,
    DoctorProfileCreateUpdateSerializer,
    DoctorAvailabilitySerializer,
    WeeklyAvailabilitySerializer,
    SlotQuerySerializer,
)
from .slots import available_slots

logger = logging.getLogger(__name__)


@extend_schema_view(
    list=extend_schema(summary="List Doctors", tags=['Doctors']),
    create=extend_schema(summary="Create Doctor Profile", tags=['Doctors']),
    retrieve=extend_schema(summary="Get Doctor Details", tags=['Doctors']),
    update=extend_schema(summary="Update Doctor Profile", tags=['Doctors']),
    partial_update=extend_schema(summary="Partially Update Doctor Profile", tags=['Doctors']),
    destroy=extend_schema(summary="Delete Doctor Profile", tags=['Doctors']),
)
class DoctorProfileViewSet(viewsets.ModelViewSet):
    """Doctor registry, weekly availability and slot listing"""
    queryset = DoctorProfile.objects.prefetch_related('availability')
    permission_classes = [RolePermission]
    role_permissions = {
        'list': ROLES,
        'retrieve': ROLES,
        'slots': ROLES,
        'specializations': ROLES,
        'availability': [ADMIN, DOCTOR],
        '*': [ADMIN],
    }

    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['specialization', 'department', 'is_available']
    search_fields = ['doctor_id', 'first_name', 'last_name', 'specialization', 'department']
    ordering_fields = ['created_at', 'consultation_fee', 'first_name']
    ordering = ['-created_at']

    def get_serializer_class(self):
        if self.action == 'list':
            return DoctorProfileListSerializer
        elif self.action in ['create', 'update', 'partial_update']:
            return DoctorProfileCreateUpdateSerializer
        return DoctorProfileDetailSerializer

    def perform_create(self, serializer):
        doctor = serializer.save()
        logger.info(f"Doctor {doctor.doctor_id} created")

    def perform_destroy(self, instance):
        try:
            instance.delete()
        except ProtectedError:
            raise Conflict(
                'Doctor has appointments or admissions and cannot be deleted; mark unavailable instead',
                doctor_id=instance.doctor_id,
            )
        logger.info(f"Doctor {instance.doctor_id} deleted")

    @extend_schema(
        summary="Get Available Slots",
        description="Slot grid for a date with booked slots marked",
        parameters=[
            OpenApiParameter(name='date', type=str, required=True, description='Date (YYYY-MM-DD)'),
        ],
        responses={200: OpenApiResponse(description="Slot listing")},
        tags=['Doctors']
    )
    @action(detail=True, methods=['get'])
    def slots(self, request, pk=None):
        """Slot listing for one date"""
        doctor = self.get_object()
        query = SlotQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        return Response({
            'success': True,
            'data': available_slots(doctor, query.validated_data['date'])
        })

    @extend_schema(
        summary="Get or Replace Weekly Availability",
        request=WeeklyAvailabilitySerializer,
        tags=['Doctors']
    )
    @action(detail=True, methods=['get', 'put'])
    def availability(self, request, pk=None):
        """Read the weekly schedule, or replace it wholesale with PUT"""
        doctor = self.get_object()

        if request.method == 'PUT':
            if request.user.role == DOCTOR and str(doctor.user_id) != str(request.user.id):
                return Response({
                    'success': False,
                    'error': {
                        'code': 'permission_denied',
                        'message': 'Doctors can only edit their own availability',
                        'detail': {}
                    }
                }, status=status.HTTP_403_FORBIDDEN)

            serializer = WeeklyAvailabilitySerializer(data=request.data)
            serializer.is_valid(raise_exception=True)

            with transaction.atomic():
                doctor.availability.all().delete()
                for window in serializer.validated_data['availability']:
                    DoctorAvailability.objects.create(doctor=doctor, **window)

            logger.info(
                f"Availability for {doctor.doctor_id} replaced "
                f"({len(serializer.validated_data['availability'])} windows)"
            )

        windows = doctor.availability.order_by('day_of_week', 'start_time')
        return Response({
            'success': True,
            'count': windows.count(),
            'data': DoctorAvailabilitySerializer(windows, many=True).data
        })

    @extend_schema(summary="List Specializations", tags=['Doctors'])
    @action(detail=False, methods=['get'])
    def specializations(self, request):
        """Distinct specializations across all doctors"""
        values = (
            DoctorProfile.objects.order_by('specialization')
            .values_list('specialization', flat=True)
            .distinct()
        )
        return Response({'success': True, 'data': list(values)})
