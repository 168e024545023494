import logging

from django.utils import timezone
from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiParameter, OpenApiResponse
from rest_framework import viewsets, filters, status
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from common.drf_auth import RolePermission, STAFF_ROLES, FRONT_DESK_ROLES, ADMIN, DOCTOR, NURSE, RECEPTIONIST, PATIENT
from . import services
from .filters import AppointmentFilter
from .models import Appointment
from .serializers import (
    AppointmentListSerializer,
    AppointmentDetailSerializer,
    AppointmentCreateSerializer,
    AppointmentUpdateSerializer,
    RescheduleSerializer,
    CancelSerializer,
    AppointmentStatsSerializer,
)

logger = logging.getLogger(__name__)


@extend_schema_view(
    list=extend_schema(
        summary="List Appointments",
        parameters=[
            OpenApiParameter(name='date_from', type=str, description='Appointments from date (YYYY-MM-DD)'),
            OpenApiParameter(name='date_to', type=str, description='Appointments to date (YYYY-MM-DD)'),
        ],
        tags=['Appointments']
    ),
    retrieve=extend_schema(summary="Get Appointment Details", tags=['Appointments']),
    partial_update=extend_schema(summary="Update Appointment Details", tags=['Appointments']),
    update=extend_schema(summary="Update Appointment Details", tags=['Appointments']),
)
class AppointmentViewSet(viewsets.ModelViewSet):
    """
    Appointment booking and lifecycle.

    Appointments are never deleted; cancel them instead.
    """
    queryset = Appointment.objects.select_related('patient', 'doctor')
    permission_classes = [RolePermission]
    http_method_names = ['get', 'post', 'put', 'patch', 'head', 'options']
    role_permissions = {
        'list': STAFF_ROLES + [PATIENT],
        'retrieve': STAFF_ROLES + [PATIENT],
        'create': FRONT_DESK_ROLES + [PATIENT],
        'update': FRONT_DESK_ROLES + [DOCTOR],
        'partial_update': FRONT_DESK_ROLES + [DOCTOR],
        'reschedule': FRONT_DESK_ROLES + [PATIENT],
        'confirm': FRONT_DESK_ROLES + [DOCTOR],
        'complete': [ADMIN, DOCTOR],
        'cancel': FRONT_DESK_ROLES + [DOCTOR, PATIENT],
        'no_show': FRONT_DESK_ROLES + [DOCTOR],
        'today': STAFF_ROLES,
        'stats': [ADMIN, RECEPTIONIST, DOCTOR, NURSE],
    }

    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = AppointmentFilter
    search_fields = [
        'appointment_id',
        'patient__first_name',
        'patient__last_name',
        'patient__patient_id',
        'doctor__first_name',
        'doctor__last_name',
    ]
    ordering_fields = ['appointment_date', 'appointment_time', 'created_at']
    ordering = ['-appointment_date', '-appointment_time']

    def get_serializer_class(self):
        """Return appropriate serializer"""
        if self.action == 'list':
            return AppointmentListSerializer
        elif self.action == 'create':
            return AppointmentCreateSerializer
        elif self.action in ['update', 'partial_update']:
            return AppointmentUpdateSerializer
        return AppointmentDetailSerializer

    def get_queryset(self):
        """Custom queryset filtering"""
        queryset = super().get_queryset()

        # Patients only ever see their own appointments
        if getattr(self.request.user, 'role', None) == PATIENT:
            queryset = queryset.filter(patient__user_id=self.request.user.id)

        return queryset

    def _detail(self, appointment, status_code=status.HTTP_200_OK, message=None):
        appointment = self.get_queryset().get(pk=appointment.pk)
        body = {'success': True, 'data': AppointmentDetailSerializer(appointment).data}
        if message:
            body['message'] = message
        return Response(body, status=status_code)

    @extend_schema(
        summary="Book Appointment",
        request=AppointmentCreateSerializer,
        responses={201: AppointmentDetailSerializer, 409: OpenApiResponse(description="Slot already booked")},
        tags=['Appointments']
    )
    def create(self, request, *args, **kwargs):
        serializer = AppointmentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if request.user.role == PATIENT:
            from apps.patients.models import Patient
            own = Patient.objects.filter(pk=data['patient'], user_id=request.user.id).exists()
            if not own:
                return Response({
                    'success': False,
                    'error': {
                        'code': 'permission_denied',
                        'message': 'Patients can only book appointments for themselves',
                        'detail': {}
                    }
                }, status=status.HTTP_403_FORBIDDEN)

        appointment = services.create_appointment(
            patient_pk=data['patient'],
            doctor_pk=data['doctor'],
            appointment_date=data['appointment_date'],
            appointment_time=data['appointment_time'],
            actor_id=request.user.id,
            appointment_type=data['appointment_type'],
            symptoms=data['symptoms'],
            notes=data['notes'],
        )
        return self._detail(appointment, status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return self._detail(instance)

    @extend_schema(summary="Reschedule Appointment", request=RescheduleSerializer, tags=['Appointments'])
    @action(detail=True, methods=['post'])
    def reschedule(self, request, pk=None):
        appointment = self.get_object()
        serializer = RescheduleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        appointment = services.reschedule_appointment(
            appointment.pk,
            serializer.validated_data['appointment_date'],
            serializer.validated_data['appointment_time'],
            actor_id=request.user.id,
        )
        return self._detail(appointment, message='Appointment rescheduled')

    @extend_schema(summary="Confirm Appointment", request=None, tags=['Appointments'])
    @action(detail=True, methods=['post'])
    def confirm(self, request, pk=None):
        appointment = services.confirm_appointment(self.get_object().pk)
        return self._detail(appointment, message='Appointment confirmed')

    @extend_schema(summary="Complete Appointment", request=None, tags=['Appointments'])
    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        appointment = services.complete_appointment(self.get_object().pk)
        return self._detail(appointment, message='Appointment completed')

    @extend_schema(summary="Cancel Appointment", request=CancelSerializer, tags=['Appointments'])
    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        appointment = self.get_object()
        serializer = CancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        appointment = services.cancel_appointment(
            appointment.pk,
            serializer.validated_data['reason'],
            actor_id=request.user.id,
        )
        return self._detail(appointment, message='Appointment cancelled')

    @extend_schema(summary="Mark Appointment as No-Show", request=None, tags=['Appointments'])
    @action(detail=True, methods=['post'], url_path='no-show')
    def no_show(self, request, pk=None):
        appointment = services.mark_no_show(self.get_object().pk)
        return self._detail(appointment, message='Appointment marked as no-show')

    @extend_schema(summary="Today's Appointments", tags=['Appointments'])
    @action(detail=False, methods=['get'])
    def today(self, request):
        """Today's appointments; doctors see only their own"""
        queryset = self.get_queryset().filter(appointment_date=timezone.localdate())
        if request.user.role == DOCTOR:
            queryset = queryset.filter(doctor__user_id=request.user.id)
        queryset = queryset.order_by('appointment_time')

        serializer = AppointmentListSerializer(queryset, many=True)
        return Response({
            'success': True,
            'count': len(serializer.data),
            'data': serializer.data
        })

    @extend_schema(
        summary="Appointment Statistics",
        responses={200: AppointmentStatsSerializer},
        tags=['Appointments']
    )
    @action(detail=False, methods=['get'])
    def stats(self, request):
        """Counts for today"""
        queryset = self.get_queryset()
        if request.user.role == DOCTOR:
            queryset = queryset.filter(doctor__user_id=request.user.id)
        return Response({
            'success': True,
            'data': services.appointment_stats(queryset=queryset)
        })
