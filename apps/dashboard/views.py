# dashboard/views.py
from drf_spectacular.utils import extend_schema, OpenApiResponse
from rest_framework.response import Response
from rest_framework.views import APIView

from common.drf_auth import RolePermission, ADMIN, DOCTOR, PATIENT
from apps.appointments.serializers import AppointmentListSerializer
from apps.billing.serializers import InvoiceListSerializer
from apps.patients.serializers import PatientListSerializer
from . import services


class AdminDashboardView(APIView):
    """Hospital-wide counts for administrators."""

    permission_classes = [RolePermission]
    role_permissions = {'list': [ADMIN]}

    @extend_schema(summary="Admin Dashboard", tags=['Dashboard'])
    def get(self, request):
        summary = services.admin_summary()
        summary['recent_appointments'] = AppointmentListSerializer(summary['recent_appointments'], many=True).data
        return Response({'success': True, 'data': summary})


class DoctorDashboardView(APIView):
    """The calling doctor's day, resolved through the token's user_id."""

    permission_classes = [RolePermission]
    role_permissions = {'list': [DOCTOR]}

    @extend_schema(
        summary="Doctor Dashboard",
        responses={200: OpenApiResponse(description="Doctor summary"), 404: OpenApiResponse(description="No doctor profile")},
        tags=['Dashboard']
    )
    def get(self, request):
        summary = services.doctor_summary(request.user.id)
        doctor = summary['doctor']
        summary['doctor'] = {
            'id': doctor.pk,
            'doctor_id': doctor.doctor_id,
            'name': doctor.full_name,
            'specialization': doctor.specialization,
        }
        summary['today_appointments'] = AppointmentListSerializer(summary['today_appointments'], many=True).data
        summary['upcoming_appointments'] = AppointmentListSerializer(summary['upcoming_appointments'], many=True).data
        return Response({'success': True, 'data': summary})


class PatientDashboardView(APIView):
    """The calling patient's appointments, visits and open bills."""

    permission_classes = [RolePermission]
    role_permissions = {'list': [PATIENT]}

    @extend_schema(
        summary="Patient Dashboard",
        responses={200: OpenApiResponse(description="Patient summary"), 404: OpenApiResponse(description="No patient profile")},
        tags=['Dashboard']
    )
    def get(self, request):
        summary = services.patient_summary(request.user.id)
        summary['patient'] = PatientListSerializer(summary['patient']).data
        summary['upcoming_appointments'] = AppointmentListSerializer(summary['upcoming_appointments'], many=True).data
        summary['recent_visits'] = AppointmentListSerializer(summary['recent_visits'], many=True).data
        summary['pending_bills'] = InvoiceListSerializer(summary['pending_bills'], many=True).data
        return Response({'success': True, 'data': summary})
