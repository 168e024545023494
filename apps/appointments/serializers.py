from rest_framework import serializers
from .models import Appointment


class AppointmentListSerializer(serializers.ModelSerializer):
    """List view serializer for appointments"""
    patient_name = serializers.ReadOnlyField(source='patient.full_name')
    doctor_name = serializers.ReadOnlyField(source='doctor.full_name')
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Appointment
        fields = [
            'id', 'appointment_id', 'patient', 'patient_name', 'doctor', 'doctor_name',
            'appointment_date', 'appointment_time', 'appointment_type',
            'status', 'status_display', 'fee', 'is_paid'
        ]


class AppointmentDetailSerializer(serializers.ModelSerializer):
    """Detail view serializer for appointments"""
    patient_name = serializers.ReadOnlyField(source='patient.full_name')
    patient_code = serializers.ReadOnlyField(source='patient.patient_id')
    doctor_name = serializers.ReadOnlyField(source='doctor.full_name')
    doctor_code = serializers.ReadOnlyField(source='doctor.doctor_id')
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    type_display = serializers.CharField(source='get_appointment_type_display', read_only=True)

    class Meta:
        model = Appointment
        fields = '__all__'


class AppointmentCreateSerializer(serializers.Serializer):
    """Booking request"""
    patient = serializers.IntegerField()
    doctor = serializers.IntegerField()
    appointment_date = serializers.DateField()
    appointment_time = serializers.RegexField(r'^\d{1,2}:\d{2}$', max_length=5)
    appointment_type = serializers.ChoiceField(choices=Appointment.TYPE_CHOICES, default='CONSULTATION')
    symptoms = serializers.CharField(required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class AppointmentUpdateSerializer(serializers.ModelSerializer):
    """Editable details; the slot changes only through reschedule"""

    class Meta:
        model = Appointment
        fields = ['appointment_type', 'symptoms', 'notes', 'is_paid']


class RescheduleSerializer(serializers.Serializer):
    appointment_date = serializers.DateField()
    appointment_time = serializers.RegexField(r'^\d{1,2}:\d{2}$', max_length=5)


class CancelSerializer(serializers.Serializer):
    reason = serializers.CharField(allow_blank=True)


class AppointmentStatsSerializer(serializers.Serializer):
    date = serializers.DateField()
    today = serializers.IntegerField()
    completed = serializers.IntegerField()
    pending = serializers.IntegerField()
    cancelled = serializers.IntegerField()
    no_show = serializers.IntegerField()
