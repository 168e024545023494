from rest_framework import serializers
from .models import DoctorProfile, DoctorAvailability


class DoctorAvailabilitySerializer(serializers.ModelSerializer):
    """Doctor availability serializer"""
    day_display = serializers.CharField(
        source='get_day_of_week_display',
        read_only=True
    )

    class Meta:
        model = DoctorAvailability
        fields = [
            'id', 'day_of_week', 'day_display', 'start_time', 'end_time',
            'max_patients', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate(self, attrs):
        """Validate time range"""
        start_time = attrs.get('start_time')
        end_time = attrs.get('end_time')

        if start_time and end_time and start_time >= end_time:
            raise serializers.ValidationError({
                'end_time': 'End time must be after start time'
            })

        return attrs


class WeeklyAvailabilitySerializer(serializers.Serializer):
    """Replacement weekly schedule for a doctor"""
    availability = DoctorAvailabilitySerializer(many=True)

    def validate_availability(self, value):
        seen = set()
        for window in value:
            key = (window['day_of_week'], window['start_time'])
            if key in seen:
                raise serializers.ValidationError(
                    f"Duplicate window on {window['day_of_week']} at {window['start_time']}"
                )
            seen.add(key)
        return value


class DoctorProfileListSerializer(serializers.ModelSerializer):
    """List view serializer for doctors - minimal fields"""
    full_name = serializers.ReadOnlyField()

    class Meta:
        model = DoctorProfile
        fields = [
            'id', 'doctor_id', 'full_name', 'specialization', 'department',
            'consultation_fee', 'slot_duration', 'is_available'
        ]


class DoctorProfileDetailSerializer(serializers.ModelSerializer):
    """Detail view serializer for doctors - all fields"""
    availability = DoctorAvailabilitySerializer(many=True, read_only=True)
    full_name = serializers.ReadOnlyField()

    class Meta:
        model = DoctorProfile
        fields = '__all__'


class DoctorProfileCreateUpdateSerializer(serializers.ModelSerializer):
    """Create/Update serializer for doctors"""

    class Meta:
        model = DoctorProfile
        exclude = ['doctor_id', 'created_at', 'updated_at']

    def validate_consultation_fee(self, value):
        """Validate consultation fee"""
        if value is not None and value < 0:
            raise serializers.ValidationError('Consultation fee cannot be negative')
        return value

    def validate_slot_duration(self, value):
        if value < 5:
            raise serializers.ValidationError('Slot duration must be at least 5 minutes')
        return value


class SlotQuerySerializer(serializers.Serializer):
    date = serializers.DateField()
