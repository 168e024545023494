# opd/serializers.py
from rest_framework import serializers
from .models import OPDRecord, Prescription

VITAL_FIELDS = [
    'blood_pressure_systolic', 'blood_pressure_diastolic', 'pulse',
    'temperature', 'weight', 'height', 'oxygen_saturation',
]

CLINICAL_FIELDS = [
    'visit_date', 'symptoms', *VITAL_FIELDS,
    'diagnosis', 'secondary_diagnoses', 'diagnosis_notes',
    'treatment_notes', 'follow_up_date',
]


class PrescriptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Prescription
        fields = [
            'id', 'record', 'medicine', 'dosage', 'frequency', 'duration',
            'instructions', 'prescribed_by_user_id', 'created_at'
        ]
        read_only_fields = ['record', 'prescribed_by_user_id', 'created_at']


class AddPrescriptionsSerializer(serializers.Serializer):
    prescriptions = PrescriptionSerializer(many=True, allow_empty=False)


class OPDRecordListSerializer(serializers.ModelSerializer):
    patient_name = serializers.ReadOnlyField(source='patient.full_name')
    doctor_name = serializers.ReadOnlyField(source='doctor.full_name')

    class Meta:
        model = OPDRecord
        fields = [
            'id', 'record_id', 'patient', 'patient_name', 'doctor', 'doctor_name',
            'appointment', 'visit_date', 'diagnosis', 'follow_up_date'
        ]


class OPDRecordDetailSerializer(serializers.ModelSerializer):
    patient_name = serializers.ReadOnlyField(source='patient.full_name')
    patient_code = serializers.ReadOnlyField(source='patient.patient_id')
    doctor_name = serializers.ReadOnlyField(source='doctor.full_name')
    doctor_code = serializers.ReadOnlyField(source='doctor.doctor_id')
    blood_pressure = serializers.ReadOnlyField()
    prescriptions = PrescriptionSerializer(many=True, read_only=True)

    class Meta:
        model = OPDRecord
        fields = '__all__'


class OPDRecordWriteSerializer(serializers.ModelSerializer):
    """Clinical fields with the same vital sign checks as inpatient vitals."""

    symptoms = serializers.ListField(child=serializers.CharField(max_length=200), required=False)
    secondary_diagnoses = serializers.ListField(child=serializers.CharField(max_length=200), required=False)

    class Meta:
        model = OPDRecord
        fields = CLINICAL_FIELDS

    def validate(self, attrs):
        if attrs.get('temperature') is not None:
            temp = float(attrs['temperature'])
            if temp < 35 or temp > 43:
                raise serializers.ValidationError({
                    'temperature': 'Temperature must be between 35°C and 43°C'
                })

        systolic = attrs.get('blood_pressure_systolic')
        diastolic = attrs.get('blood_pressure_diastolic')
        if systolic and diastolic and systolic <= diastolic:
            raise serializers.ValidationError({
                'blood_pressure_systolic': 'Systolic must be greater than diastolic'
            })

        if attrs.get('pulse') is not None and not (30 <= attrs['pulse'] <= 220):
            raise serializers.ValidationError({'pulse': 'Pulse must be between 30 and 220 bpm'})
        return attrs


class OPDRecordCreateSerializer(OPDRecordWriteSerializer):
    patient = serializers.IntegerField()
    doctor = serializers.IntegerField()
    appointment = serializers.IntegerField(required=False, allow_null=True)
    prescriptions = PrescriptionSerializer(many=True, required=False)

    class Meta(OPDRecordWriteSerializer.Meta):
        fields = ['patient', 'doctor', 'appointment', 'prescriptions', *CLINICAL_FIELDS]


class OPDStatsSerializer(serializers.Serializer):
    date = serializers.DateField()
    today = serializers.IntegerField()
    this_month = serializers.IntegerField()
    follow_ups_due = serializers.IntegerField()
