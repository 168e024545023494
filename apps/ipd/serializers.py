# ipd/serializers.py
from rest_framework import serializers
from .models import Ward, Bed, Admission, BedTransfer, TreatmentNote, VitalRecord, MedicationEntry


class WardSerializer(serializers.ModelSerializer):
    """Serializer for Ward model."""

    available_beds_count = serializers.ReadOnlyField(source='get_available_beds_count')
    occupied_beds_count = serializers.ReadOnlyField(source='get_occupied_beds_count')
    total_beds = serializers.SerializerMethodField()

    class Meta:
        model = Ward
        fields = [
            'id', 'name', 'ward_type', 'floor', 'description', 'is_active',
            'total_beds', 'available_beds_count', 'occupied_beds_count',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']

    def get_total_beds(self, obj):
        return obj.beds.count()


class BedSerializer(serializers.ModelSerializer):
    """
    Serializer for Bed model.

    ``status`` and ``current_patient`` are read-only; they change only
    through admissions and the bed status actions.
    """

    ward_name = serializers.ReadOnlyField(source='ward.name')
    ward_type = serializers.ReadOnlyField(source='ward.ward_type')
    current_patient_name = serializers.ReadOnlyField(source='current_patient.full_name')
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Bed
        fields = [
            'id', 'ward', 'ward_name', 'ward_type', 'bed_number', 'status', 'status_display',
            'current_patient', 'current_patient_name', 'daily_rate', 'facilities',
            'last_cleaned_at', 'notes', 'created_at', 'updated_at'
        ]
        read_only_fields = [
            'status', 'current_patient', 'last_cleaned_at', 'created_at', 'updated_at'
        ]

    def validate_facilities(self, value):
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise serializers.ValidationError('Facilities must be a list of strings')
        return value


class BedListSerializer(serializers.ModelSerializer):
    """Minimal serializer for listing beds."""

    ward_name = serializers.ReadOnlyField(source='ward.name')

    class Meta:
        model = Bed
        fields = ['id', 'ward', 'ward_name', 'bed_number', 'status', 'current_patient', 'daily_rate']


class BedStatsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    available = serializers.IntegerField()
    occupied = serializers.IntegerField()
    maintenance = serializers.IntegerField()
    reserved = serializers.IntegerField()
    occupancy_rate = serializers.FloatField()
    by_ward_type = serializers.ListField(child=serializers.DictField())


class TreatmentNoteSerializer(serializers.ModelSerializer):
    class Meta:
        model = TreatmentNote
        fields = ['id', 'admission', 'note', 'added_by_user_id', 'recorded_at']
        read_only_fields = ['admission', 'added_by_user_id', 'recorded_at']


class VitalRecordSerializer(serializers.ModelSerializer):
    """Vital signs with clinical range checks."""

    blood_pressure = serializers.ReadOnlyField()

    class Meta:
        model = VitalRecord
        fields = [
            'id', 'admission', 'temperature', 'blood_pressure_systolic',
            'blood_pressure_diastolic', 'blood_pressure', 'pulse', 'respiratory_rate',
            'oxygen_saturation', 'recorded_by_user_id', 'recorded_at'
        ]
        read_only_fields = ['admission', 'recorded_by_user_id', 'recorded_at']

    def validate(self, attrs):
        if not any(attrs.get(field) is not None for field in [
            'temperature', 'blood_pressure_systolic', 'blood_pressure_diastolic',
            'pulse', 'respiratory_rate', 'oxygen_saturation'
        ]):
            raise serializers.ValidationError('At least one vital sign is required')

        if attrs.get('temperature') is not None:
            temp = float(attrs['temperature'])
            if temp < 35 or temp > 43:
                raise serializers.ValidationError({
                    'temperature': 'Temperature must be between 35°C and 43°C'
                })

        systolic = attrs.get('blood_pressure_systolic')
        diastolic = attrs.get('blood_pressure_diastolic')
        if (systolic is None) != (diastolic is None):
            raise serializers.ValidationError({
                'blood_pressure_systolic': 'Systolic and diastolic must be recorded together'
            })
        if systolic and diastolic:
            if systolic <= diastolic:
                raise serializers.ValidationError({
                    'blood_pressure_systolic': 'Systolic must be greater than diastolic'
                })
            if systolic < 70 or systolic > 250:
                raise serializers.ValidationError({
                    'blood_pressure_systolic': 'Systolic must be between 70 and 250 mmHg'
                })
            if diastolic < 40 or diastolic > 150:
                raise serializers.ValidationError({
                    'blood_pressure_diastolic': 'Diastolic must be between 40 and 150 mmHg'
                })

        pulse = attrs.get('pulse')
        if pulse is not None and (pulse < 30 or pulse > 220):
            raise serializers.ValidationError({
                'pulse': 'Pulse must be between 30 and 220 BPM'
            })

        if attrs.get('oxygen_saturation') is not None:
            spo2 = float(attrs['oxygen_saturation'])
            if spo2 < 70 or spo2 > 100:
                raise serializers.ValidationError({
                    'oxygen_saturation': 'Oxygen saturation must be between 70% and 100%'
                })

        return attrs


class MedicationEntrySerializer(serializers.ModelSerializer):
    class Meta:
        model = MedicationEntry
        fields = [
            'id', 'admission', 'medicine', 'dosage', 'frequency', 'route',
            'start_date', 'end_date', 'instructions', 'administered_by_user_id', 'created_at'
        ]
        read_only_fields = ['admission', 'administered_by_user_id', 'created_at']

    def validate(self, attrs):
        start = attrs.get('start_date')
        end = attrs.get('end_date')
        if start and end and end < start:
            raise serializers.ValidationError({'end_date': 'End date cannot be before start date'})
        return attrs


class BedTransferSerializer(serializers.ModelSerializer):
    """Serializer for BedTransfer model."""

    admission_code = serializers.ReadOnlyField(source='admission.admission_id')

    class Meta:
        model = BedTransfer
        fields = [
            'id', 'admission', 'admission_code', 'from_bed', 'from_bed_number',
            'to_bed', 'to_bed_number', 'transfer_date', 'reason', 'performed_by_user_id'
        ]


class AdmissionListSerializer(serializers.ModelSerializer):
    """Minimal serializer for listing admissions."""

    patient_name = serializers.ReadOnlyField(source='patient.full_name')
    doctor_name = serializers.ReadOnlyField(source='doctor.full_name')
    bed_number = serializers.ReadOnlyField(source='bed.bed_number')
    ward_name = serializers.ReadOnlyField(source='bed.ward.name')

    class Meta:
        model = Admission
        fields = [
            'id', 'admission_id', 'patient', 'patient_name', 'doctor', 'doctor_name',
            'bed', 'bed_number', 'ward_name', 'admission_date', 'discharge_date', 'status'
        ]


class AdmissionDetailSerializer(serializers.ModelSerializer):
    """Full stay with clinical logs."""

    patient_name = serializers.ReadOnlyField(source='patient.full_name')
    patient_code = serializers.ReadOnlyField(source='patient.patient_id')
    doctor_name = serializers.ReadOnlyField(source='doctor.full_name')
    bed_number = serializers.ReadOnlyField(source='bed.bed_number')
    ward_name = serializers.ReadOnlyField(source='bed.ward.name')
    length_of_stay = serializers.SerializerMethodField()
    treatment_notes = TreatmentNoteSerializer(many=True, read_only=True)
    vital_records = VitalRecordSerializer(many=True, read_only=True)
    medications = MedicationEntrySerializer(many=True, read_only=True)
    bed_transfers = BedTransferSerializer(many=True, read_only=True)

    class Meta:
        model = Admission
        fields = '__all__'

    def get_length_of_stay(self, obj):
        return obj.calculate_length_of_stay()


class AdmitSerializer(serializers.Serializer):
    """Admission request"""
    patient = serializers.IntegerField()
    doctor = serializers.IntegerField()
    bed = serializers.IntegerField()
    reason = serializers.CharField()
    provisional_diagnosis = serializers.CharField(required=False, allow_blank=True, default='')
    admission_date = serializers.DateTimeField(required=False)


class AdmissionUpdateSerializer(serializers.ModelSerializer):
    """Clinical text only; status, bed and discharge go through actions"""

    class Meta:
        model = Admission
        fields = ['reason', 'provisional_diagnosis', 'final_diagnosis']


class DischargeMedicationSerializer(serializers.Serializer):
    medicine = serializers.CharField()
    dosage = serializers.CharField(required=False, allow_blank=True, default='')
    duration = serializers.CharField(required=False, allow_blank=True, default='')


class DischargeSerializer(serializers.Serializer):
    discharge_condition = serializers.ChoiceField(
        choices=Admission.DISCHARGE_CONDITION_CHOICES, required=False, allow_blank=True, default=''
    )
    discharge_instructions = serializers.CharField(required=False, allow_blank=True, default='')
    final_diagnosis = serializers.CharField(required=False, allow_blank=True, default='')
    follow_up_date = serializers.DateField(required=False, allow_null=True, default=None)
    discharge_medications = DischargeMedicationSerializer(many=True, required=False, default=list)


class TransferSerializer(serializers.Serializer):
    to_bed = serializers.IntegerField()
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class IPDStatsSerializer(serializers.Serializer):
    currently_admitted = serializers.IntegerField()
    admitted_today = serializers.IntegerField()
    discharged_today = serializers.IntegerField()
    available_beds = serializers.IntegerField()
    date = serializers.DateField()
