# diagnostics/serializers.py
from rest_framework import serializers
from .models import LabTest, LabOrder


class LabTestSerializer(serializers.ModelSerializer):
    class Meta:
        model = LabTest
        fields = [
            'id', 'test_id', 'name', 'code', 'category', 'price', 'normal_range', 'unit',
            'preparation_instructions', 'turnaround_time', 'description', 'is_active',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['test_id', 'created_at', 'updated_at']


class LabOrderListSerializer(serializers.ModelSerializer):
    patient_name = serializers.ReadOnlyField(source='patient.full_name')
    test_name = serializers.ReadOnlyField(source='test.name')
    test_code = serializers.ReadOnlyField(source='test.code')

    class Meta:
        model = LabOrder
        fields = [
            'id', 'order_id', 'patient', 'patient_name', 'test', 'test_name', 'test_code',
            'status', 'priority', 'price', 'order_date', 'is_abnormal'
        ]


class LabOrderDetailSerializer(serializers.ModelSerializer):
    patient_name = serializers.ReadOnlyField(source='patient.full_name')
    patient_code = serializers.ReadOnlyField(source='patient.patient_id')
    test_name = serializers.ReadOnlyField(source='test.name')
    test_code = serializers.ReadOnlyField(source='test.code')
    normal_range = serializers.ReadOnlyField(source='test.normal_range')

    class Meta:
        model = LabOrder
        fields = '__all__'


class LabOrderCreateSerializer(serializers.Serializer):
    patient = serializers.IntegerField()
    test = serializers.IntegerField()
    doctor = serializers.IntegerField(required=False, allow_null=True)
    opd_record = serializers.IntegerField(required=False, allow_null=True)
    priority = serializers.ChoiceField(choices=LabOrder.PRIORITY_CHOICES, default='NORMAL')
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class LabResultSerializer(serializers.Serializer):
    value = serializers.CharField(max_length=255)
    unit = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')
    is_abnormal = serializers.BooleanField(required=False, default=False)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class LabStatsSerializer(serializers.Serializer):
    date = serializers.DateField()
    total_tests = serializers.IntegerField()
    pending_orders = serializers.IntegerField()
    in_progress_orders = serializers.IntegerField()
    today_orders = serializers.IntegerField()
    today_completed = serializers.IntegerField()
