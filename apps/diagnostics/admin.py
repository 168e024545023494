from django.contrib import admin
from .models import LabTest, LabOrder


@admin.register(LabTest)
class LabTestAdmin(admin.ModelAdmin):
    list_display = ['test_id', 'code', 'name', 'category', 'price', 'turnaround_time', 'is_active']
    list_filter = ['category', 'is_active']
    search_fields = ['test_id', 'code', 'name']
    readonly_fields = ['test_id', 'created_at', 'updated_at']


@admin.register(LabOrder)
class LabOrderAdmin(admin.ModelAdmin):
    list_display = ['order_id', 'patient', 'test', 'status', 'priority', 'is_abnormal', 'order_date']
    list_filter = ['status', 'priority', 'is_abnormal', 'order_date']
    search_fields = ['order_id', 'patient__first_name', 'patient__last_name', 'patient__patient_id', 'test__name']
    readonly_fields = [
        'order_id', 'price', 'ordered_by_user_id', 'order_date',
        'sample_collected_at', 'sample_collected_by_id',
        'completed_at', 'completed_by_id', 'updated_at'
    ]

    fieldsets = (
        ('Order', {
            'fields': ('order_id', 'patient', 'test', 'doctor', 'opd_record', 'status', 'priority', 'price', 'notes')
        }),
        ('Sample', {
            'fields': ('sample_collected_at', 'sample_collected_by_id')
        }),
        ('Result', {
            'fields': ('result_value', 'result_unit', 'is_abnormal', 'result_notes', 'completed_at', 'completed_by_id')
        }),
        ('System Fields', {
            'fields': ('ordered_by_user_id', 'order_date', 'updated_at'),
            'classes': ('collapse',)
        }),
    )
