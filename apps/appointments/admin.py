from django.contrib import admin
from .models import Appointment


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = [
        'appointment_id', 'patient', 'doctor', 'appointment_date',
        'appointment_time', 'appointment_type', 'status', 'fee', 'is_paid'
    ]
    list_filter = ['status', 'appointment_type', 'appointment_date', 'is_paid']
    search_fields = ['appointment_id', 'patient__first_name', 'patient__last_name', 'doctor__last_name']
    readonly_fields = [
        'appointment_id', 'status', 'cancelled_by_id', 'cancelled_at',
        'created_by_id', 'created_at', 'updated_at'
    ]

    fieldsets = (
        ('Appointment', {
            'fields': (
                'appointment_id', 'patient', 'doctor', 'appointment_date',
                'appointment_time', 'appointment_type', 'status'
            )
        }),
        ('Details', {
            'fields': ('symptoms', 'notes', 'fee', 'is_paid')
        }),
        ('Cancellation', {
            'fields': ('cancel_reason', 'cancelled_by_id', 'cancelled_at'),
            'classes': ('collapse',)
        }),
        ('System Fields', {
            'fields': ('created_by_id', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )
