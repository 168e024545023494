from django.contrib import admin
from .models import OPDRecord, Prescription


class PrescriptionInline(admin.TabularInline):
    model = Prescription
    extra = 0
    fields = ['medicine', 'dosage', 'frequency', 'duration', 'instructions']


@admin.register(OPDRecord)
class OPDRecordAdmin(admin.ModelAdmin):
    list_display = ['record_id', 'patient', 'doctor', 'visit_date', 'diagnosis', 'follow_up_date']
    list_filter = ['visit_date', 'follow_up_date']
    search_fields = ['record_id', 'patient__first_name', 'patient__last_name', 'diagnosis']
    readonly_fields = ['record_id', 'created_by_user_id', 'created_at', 'updated_at']
    inlines = [PrescriptionInline]

    fieldsets = (
        ('Visit', {
            'fields': ('record_id', 'patient', 'doctor', 'appointment', 'visit_date', 'symptoms')
        }),
        ('Vital Signs', {
            'fields': (
                'blood_pressure_systolic', 'blood_pressure_diastolic', 'pulse',
                'temperature', 'weight', 'height', 'oxygen_saturation'
            )
        }),
        ('Diagnosis', {
            'fields': ('diagnosis', 'secondary_diagnoses', 'diagnosis_notes', 'treatment_notes', 'follow_up_date')
        }),
        ('System Fields', {
            'fields': ('created_by_user_id', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )
