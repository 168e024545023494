from django.contrib import admin
from .models import Patient


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = [
        'patient_id', 'full_name', 'age', 'gender', 'phone',
        'blood_group', 'created_at'
    ]
    list_filter = ['gender', 'blood_group']
    search_fields = ['patient_id', 'first_name', 'last_name', 'phone', 'email']
    readonly_fields = ['patient_id', 'created_by_user_id', 'created_at', 'updated_at']

    fieldsets = (
        ('Basic Information', {
            'fields': (
                'patient_id', 'user_id', 'first_name', 'last_name',
                'date_of_birth', 'gender', 'blood_group'
            )
        }),
        ('Contact Information', {
            'fields': ('phone', 'email', 'address')
        }),
        ('Emergency Contact', {
            'fields': (
                'emergency_contact_name', 'emergency_contact_relation',
                'emergency_contact_phone'
            )
        }),
        ('Medical', {
            'fields': ('allergies',)
        }),
        ('Insurance', {
            'fields': ('insurance_provider', 'insurance_policy_number', 'insurance_valid_till')
        }),
        ('System Fields', {
            'fields': ('created_by_user_id', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )
