# ipd/admin.py
from django.contrib import admin
from .models import Ward, Bed, Admission, BedTransfer, TreatmentNote, VitalRecord, MedicationEntry


@admin.register(Ward)
class WardAdmin(admin.ModelAdmin):
    """Admin for Ward model."""

    list_display = ['id', 'name', 'ward_type', 'floor', 'is_active', 'created_at']
    list_filter = ['ward_type', 'is_active', 'floor']
    search_fields = ['name']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(Bed)
class BedAdmin(admin.ModelAdmin):
    """Admin for Bed model. Status is read-only here as well."""

    list_display = ['id', 'ward', 'bed_number', 'status', 'current_patient', 'daily_rate']
    list_filter = ['ward', 'status']
    search_fields = ['bed_number', 'ward__name']
    readonly_fields = ['status', 'current_patient', 'last_cleaned_at', 'created_at', 'updated_at']

    fieldsets = (
        ('Bed Information', {
            'fields': ('ward', 'bed_number', 'daily_rate', 'status', 'current_patient')
        }),
        ('Features', {
            'fields': ('facilities', 'last_cleaned_at', 'notes')
        }),
        ('System Fields', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


class TreatmentNoteInline(admin.TabularInline):
    model = TreatmentNote
    extra = 0
    readonly_fields = ['note', 'added_by_user_id', 'recorded_at']


class VitalRecordInline(admin.TabularInline):
    model = VitalRecord
    extra = 0
    readonly_fields = ['recorded_by_user_id', 'recorded_at']


class MedicationEntryInline(admin.TabularInline):
    model = MedicationEntry
    extra = 0


class BedTransferInline(admin.TabularInline):
    model = BedTransfer
    extra = 0
    readonly_fields = ['from_bed', 'from_bed_number', 'to_bed', 'to_bed_number', 'transfer_date', 'reason']
    can_delete = False


@admin.register(Admission)
class AdmissionAdmin(admin.ModelAdmin):
    """Admin for Admission model."""

    list_display = ['admission_id', 'patient', 'doctor', 'bed', 'admission_date', 'status', 'discharge_date']
    list_filter = ['status', 'admission_date', 'discharge_date']
    search_fields = ['admission_id', 'patient__first_name', 'patient__last_name', 'patient__patient_id']
    readonly_fields = [
        'admission_id', 'status', 'bed', 'discharge_date',
        'admitted_by_user_id', 'discharged_by_user_id', 'created_at', 'updated_at'
    ]
    inlines = [TreatmentNoteInline, VitalRecordInline, MedicationEntryInline, BedTransferInline]

    fieldsets = (
        ('Admission', {
            'fields': ('admission_id', 'patient', 'doctor', 'bed', 'admission_date', 'status')
        }),
        ('Clinical', {
            'fields': ('reason', 'provisional_diagnosis', 'final_diagnosis')
        }),
        ('Discharge', {
            'fields': (
                'discharge_date', 'discharge_condition', 'discharge_instructions',
                'follow_up_date', 'discharge_medications', 'discharged_by_user_id'
            ),
            'classes': ('collapse',)
        }),
        ('System Fields', {
            'fields': ('admitted_by_user_id', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )
