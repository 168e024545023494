from django.contrib import admin
from .models import DoctorProfile, DoctorAvailability


class DoctorAvailabilityInline(admin.TabularInline):
    model = DoctorAvailability
    extra = 0
    fields = ['day_of_week', 'start_time', 'end_time', 'max_patients']


@admin.register(DoctorProfile)
class DoctorProfileAdmin(admin.ModelAdmin):
    list_display = [
        'doctor_id', 'full_name', 'specialization', 'department',
        'consultation_fee', 'slot_duration', 'is_available'
    ]
    list_filter = ['specialization', 'department', 'is_available']
    search_fields = ['doctor_id', 'first_name', 'last_name', 'license_number']
    readonly_fields = ['doctor_id', 'created_at', 'updated_at']
    inlines = [DoctorAvailabilityInline]

    fieldsets = (
        ('Basic Information', {
            'fields': ('doctor_id', 'user_id', 'first_name', 'last_name')
        }),
        ('Professional Information', {
            'fields': (
                'specialization', 'department', 'qualifications',
                'license_number', 'years_of_experience'
            )
        }),
        ('Consultation Settings', {
            'fields': ('consultation_fee', 'slot_duration', 'is_available')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


@admin.register(DoctorAvailability)
class DoctorAvailabilityAdmin(admin.ModelAdmin):
    list_display = ['doctor', 'day_of_week', 'start_time', 'end_time', 'max_patients']
    list_filter = ['day_of_week']
    search_fields = ['doctor__first_name', 'doctor__last_name', 'doctor__doctor_id']
