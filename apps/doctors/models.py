from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from common.identifiers import DOCTOR, next_identifier


def default_slot_duration():
    return settings.CAREDESK_DEFAULT_SLOT_MINUTES


class DoctorProfile(models.Model):
    """
    Doctor profile, optionally linked to an identity-service user via user_id.
    """

    # Identity
    doctor_id = models.CharField(
        max_length=20,
        unique=True,
        editable=False,
        help_text="Generated identifier (e.g. DOC000001)"
    )
    user_id = models.UUIDField(
        null=True,
        blank=True,
        unique=True,
        help_text="Identity service user ID"
    )

    # Name fields
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100, blank=True)

    # Professional Information
    specialization = models.CharField(max_length=100)
    department = models.CharField(max_length=100)
    qualifications = models.TextField(blank=True)
    license_number = models.CharField(max_length=64, blank=True)
    years_of_experience = models.PositiveIntegerField(default=0)

    # Consultation Settings
    consultation_fee = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))],
        help_text="Consultation fee"
    )
    slot_duration = models.PositiveIntegerField(
        default=default_slot_duration,
        validators=[MinValueValidator(5)],
        help_text="Appointment slot length in minutes"
    )
    is_available = models.BooleanField(default=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'doctor_profiles'
        verbose_name = 'Doctor Profile'
        verbose_name_plural = 'Doctor Profiles'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['specialization'], name='doctor_specialization_idx'),
            models.Index(fields=['department'], name='doctor_department_idx'),
        ]

    def __str__(self):
        return f"Dr. {self.full_name}"

    @property
    def full_name(self):
        """Return doctor's full name"""
        return f"{self.first_name} {self.last_name}".strip()

    def clean(self):
        """Validate model fields"""
        errors = {}

        if self.consultation_fee is not None and self.consultation_fee < 0:
            errors['consultation_fee'] = 'Consultation fee cannot be negative.'

        if self.slot_duration is not None and self.slot_duration < 5:
            errors['slot_duration'] = 'Slot duration must be at least 5 minutes.'

        if errors:
            raise ValidationError(errors)

    def save(self, *args, **kwargs):
        """Assign doctor_id and run validation"""
        if not self.doctor_id:
            self.doctor_id = next_identifier(DOCTOR)
        self.full_clean()
        super().save(*args, **kwargs)


class DoctorAvailability(models.Model):
    """Weekly availability window for a doctor"""
    DAYS_OF_WEEK = [
        ('monday', 'Monday'),
        ('tuesday', 'Tuesday'),
        ('wednesday', 'Wednesday'),
        ('thursday', 'Thursday'),
        ('friday', 'Friday'),
        ('saturday', 'Saturday'),
        ('sunday', 'Sunday'),
    ]

    doctor = models.ForeignKey(
        DoctorProfile,
        on_delete=models.CASCADE,
        related_name='availability'
    )
    day_of_week = models.CharField(max_length=16, choices=DAYS_OF_WEEK)
    start_time = models.TimeField()
    end_time = models.TimeField()
    max_patients = models.PositiveIntegerField(
        default=20,
        help_text="Maximum patients in this window"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'doctor_availability'
        verbose_name = 'Doctor Availability'
        verbose_name_plural = 'Doctor Availability'
        ordering = ['doctor', 'day_of_week', 'start_time']
        unique_together = ['doctor', 'day_of_week', 'start_time']
        indexes = [
            models.Index(fields=['doctor', 'day_of_week'], name='doctor_avail_day_idx'),
        ]

    def __str__(self):
        return f'{self.doctor} - {self.get_day_of_week_display()} {self.start_time}-{self.end_time}'

    def clean(self):
        """Validate availability window"""
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValidationError({
                'end_time': 'End time must be after start time.'
            })

    def save(self, *args, **kwargs):
        """Override save to run validation"""
        self.full_clean()
        super().save(*args, **kwargs)
