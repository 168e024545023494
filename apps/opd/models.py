# opd/models.py
from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone

from common.identifiers import OPD, next_identifier


class OPDRecord(models.Model):
    """
    OPD Record - One outpatient consultation.

    Captures the complaints, vitals, diagnosis and prescriptions of a visit.
    A record may close the appointment it was written for; each appointment
    carries at most one record.
    """

    # Primary Fields
    record_id = models.CharField(
        max_length=20,
        unique=True,
        editable=False,
        help_text="Generated identifier (e.g. OPD000001)"
    )

    # Related Models
    patient = models.ForeignKey(
        'patients.Patient',
        on_delete=models.PROTECT,
        related_name='opd_records'
    )
    doctor = models.ForeignKey(
        'doctors.DoctorProfile',
        on_delete=models.PROTECT,
        related_name='opd_records'
    )
    appointment = models.ForeignKey(
        'appointments.Appointment',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='opd_records',
        help_text="Scheduled appointment this consultation closes"
    )

    visit_date = models.DateTimeField(default=timezone.now)

    # Complaints
    symptoms = models.JSONField(default=list, blank=True, help_text="List of presenting symptoms")

    # Vital Signs
    blood_pressure_systolic = models.PositiveIntegerField(null=True, blank=True)
    blood_pressure_diastolic = models.PositiveIntegerField(null=True, blank=True)
    pulse = models.PositiveIntegerField(null=True, blank=True, help_text="Beats per minute")
    temperature = models.DecimalField(
        max_digits=4,
        decimal_places=1,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('30.0')), MaxValueValidator(Decimal('45.0'))],
        help_text="Temperature in Celsius"
    )
    weight = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.00'))],
        help_text="Weight in kg"
    )
    height = models.DecimalField(
        max_digits=5,
        decimal_places=1,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.0'))],
        help_text="Height in cm"
    )
    oxygen_saturation = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.00')), MaxValueValidator(Decimal('100.00'))]
    )

    # Diagnosis
    diagnosis = models.TextField(blank=True, help_text="Primary diagnosis")
    secondary_diagnoses = models.JSONField(default=list, blank=True)
    diagnosis_notes = models.TextField(blank=True)

    treatment_notes = models.TextField(blank=True)
    follow_up_date = models.DateField(null=True, blank=True)

    # Audit Fields
    created_by_user_id = models.UUIDField(null=True, blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'opd_records'
        ordering = ['-visit_date']
        verbose_name = 'OPD Record'
        verbose_name_plural = 'OPD Records'
        constraints = [
            models.UniqueConstraint(
                fields=['appointment'],
                condition=Q(appointment__isnull=False),
                name='opd_one_record_per_appointment',
            ),
        ]
        indexes = [
            models.Index(fields=['patient', 'visit_date'], name='opd_patient_date_idx'),
            models.Index(fields=['doctor', 'visit_date'], name='opd_doctor_date_idx'),
        ]

    def __str__(self):
        return f"{self.record_id} - {self.patient}"

    def save(self, *args, **kwargs):
        if not self.record_id:
            self.record_id = next_identifier(OPD)
        super().save(*args, **kwargs)

    @property
    def blood_pressure(self):
        if self.blood_pressure_systolic and self.blood_pressure_diastolic:
            return f"{self.blood_pressure_systolic}/{self.blood_pressure_diastolic}"
        return None


class Prescription(models.Model):
    """Medicine prescribed during a consultation."""

    record = models.ForeignKey(
        OPDRecord,
        on_delete=models.CASCADE,
        related_name='prescriptions'
    )
    medicine = models.CharField(max_length=200)
    dosage = models.CharField(max_length=100)
    frequency = models.CharField(max_length=100, help_text="e.g. 1-0-1")
    duration = models.CharField(max_length=100, blank=True, help_text="e.g. 5 days")
    instructions = models.TextField(blank=True)

    prescribed_by_user_id = models.UUIDField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'opd_prescriptions'
        ordering = ['created_at', 'id']
        verbose_name = 'Prescription'
        verbose_name_plural = 'Prescriptions'

    def __str__(self):
        return f"{self.record.record_id} - {self.medicine} {self.dosage}"
