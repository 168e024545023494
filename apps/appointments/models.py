# appointments/models.py
from decimal import Decimal

from django.core.validators import MinValueValidator, RegexValidator
from django.db import models
from django.db.models import Q

from common.identifiers import APPOINTMENT, next_identifier


class AppointmentQuerySet(models.QuerySet):

    def active(self):
        """Appointments that hold their slot (everything but CANCELLED)."""
        return self.exclude(status=Appointment.STATUS_CANCELLED)


class Appointment(models.Model):
    """
    Patient-doctor appointment on one slot of the doctor's grid.

    Lifecycle: SCHEDULED -> CONFIRMED -> COMPLETED, with CANCELLED and
    NO_SHOW reachable from any non-terminal state.
    """

    STATUS_SCHEDULED = 'SCHEDULED'
    STATUS_CONFIRMED = 'CONFIRMED'
    STATUS_COMPLETED = 'COMPLETED'
    STATUS_CANCELLED = 'CANCELLED'
    STATUS_NO_SHOW = 'NO_SHOW'

    STATUS_CHOICES = [
        (STATUS_SCHEDULED, 'Scheduled'),
        (STATUS_CONFIRMED, 'Confirmed'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_NO_SHOW, 'No Show'),
    ]

    OPEN_STATUSES = [STATUS_SCHEDULED, STATUS_CONFIRMED]
    TERMINAL_STATUSES = [STATUS_COMPLETED, STATUS_CANCELLED, STATUS_NO_SHOW]

    TYPE_CHOICES = [
        ('CONSULTATION', 'Consultation'),
        ('FOLLOW_UP', 'Follow-up'),
        ('EMERGENCY', 'Emergency'),
        ('ROUTINE_CHECKUP', 'Routine Checkup'),
    ]

    # Primary Fields
    appointment_id = models.CharField(
        max_length=20,
        unique=True,
        editable=False,
        help_text="Generated identifier (e.g. APT000001)"
    )

    # Patient and Doctor References
    patient = models.ForeignKey(
        'patients.Patient',
        on_delete=models.PROTECT,
        related_name='appointments'
    )
    doctor = models.ForeignKey(
        'doctors.DoctorProfile',
        on_delete=models.PROTECT,
        related_name='appointments'
    )

    # Slot
    appointment_date = models.DateField()
    appointment_time = models.CharField(
        max_length=5,
        validators=[RegexValidator(r'^\d{2}:\d{2}$', 'Time must be HH:MM')],
        help_text="Slot token on the doctor's grid (HH:MM)"
    )

    # Details
    appointment_type = models.CharField(
        max_length=20,
        choices=TYPE_CHOICES,
        default='CONSULTATION'
    )
    symptoms = models.TextField(blank=True)
    notes = models.TextField(blank=True)

    # Fee (copied from the doctor's consultation fee at booking time)
    fee = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    is_paid = models.BooleanField(default=False)

    # Status
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_SCHEDULED
    )

    # Cancellation
    cancel_reason = models.TextField(blank=True)
    cancelled_by_id = models.UUIDField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    # Audit Fields
    created_by_id = models.UUIDField(null=True, blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = AppointmentQuerySet.as_manager()

    class Meta:
        db_table = 'appointments'
        ordering = ['-appointment_date', '-appointment_time']
        verbose_name = 'Appointment'
        verbose_name_plural = 'Appointments'
        constraints = [
            models.UniqueConstraint(
                fields=['doctor', 'appointment_date', 'appointment_time'],
                condition=~Q(status='CANCELLED'),
                name='unique_active_appointment_slot',
            ),
        ]
        indexes = [
            models.Index(fields=['patient', 'appointment_date'], name='appt_patient_date_idx'),
            models.Index(fields=['doctor', 'appointment_date'], name='appt_doctor_date_idx'),
            models.Index(fields=['status'], name='appt_status_idx'),
        ]

    def __str__(self):
        return f"{self.appointment_id} - {self.appointment_date} {self.appointment_time}"

    def save(self, *args, **kwargs):
        if not self.appointment_id:
            self.appointment_id = next_identifier(APPOINTMENT)
        super().save(*args, **kwargs)

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES
