# ipd/models.py
from django.db import models
from django.db.models import Q
from django.core.validators import MinValueValidator, MaxValueValidator
from decimal import Decimal
from django.utils import timezone

from common.identifiers import IPD, next_identifier


class Ward(models.Model):
    """
    Ward Model - Physical ward/unit in the hospital.
    """

    WARD_TYPE_CHOICES = [
        ('GENERAL', 'General'),
        ('PRIVATE', 'Private'),
        ('SEMI_PRIVATE', 'Semi-Private'),
        ('ICU', 'ICU'),
        ('EMERGENCY', 'Emergency'),
        ('PEDIATRIC', 'Pediatric'),
        ('MATERNITY', 'Maternity'),
    ]

    name = models.CharField(
        max_length=200,
        unique=True,
        help_text="Ward name (e.g., 'General Ward A', 'ICU Floor 3')"
    )
    ward_type = models.CharField(
        max_length=20,
        choices=WARD_TYPE_CHOICES,
        default='GENERAL'
    )
    floor = models.IntegerField(default=0, help_text="Floor number (0 = ground)")
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'ipd_wards'
        ordering = ['floor', 'name']
        verbose_name = 'IPD Ward'
        verbose_name_plural = 'IPD Wards'
        indexes = [
            models.Index(fields=['ward_type'], name='ipd_ward_type_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.get_ward_type_display()})"

    def get_available_beds_count(self):
        """Return count of available beds."""
        return self.beds.filter(status=Bed.STATUS_AVAILABLE).count()

    def get_occupied_beds_count(self):
        """Return count of occupied beds."""
        return self.beds.filter(status=Bed.STATUS_OCCUPIED).count()


class Bed(models.Model):
    """
    Bed Model - Individual bed in a ward.

    Status only changes through apps.ipd.services.beds; ``current_patient``
    is set exactly when the bed is OCCUPIED.
    """

    STATUS_AVAILABLE = 'AVAILABLE'
    STATUS_OCCUPIED = 'OCCUPIED'
    STATUS_MAINTENANCE = 'MAINTENANCE'
    STATUS_RESERVED = 'RESERVED'

    STATUS_CHOICES = [
        (STATUS_AVAILABLE, 'Available'),
        (STATUS_OCCUPIED, 'Occupied'),
        (STATUS_MAINTENANCE, 'Under Maintenance'),
        (STATUS_RESERVED, 'Reserved'),
    ]

    bed_number = models.CharField(
        max_length=50,
        unique=True,
        help_text="Bed number/identifier (e.g., 'A-101', 'ICU-05')"
    )
    ward = models.ForeignKey(
        Ward,
        on_delete=models.PROTECT,
        related_name='beds'
    )
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_AVAILABLE
    )
    current_patient = models.ForeignKey(
        'patients.Patient',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='occupied_beds',
        help_text="Patient in the bed (only while OCCUPIED)"
    )
    daily_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))],
        help_text="Daily charge for this bed"
    )

    # Additional Features
    facilities = models.JSONField(default=list, blank=True)
    last_cleaned_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'ipd_beds'
        ordering = ['ward', 'bed_number']
        verbose_name = 'IPD Bed'
        verbose_name_plural = 'IPD Beds'
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(status='OCCUPIED', current_patient__isnull=False)
                    | (~Q(status='OCCUPIED') & Q(current_patient__isnull=True))
                ),
                name='ipd_bed_occupant_matches_status',
            ),
        ]
        indexes = [
            models.Index(fields=['status'], name='ipd_bed_status_idx'),
            models.Index(fields=['ward', 'status'], name='ipd_bed_ward_status_idx'),
        ]

    def __str__(self):
        return f"{self.ward.name} - {self.bed_number}"

    @property
    def is_occupied(self):
        return self.status == self.STATUS_OCCUPIED


class Admission(models.Model):
    """
    Admission Model - IPD inpatient stay.

    Tracks patient admission, bed, clinical logs and discharge information.
    A stay is ADMITTED until discharged; transfers keep it ADMITTED.
    """

    STATUS_ADMITTED = 'ADMITTED'
    STATUS_DISCHARGED = 'DISCHARGED'
    STATUS_TRANSFERRED = 'TRANSFERRED'

    # Transfers leave a stay ADMITTED (see BedTransfer); no service assigns TRANSFERRED
    STATUS_CHOICES = [
        (STATUS_ADMITTED, 'Admitted'),
        (STATUS_DISCHARGED, 'Discharged'),
        (STATUS_TRANSFERRED, 'Transferred'),
    ]

    DISCHARGE_CONDITION_CHOICES = [
        ('RECOVERED', 'Recovered'),
        ('IMPROVED', 'Improved'),
        ('UNCHANGED', 'Unchanged'),
        ('REFERRED', 'Referred'),
        ('AGAINST_ADVICE', 'Against Medical Advice'),
        ('DECEASED', 'Deceased'),
    ]

    admission_id = models.CharField(
        max_length=20,
        unique=True,
        editable=False,
        help_text="Generated identifier (e.g. IPD000001)"
    )

    # Patient and Doctor References
    patient = models.ForeignKey(
        'patients.Patient',
        on_delete=models.PROTECT,
        related_name='admissions'
    )
    doctor = models.ForeignKey(
        'doctors.DoctorProfile',
        on_delete=models.PROTECT,
        related_name='admissions'
    )

    # Bed (kept after discharge for history; cleared only if the bed is deleted)
    bed = models.ForeignKey(
        Bed,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='admissions',
        help_text="Current (or last) bed"
    )

    # Admission Information
    admission_date = models.DateTimeField(
        default=timezone.now,
        help_text="Date and time of admission"
    )
    reason = models.TextField(help_text="Reason for admission")
    provisional_diagnosis = models.TextField(blank=True)
    final_diagnosis = models.TextField(blank=True)

    # Status
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_ADMITTED
    )

    # Discharge Information
    discharge_date = models.DateTimeField(null=True, blank=True)
    discharge_condition = models.CharField(
        max_length=20,
        choices=DISCHARGE_CONDITION_CHOICES,
        blank=True
    )
    discharge_instructions = models.TextField(blank=True)
    follow_up_date = models.DateField(null=True, blank=True)
    discharge_medications = models.JSONField(
        default=list,
        blank=True,
        help_text="List of {medicine, dosage, duration}"
    )

    # Audit Fields
    admitted_by_user_id = models.UUIDField(null=True, blank=True)
    discharged_by_user_id = models.UUIDField(null=True, blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'ipd_admissions'
        ordering = ['-admission_date']
        verbose_name = 'IPD Admission'
        verbose_name_plural = 'IPD Admissions'
        constraints = [
            models.UniqueConstraint(
                fields=['patient'],
                condition=Q(status='ADMITTED'),
                name='ipd_one_active_stay_per_patient',
            ),
            models.UniqueConstraint(
                fields=['bed'],
                condition=Q(status='ADMITTED'),
                name='ipd_one_active_stay_per_bed',
            ),
        ]
        indexes = [
            models.Index(fields=['status'], name='ipd_status_idx'),
            models.Index(fields=['patient', 'admission_date'], name='ipd_patient_date_idx'),
            models.Index(fields=['doctor', 'admission_date'], name='ipd_doctor_date_idx'),
        ]

    def __str__(self):
        return f"{self.admission_id} - {self.patient}"

    def save(self, *args, **kwargs):
        """Auto-generate admission_id if not set."""
        if not self.admission_id:
            self.admission_id = next_identifier(IPD)
        super().save(*args, **kwargs)

    @property
    def is_active(self):
        return self.status == self.STATUS_ADMITTED

    def calculate_length_of_stay(self):
        """Calculate length of stay in days."""
        end = self.discharge_date or timezone.now()
        return (end - self.admission_date).days


class BedTransfer(models.Model):
    """
    Bed Transfer Model - One move of an admitted patient between beds.
    """

    admission = models.ForeignKey(
        Admission,
        on_delete=models.CASCADE,
        related_name='bed_transfers'
    )
    from_bed = models.ForeignKey(
        Bed,
        on_delete=models.SET_NULL,
        null=True,
        related_name='transfers_from',
        help_text="Original bed"
    )
    to_bed = models.ForeignKey(
        Bed,
        on_delete=models.SET_NULL,
        null=True,
        related_name='transfers_to',
        help_text="New bed"
    )
    # Bed numbers survive bed deletion
    from_bed_number = models.CharField(max_length=50)
    to_bed_number = models.CharField(max_length=50)

    transfer_date = models.DateTimeField(default=timezone.now)
    reason = models.TextField(blank=True)
    performed_by_user_id = models.UUIDField(null=True, blank=True)

    class Meta:
        db_table = 'ipd_bed_transfers'
        ordering = ['-transfer_date']
        verbose_name = 'IPD Bed Transfer'
        verbose_name_plural = 'IPD Bed Transfers'
        indexes = [
            models.Index(fields=['admission', '-transfer_date'], name='ipd_transfer_admission_idx'),
        ]

    def __str__(self):
        return f"{self.admission.admission_id} - {self.from_bed_number} to {self.to_bed_number}"


class TreatmentNote(models.Model):
    """Free-text treatment note appended to a stay."""

    admission = models.ForeignKey(
        Admission,
        on_delete=models.CASCADE,
        related_name='treatment_notes'
    )
    note = models.TextField()
    added_by_user_id = models.UUIDField(null=True, blank=True)
    recorded_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'ipd_treatment_notes'
        ordering = ['-recorded_at']
        verbose_name = 'IPD Treatment Note'
        verbose_name_plural = 'IPD Treatment Notes'

    def __str__(self):
        return f"{self.admission.admission_id} note @ {self.recorded_at:%Y-%m-%d %H:%M}"


class VitalRecord(models.Model):
    """Vital signs captured during a stay."""

    admission = models.ForeignKey(
        Admission,
        on_delete=models.CASCADE,
        related_name='vital_records'
    )

    # Vital Signs
    temperature = models.DecimalField(
        max_digits=4,
        decimal_places=1,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('30.0')), MaxValueValidator(Decimal('45.0'))],
        help_text="Temperature in Celsius"
    )
    blood_pressure_systolic = models.PositiveIntegerField(null=True, blank=True)
    blood_pressure_diastolic = models.PositiveIntegerField(null=True, blank=True)
    pulse = models.PositiveIntegerField(null=True, blank=True, help_text="Beats per minute")
    respiratory_rate = models.PositiveIntegerField(null=True, blank=True)
    oxygen_saturation = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.00')), MaxValueValidator(Decimal('100.00'))]
    )

    recorded_by_user_id = models.UUIDField(null=True, blank=True)
    recorded_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'ipd_vital_records'
        ordering = ['-recorded_at']
        verbose_name = 'IPD Vital Record'
        verbose_name_plural = 'IPD Vital Records'

    def __str__(self):
        return f"{self.admission.admission_id} vitals @ {self.recorded_at:%Y-%m-%d %H:%M}"

    @property
    def blood_pressure(self):
        if self.blood_pressure_systolic and self.blood_pressure_diastolic:
            return f"{self.blood_pressure_systolic}/{self.blood_pressure_diastolic}"
        return None


class MedicationEntry(models.Model):
    """Medication ordered or administered during a stay."""

    admission = models.ForeignKey(
        Admission,
        on_delete=models.CASCADE,
        related_name='medications'
    )
    medicine = models.CharField(max_length=200)
    dosage = models.CharField(max_length=100)
    frequency = models.CharField(max_length=100)
    route = models.CharField(max_length=50, blank=True, help_text="e.g. Oral, IV")
    start_date = models.DateField(default=timezone.localdate)
    end_date = models.DateField(null=True, blank=True)
    instructions = models.TextField(blank=True)
    administered_by_user_id = models.UUIDField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'ipd_medications'
        ordering = ['-start_date', '-created_at']
        verbose_name = 'IPD Medication'
        verbose_name_plural = 'IPD Medications'

    def __str__(self):
        return f"{self.medicine} {self.dosage} ({self.frequency})"
