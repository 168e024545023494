# diagnostics/models.py
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from common.identifiers import LAB, LAB_ORDER, next_identifier


class LabTest(models.Model):
    """
    LabTest Model - Master test list (name, code, category, price).

    Tests are deactivated rather than deleted so past orders keep their test.
    """
    CATEGORY_CHOICES = [
        ('BLOOD', 'Blood'),
        ('URINE', 'Urine'),
        ('IMAGING', 'Imaging'),
        ('CARDIAC', 'Cardiac'),
        ('PATHOLOGY', 'Pathology'),
        ('MICROBIOLOGY', 'Microbiology'),
        ('OTHER', 'Other'),
    ]

    test_id = models.CharField(
        max_length=20,
        unique=True,
        editable=False,
        help_text="Generated identifier (e.g. TST000001)"
    )
    name = models.CharField(
        max_length=200,
        help_text="Test name (e.g., 'Complete Blood Count', 'Chest X-Ray')"
    )
    code = models.CharField(
        max_length=50,
        unique=True,
        blank=True,
        help_text="Short test code (e.g., 'CBC', 'CXR'); defaults to the test_id"
    )
    category = models.CharField(
        max_length=20,
        choices=CATEGORY_CHOICES,
        default='BLOOD'
    )
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    normal_range = models.CharField(max_length=200, blank=True)
    unit = models.CharField(max_length=50, blank=True)
    preparation_instructions = models.TextField(blank=True)
    turnaround_time = models.CharField(max_length=50, default='24 hours')
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'diag_lab_tests'
        verbose_name = 'Lab Test'
        verbose_name_plural = 'Lab Tests'
        ordering = ['category', 'name']

    def __str__(self):
        return f"{self.code} - {self.name}"

    def save(self, *args, **kwargs):
        if not self.test_id:
            self.test_id = next_identifier(LAB)
        if not self.code:
            self.code = self.test_id
        super().save(*args, **kwargs)


class LabOrder(models.Model):
    """
    LabOrder Model - One test ordered for a patient.

    Lifecycle: PENDING -> IN_PROGRESS (sample collected) -> COMPLETED
    (result entered), with CANCELLED reachable before a result exists.
    """
    STATUS_PENDING = 'PENDING'
    STATUS_IN_PROGRESS = 'IN_PROGRESS'
    STATUS_COMPLETED = 'COMPLETED'
    STATUS_CANCELLED = 'CANCELLED'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_IN_PROGRESS, 'In Progress'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    PRIORITY_CHOICES = [
        ('NORMAL', 'Normal'),
        ('URGENT', 'Urgent'),
        ('CRITICAL', 'Critical'),
    ]

    order_id = models.CharField(
        max_length=20,
        unique=True,
        editable=False,
        help_text="Generated identifier (e.g. LBO000001)"
    )
    patient = models.ForeignKey(
        'patients.Patient',
        on_delete=models.PROTECT,
        related_name='lab_orders'
    )
    test = models.ForeignKey(
        LabTest,
        on_delete=models.PROTECT,
        related_name='orders'
    )
    doctor = models.ForeignKey(
        'doctors.DoctorProfile',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='lab_orders',
        help_text="Ordering doctor"
    )
    opd_record = models.ForeignKey(
        'opd.OPDRecord',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='lab_orders'
    )

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING
    )
    priority = models.CharField(
        max_length=20,
        choices=PRIORITY_CHOICES,
        default='NORMAL'
    )
    # Copied from the test at order time
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00')
    )
    notes = models.TextField(blank=True)
    ordered_by_user_id = models.UUIDField(null=True, blank=True)
    order_date = models.DateTimeField(auto_now_add=True)

    # Sample
    sample_collected_at = models.DateTimeField(null=True, blank=True)
    sample_collected_by_id = models.UUIDField(null=True, blank=True)

    # Result
    result_value = models.CharField(max_length=255, blank=True)
    result_unit = models.CharField(max_length=50, blank=True)
    is_abnormal = models.BooleanField(default=False)
    result_notes = models.TextField(blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    completed_by_id = models.UUIDField(null=True, blank=True)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'diag_lab_orders'
        verbose_name = 'Lab Order'
        verbose_name_plural = 'Lab Orders'
        ordering = ['-order_date']
        indexes = [
            models.Index(fields=['patient', '-order_date'], name='diag_order_patient_idx'),
            models.Index(fields=['status', 'priority'], name='diag_order_status_idx'),
        ]

    def __str__(self):
        return f"{self.order_id} - {self.test.name} ({self.status})"

    def save(self, *args, **kwargs):
        if not self.order_id:
            self.order_id = next_identifier(LAB_ORDER)
        if not self.price and self.test_id:
            self.price = self.test.price
        super().save(*args, **kwargs)
