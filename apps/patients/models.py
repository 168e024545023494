# patients/models.py
from django.db import models
from django.utils import timezone

from common.identifiers import PATIENT, next_identifier


class Patient(models.Model):
    """
    Patient registry entry.

    Optionally linked to an identity-service account through ``user_id``
    (walk-in patients have none).
    """

    GENDER_CHOICES = [
        ('MALE', 'Male'),
        ('FEMALE', 'Female'),
        ('OTHER', 'Other'),
    ]

    BLOOD_GROUP_CHOICES = [
        ('A+', 'A+'), ('A-', 'A-'),
        ('B+', 'B+'), ('B-', 'B-'),
        ('AB+', 'AB+'), ('AB-', 'AB-'),
        ('O+', 'O+'), ('O-', 'O-'),
    ]

    # Identity
    patient_id = models.CharField(
        max_length=20,
        unique=True,
        editable=False,
        help_text="Generated identifier (e.g. PAT000001)"
    )
    user_id = models.UUIDField(
        null=True,
        blank=True,
        unique=True,
        help_text="Identity service user ID (null for walk-in patients)"
    )

    # Personal Information
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100, blank=True)
    date_of_birth = models.DateField()
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES)
    blood_group = models.CharField(max_length=3, choices=BLOOD_GROUP_CHOICES, blank=True)

    # Contact
    phone = models.CharField(max_length=15)
    email = models.EmailField(blank=True)
    address = models.TextField(blank=True)

    # Emergency Contact
    emergency_contact_name = models.CharField(max_length=100, blank=True)
    emergency_contact_relation = models.CharField(max_length=50, blank=True)
    emergency_contact_phone = models.CharField(max_length=15, blank=True)

    # Medical
    allergies = models.JSONField(default=list, blank=True)

    # Insurance
    insurance_provider = models.CharField(max_length=200, blank=True)
    insurance_policy_number = models.CharField(max_length=100, blank=True)
    insurance_valid_till = models.DateField(null=True, blank=True)

    # Audit Fields
    created_by_user_id = models.UUIDField(null=True, blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'patients'
        ordering = ['-created_at']
        verbose_name = 'Patient'
        verbose_name_plural = 'Patients'
        indexes = [
            models.Index(fields=['last_name', 'first_name'], name='patient_name_idx'),
            models.Index(fields=['phone'], name='patient_phone_idx'),
        ]

    def __str__(self):
        return f"{self.patient_id} - {self.full_name}"

    def save(self, *args, **kwargs):
        if not self.patient_id:
            self.patient_id = next_identifier(PATIENT)
        super().save(*args, **kwargs)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def age(self):
        """Age in whole years."""
        if not self.date_of_birth:
            return None
        today = timezone.localdate()
        born = self.date_of_birth
        return today.year - born.year - ((today.month, today.day) < (born.month, born.day))

    @property
    def is_insurance_valid(self):
        if not self.insurance_valid_till:
            return None
        return self.insurance_valid_till >= timezone.localdate()
