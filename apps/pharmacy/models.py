# pharmacy/models.py
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from common.identifiers import PHARMACY, next_identifier


class Medicine(models.Model):
    """
    Medicine Model - One stocked batch of a medicine.

    Stock only moves through ``services.update_stock``; a subtraction that
    would go below zero is rejected and the database check backs that up.
    """
    CATEGORY_CHOICES = [
        ('TABLET', 'Tablet'),
        ('CAPSULE', 'Capsule'),
        ('SYRUP', 'Syrup'),
        ('INJECTION', 'Injection'),
        ('CREAM', 'Cream'),
        ('DROPS', 'Drops'),
        ('INHALER', 'Inhaler'),
        ('OTHER', 'Other'),
    ]

    UNIT_CHOICES = [
        ('STRIP', 'Strip'),
        ('BOTTLE', 'Bottle'),
        ('BOX', 'Box'),
        ('VIAL', 'Vial'),
        ('TUBE', 'Tube'),
        ('PIECE', 'Piece'),
    ]

    medicine_id = models.CharField(
        max_length=20,
        unique=True,
        editable=False,
        help_text="Generated identifier (e.g. MED000001)"
    )
    name = models.CharField(max_length=200)
    generic_name = models.CharField(max_length=200, blank=True)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES)
    manufacturer = models.CharField(max_length=200)
    batch_number = models.CharField(max_length=100)
    manufacturing_date = models.DateField(null=True, blank=True)
    expiry_date = models.DateField()

    # Inventory
    stock = models.PositiveIntegerField(default=0)
    min_stock_level = models.PositiveIntegerField(default=10)
    unit = models.CharField(max_length=20, choices=UNIT_CHOICES, default='STRIP')

    # Pricing
    purchase_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    selling_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))]
    )

    prescription_required = models.BooleanField(default=True)
    description = models.TextField(blank=True)
    side_effects = models.JSONField(default=list, blank=True)
    storage = models.CharField(max_length=200, blank=True)
    supplier_name = models.CharField(max_length=200, blank=True)
    supplier_contact = models.CharField(max_length=100, blank=True)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'pharmacy_medicines'
        verbose_name = 'Medicine'
        verbose_name_plural = 'Medicines'
        ordering = ['name']
        indexes = [
            models.Index(fields=['name'], name='pharmacy_name_idx'),
            models.Index(fields=['expiry_date'], name='pharmacy_expiry_idx'),
        ]
        constraints = [
            models.CheckConstraint(condition=models.Q(stock__gte=0), name='pharmacy_stock_not_negative'),
        ]

    def __str__(self):
        return f"{self.name} ({self.batch_number})"

    @property
    def is_low_stock(self):
        return self.stock <= self.min_stock_level

    @property
    def is_expired(self):
        return self.expiry_date < timezone.localdate()

    def save(self, *args, **kwargs):
        if not self.medicine_id:
            self.medicine_id = next_identifier(PHARMACY)
        super().save(*args, **kwargs)
