# billing/models.py
from django.db import models
from django.db.models import Q, F
from django.core.validators import MinValueValidator, MaxValueValidator
from decimal import Decimal
from django.utils import timezone

from common.identifiers import INVOICE, next_identifier
from .calculations import compute_totals, PAYMENT_PENDING, PAYMENT_PARTIAL, PAYMENT_PAID


class Invoice(models.Model):
    """
    Invoice Model - Patient bill with line items and a payment ledger.

    Amounts other than the client inputs (tax/discount percentages, flat
    discount) are derived by ``calculations.compute_totals`` and are only
    written by ``recompute`` and the payment ledger.
    """

    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, 'Pending'),
        (PAYMENT_PARTIAL, 'Partially Paid'),
        (PAYMENT_PAID, 'Paid'),
    ]

    CLAIM_STATUS_CHOICES = [
        ('NOT_APPLIED', 'Not Applied'),
        ('PENDING', 'Pending'),
        ('APPROVED', 'Approved'),
        ('REJECTED', 'Rejected'),
    ]

    invoice_id = models.CharField(
        max_length=20,
        unique=True,
        editable=False,
        help_text="Generated identifier (e.g. INV2501000001)"
    )

    # References
    patient = models.ForeignKey(
        'patients.Patient',
        on_delete=models.PROTECT,
        related_name='invoices'
    )
    appointment = models.ForeignKey(
        'appointments.Appointment',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='invoices'
    )
    admission = models.ForeignKey(
        'ipd.Admission',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='invoices'
    )

    invoice_date = models.DateTimeField(default=timezone.now)
    due_date = models.DateField(null=True, blank=True)

    # Client inputs
    tax_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00')), MaxValueValidator(Decimal('100.00'))]
    )
    discount_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00')), MaxValueValidator(Decimal('100.00'))]
    )
    discount_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))],
        help_text="Flat discount, or the computed one when discount_percent is set"
    )
    discount_reason = models.CharField(max_length=255, blank=True)

    # Derived amounts
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    paid_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    balance_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    payment_status = models.CharField(
        max_length=20,
        choices=PAYMENT_STATUS_CHOICES,
        default=PAYMENT_PENDING
    )

    # Insurance claim
    insurance_provider = models.CharField(max_length=200, blank=True)
    insurance_policy_number = models.CharField(max_length=100, blank=True)
    insurance_claim_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    insurance_claim_status = models.CharField(
        max_length=20,
        choices=CLAIM_STATUS_CHOICES,
        default='NOT_APPLIED'
    )
    insurance_approved_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.00'))]
    )

    notes = models.TextField(blank=True)

    # Audit Fields
    created_by_user_id = models.UUIDField(null=True, blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'billing_invoices'
        ordering = ['-invoice_date']
        verbose_name = 'Invoice'
        verbose_name_plural = 'Invoices'
        constraints = [
            models.CheckConstraint(
                condition=Q(paid_amount__gte=0) & Q(paid_amount__lte=F('total_amount')),
                name='billing_invoice_paid_within_total',
            ),
        ]
        indexes = [
            models.Index(fields=['patient', 'invoice_date'], name='billing_patient_date_idx'),
            models.Index(fields=['payment_status'], name='billing_status_idx'),
            models.Index(fields=['invoice_date'], name='billing_date_idx'),
        ]

    def __str__(self):
        return f"{self.invoice_id} - {self.patient}"

    def save(self, *args, **kwargs):
        """Auto-generate invoice_id (counter restarts every month)."""
        if not self.invoice_id:
            self.invoice_id = next_identifier(INVOICE, on_date=timezone.localtime(self.invoice_date).date())
        super().save(*args, **kwargs)

    def recompute(self, items=None):
        """
        Refresh every derived amount from the line items and the ledger.

        ``items`` defaults to the saved line items; line totals are written
        back onto the item objects but not saved.
        """
        items = list(self.items.all()) if items is None else list(items)
        totals = compute_totals(
            items,
            tax_percent=self.tax_percent,
            discount_percent=self.discount_percent,
            discount_amount=self.discount_amount,
            paid_amount=self.paid_amount,
        )
        for item, total in zip(items, totals.line_totals):
            if isinstance(item, InvoiceItem):
                item.total = total

        self.subtotal = totals.subtotal
        self.tax_amount = totals.tax_amount
        self.discount_amount = totals.discount_amount
        self.total_amount = totals.total_amount
        self.balance_amount = totals.balance_amount
        self.payment_status = totals.payment_status
        return totals

    @property
    def is_paid(self):
        return self.payment_status == PAYMENT_PAID


class InvoiceItem(models.Model):
    """Line item on an invoice."""

    CATEGORY_CHOICES = [
        ('CONSULTATION', 'Consultation'),
        ('LAB_TEST', 'Lab Test'),
        ('MEDICINE', 'Medicine'),
        ('ROOM_CHARGE', 'Room Charge'),
        ('SURGERY', 'Surgery'),
        ('PROCEDURE', 'Procedure'),
        ('OTHER', 'Other'),
    ]

    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.CASCADE,
        related_name='items'
    )
    position = models.PositiveIntegerField(default=0, help_text="Display order on the invoice")
    description = models.CharField(max_length=255)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='OTHER')
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    discount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    total = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        help_text="Unit price x quantity - discount"
    )

    class Meta:
        db_table = 'billing_invoice_items'
        ordering = ['position', 'id']
        verbose_name = 'Invoice Item'
        verbose_name_plural = 'Invoice Items'

    def __str__(self):
        return f"{self.description} - {self.quantity} x {self.unit_price}"


class Payment(models.Model):
    """
    Payment Model - One entry of an invoice's append-only ledger.
    """

    METHOD_CHOICES = [
        ('CASH', 'Cash'),
        ('CARD', 'Card'),
        ('UPI', 'UPI'),
        ('INSURANCE', 'Insurance'),
        ('BANK_TRANSFER', 'Bank Transfer'),
        ('OTHER', 'Other'),
    ]

    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.PROTECT,
        related_name='payments'
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    method = models.CharField(max_length=20, choices=METHOD_CHOICES)
    transaction_ref = models.CharField(max_length=100, blank=True)
    paid_at = models.DateTimeField(default=timezone.now)
    received_by_id = models.UUIDField(null=True, blank=True)
    notes = models.TextField(blank=True)
    idempotency_key = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        help_text="Client supplied key; a repeated key is not recorded twice"
    )

    class Meta:
        db_table = 'billing_payments'
        ordering = ['paid_at', 'id']
        verbose_name = 'Payment'
        verbose_name_plural = 'Payments'
        constraints = [
            models.CheckConstraint(condition=Q(amount__gt=0), name='billing_payment_amount_positive'),
            models.UniqueConstraint(
                fields=['invoice', 'idempotency_key'],
                condition=Q(idempotency_key__isnull=False),
                name='billing_payment_idempotency_key',
            ),
        ]

    def __str__(self):
        return f"{self.invoice.invoice_id} - {self.amount} ({self.get_method_display()})"
