# billing/services.py
"""
Invoice lifecycle and payment ledger.

Derived amounts are recomputed inside the same transaction as every write
that affects them (line items, tax, discount, payments), with the invoice
row locked, so a reader never sees a payment without its balance update.
"""

import logging
from decimal import Decimal, InvalidOperation

from django.db import IntegrityError, transaction
from django.db.models import Count, Sum, Q
from django.utils import timezone

from apps.patients.models import Patient
from common.exceptions import BusinessValidationError, Conflict, InvalidState, NotFound, OutOfRange
from .calculations import money, payment_status_for, ZERO, PAYMENT_PENDING, PAYMENT_PARTIAL, PAYMENT_PAID
from .models import Invoice, InvoiceItem, Payment

logger = logging.getLogger(__name__)

# Client-editable invoice fields (items are handled separately)
EDITABLE_FIELDS = [
    'tax_percent',
    'discount_percent',
    'discount_amount',
    'discount_reason',
    'due_date',
    'notes',
    'insurance_provider',
    'insurance_policy_number',
    'insurance_claim_amount',
    'insurance_claim_status',
    'insurance_approved_amount',
]


def _locked_invoice(invoice_pk):
    try:
        return Invoice.objects.select_for_update().get(pk=invoice_pk)
    except Invoice.DoesNotExist:
        raise NotFound('Invoice not found', invoice=invoice_pk)


def _parse_amount(value, message, **detail):
    """Decimal from client input; NaN and Infinity are not amounts."""
    try:
        amount = Decimal(str(value))
    except (TypeError, ValueError, InvalidOperation):
        raise BusinessValidationError(message, **detail)
    if not amount.is_finite():
        raise BusinessValidationError(message, **detail)
    return amount


def _check_items(items):
    """Reject negative prices/discounts and quantities below one."""
    for index, item in enumerate(items):
        if not str(item.get('description', '')).strip():
            raise BusinessValidationError('Line item description is required', item=index)
        try:
            quantity = int(item.get('quantity', 1))
        except (TypeError, ValueError):
            raise BusinessValidationError('Line item amounts must be numbers', item=index)
        unit_price = _parse_amount(item.get('unit_price'), 'Line item amounts must be numbers', item=index)
        discount = _parse_amount(item.get('discount', 0) or 0, 'Line item amounts must be numbers', item=index)
        if quantity < 1:
            raise OutOfRange('Quantity must be at least 1', item=index, quantity=quantity)
        if unit_price < 0:
            raise OutOfRange('Unit price cannot be negative', item=index, unit_price=str(unit_price))
        if discount < 0:
            raise OutOfRange('Line discount cannot be negative', item=index, discount=str(discount))


def _check_amounts(fields):
    for name in ['tax_percent', 'discount_percent']:
        if name not in fields or fields[name] is None:
            continue
        percent = _parse_amount(fields[name], f"{name} must be a number", **{name: str(fields[name])})
        if not (0 <= percent <= 100):
            raise OutOfRange(f"{name} must be between 0 and 100", **{name: str(fields[name])})
    discount_amount = fields.get('discount_amount') or 0
    if _parse_amount(discount_amount, 'Discount amount must be a number', discount_amount=str(discount_amount)) < 0:
        raise OutOfRange('Discount amount cannot be negative', discount_amount=str(discount_amount))


def _replace_items(invoice, items):
    invoice.items.all().delete()
    objects = [
        InvoiceItem(
            invoice=invoice,
            position=position,
            description=item['description'],
            category=item.get('category') or 'OTHER',
            quantity=int(item.get('quantity', 1)),
            unit_price=money(item['unit_price']),
            discount=money(item.get('discount') or 0),
        )
        for position, item in enumerate(items)
    ]
    invoice.recompute(objects)
    InvoiceItem.objects.bulk_create(objects)


def _resolve_links(patient, appointment_pk=None, admission_pk=None):
    """Fetch the optional appointment/stay and check they belong to the patient."""
    from apps.appointments.models import Appointment
    from apps.ipd.models import Admission

    appointment = admission = None
    if appointment_pk:
        appointment = Appointment.objects.filter(pk=appointment_pk).first()
        if appointment is None:
            raise NotFound('Appointment not found', appointment=appointment_pk)
        if appointment.patient_id != patient.pk:
            raise BusinessValidationError('Appointment belongs to another patient', appointment=appointment.appointment_id)
    if admission_pk:
        admission = Admission.objects.filter(pk=admission_pk).first()
        if admission is None:
            raise NotFound('Admission not found', admission=admission_pk)
        if admission.patient_id != patient.pk:
            raise BusinessValidationError('Admission belongs to another patient', admission=admission.admission_id)
    return appointment, admission


def create_invoice(patient_pk, items, actor_id=None, appointment_pk=None, admission_pk=None, **fields):
    """
    Create a PENDING invoice with its line items.

    ``fields`` takes any of EDITABLE_FIELDS.
    """
    items = list(items or [])
    _check_items(items)
    _check_amounts(fields)
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise BusinessValidationError('Unknown invoice fields', fields=sorted(unknown))

    with transaction.atomic():
        try:
            patient = Patient.objects.get(pk=patient_pk)
        except Patient.DoesNotExist:
            raise NotFound('Patient not found', patient=patient_pk)
        appointment, admission = _resolve_links(patient, appointment_pk, admission_pk)

        invoice = Invoice(
            patient=patient,
            appointment=appointment,
            admission=admission,
            created_by_user_id=actor_id,
            **fields
        )
        invoice.recompute([])
        invoice.save()
        _replace_items(invoice, items)
        invoice.save()

    logger.info(
        f"Invoice {invoice.invoice_id} created for {patient.patient_id}: "
        f"{len(items)} items, total {invoice.total_amount}"
    )
    return invoice


def update_invoice(invoice_pk, items=None, **fields):
    """
    Edit an unpaid invoice. ``items`` (when given) replaces all line items.

    Conflict when the invoice is PAID; OutOfRange when the new total would
    fall below what has already been paid.
    """
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise BusinessValidationError('Unknown invoice fields', fields=sorted(unknown))
    _check_amounts(fields)
    if items is not None:
        items = list(items)
        _check_items(items)

    with transaction.atomic():
        invoice = _locked_invoice(invoice_pk)
        if invoice.payment_status == PAYMENT_PAID:
            logger.warning(f"Rejected edit of paid invoice {invoice.invoice_id}")
            raise Conflict('Cannot update a fully paid invoice', invoice=invoice.invoice_id)

        for name, value in fields.items():
            setattr(invoice, name, value)
        if 'discount_percent' in fields and not fields['discount_percent'] and 'discount_amount' not in fields:
            # A percentage discount being removed leaves no flat discount behind
            invoice.discount_amount = ZERO

        if items is not None:
            _replace_items(invoice, items)
        else:
            invoice.recompute()

        if invoice.total_amount < invoice.paid_amount:
            raise OutOfRange(
                'Invoice total cannot fall below the amount already paid',
                total_amount=str(invoice.total_amount),
                paid_amount=str(invoice.paid_amount),
            )
        invoice.save()

    logger.info(f"Invoice {invoice.invoice_id} updated: total {invoice.total_amount}, status {invoice.payment_status}")
    return invoice


def delete_invoice(invoice_pk):
    """Delete an invoice that has no payments."""
    with transaction.atomic():
        invoice = _locked_invoice(invoice_pk)
        if invoice.paid_amount > 0 or invoice.payments.exists():
            logger.warning(f"Rejected delete of invoice {invoice.invoice_id} with payments")
            raise Conflict('Cannot delete an invoice with payments', invoice=invoice.invoice_id)
        invoice_id = invoice.invoice_id
        invoice.delete()

    logger.info(f"Invoice {invoice_id} deleted")


def add_payment(invoice_pk, amount, method, actor_id=None, transaction_ref='', notes='', idempotency_key=None):
    """
    Append a payment to the ledger and refresh paid/balance/status.

    InvalidState when the invoice is already PAID; OutOfRange when the
    amount is not positive or exceeds the balance (``max_payable`` in the
    detail). A repeated ``idempotency_key`` returns the invoice unchanged.
    """
    amount = money(_parse_amount(amount, 'Payment amount must be a number', amount=str(amount)))
    if method not in dict(Payment.METHOD_CHOICES):
        raise BusinessValidationError(f"Unknown payment method '{method}'", method=method)
    key_length = Payment._meta.get_field('idempotency_key').max_length
    if idempotency_key and len(idempotency_key) > key_length:
        raise BusinessValidationError(f"Idempotency key must be at most {key_length} characters")

    with transaction.atomic():
        invoice = _locked_invoice(invoice_pk)

        if idempotency_key and invoice.payments.filter(idempotency_key=idempotency_key).exists():
            logger.info(f"Duplicate payment {idempotency_key} on {invoice.invoice_id} ignored")
            return invoice

        if invoice.payment_status == PAYMENT_PAID:
            logger.warning(f"Rejected payment on paid invoice {invoice.invoice_id}")
            raise InvalidState('Invoice is already fully paid', invoice=invoice.invoice_id, current_status=PAYMENT_PAID)

        if amount <= 0 or amount > invoice.balance_amount:
            logger.warning(f"Rejected payment of {amount} on {invoice.invoice_id} (balance {invoice.balance_amount})")
            raise OutOfRange(
                f"Amount must be greater than 0 and at most the balance. Maximum payable: {invoice.balance_amount}",
                amount=str(amount),
                max_payable=str(invoice.balance_amount),
            )

        try:
            with transaction.atomic():
                Payment.objects.create(
                    invoice=invoice,
                    amount=amount,
                    method=method,
                    transaction_ref=transaction_ref or '',
                    notes=notes or '',
                    received_by_id=actor_id,
                    idempotency_key=idempotency_key or None,
                )
        except IntegrityError:
            raise Conflict('Duplicate payment', idempotency_key=idempotency_key)

        paid = invoice.payments.aggregate(total=Sum('amount'))['total'] or ZERO
        invoice.paid_amount = money(paid)
        invoice.balance_amount = invoice.total_amount - invoice.paid_amount
        invoice.payment_status = payment_status_for(invoice.paid_amount, invoice.total_amount)
        invoice.save(update_fields=['paid_amount', 'balance_amount', 'payment_status', 'updated_at'])

    logger.info(
        f"Payment of {amount} ({method}) on {invoice.invoice_id}: "
        f"paid {invoice.paid_amount}, balance {invoice.balance_amount}, {invoice.payment_status}"
    )
    return invoice


def patient_history(patient_pk):
    """A patient's invoices, newest first, with billed/paid/outstanding totals."""
    if not Patient.objects.filter(pk=patient_pk).exists():
        raise NotFound('Patient not found', patient=patient_pk)

    invoices = Invoice.objects.filter(patient_id=patient_pk).order_by('-invoice_date')
    sums = invoices.aggregate(billed=Sum('total_amount'), paid=Sum('paid_amount'))
    billed = sums['billed'] or ZERO
    paid = sums['paid'] or ZERO
    return invoices, {
        'total_billed': billed,
        'total_paid': paid,
        'total_outstanding': billed - paid,
    }


def billing_stats(on_date=None):
    """Today's billing, open invoices and month-to-date revenue."""
    on_date = on_date or timezone.localdate()
    open_statuses = Q(payment_status__in=[PAYMENT_PENDING, PAYMENT_PARTIAL])

    today = Invoice.objects.filter(invoice_date__date=on_date).aggregate(
        bills=Count('id'),
        billed=Sum('total_amount'),
        collected=Sum('paid_amount'),
    )
    outstanding = Invoice.objects.filter(open_statuses).aggregate(
        pending_bills=Count('id'),
        total_outstanding=Sum('balance_amount'),
    )
    month = Invoice.objects.filter(
        invoice_date__date__gte=on_date.replace(day=1),
        invoice_date__date__lte=on_date,
    ).aggregate(billed=Sum('total_amount'), collected=Sum('paid_amount'))

    return {
        'date': on_date.isoformat(),
        'today': {
            'bills': today['bills'],
            'billed': today['billed'] or ZERO,
            'collected': today['collected'] or ZERO,
        },
        'pending_bills': outstanding['pending_bills'],
        'total_outstanding': outstanding['total_outstanding'] or ZERO,
        'monthly_revenue': {
            'billed': month['billed'] or ZERO,
            'collected': month['collected'] or ZERO,
        },
    }


def invoice_document(invoice):
    """Printable invoice payload."""
    patient = invoice.patient
    return {
        'invoice_id': invoice.invoice_id,
        'invoice_date': invoice.invoice_date,
        'due_date': invoice.due_date,
        'patient': {
            'patient_id': patient.patient_id,
            'name': patient.full_name,
            'phone': patient.phone,
            'email': patient.email,
            'address': patient.address,
        },
        'items': [
            {
                'description': item.description,
                'category': item.get_category_display(),
                'quantity': item.quantity,
                'unit_price': item.unit_price,
                'discount': item.discount,
                'total': item.total,
            }
            for item in invoice.items.all()
        ],
        'subtotal': invoice.subtotal,
        'tax': {'percent': invoice.tax_percent, 'amount': invoice.tax_amount},
        'discount': {
            'percent': invoice.discount_percent,
            'amount': invoice.discount_amount,
            'reason': invoice.discount_reason,
        },
        'total_amount': invoice.total_amount,
        'paid_amount': invoice.paid_amount,
        'balance_amount': invoice.balance_amount,
        'payment_status': invoice.payment_status,
        'payments': [
            {
                'amount': payment.amount,
                'method': payment.get_method_display(),
                'transaction_ref': payment.transaction_ref,
                'paid_at': payment.paid_at,
                'notes': payment.notes,
            }
            for payment in invoice.payments.all()
        ],
    }
