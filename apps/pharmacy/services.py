# pharmacy/services.py
import logging
from datetime import timedelta
from decimal import Decimal

from django.db.models import Count, DecimalField, ExpressionWrapper, F, Sum
from django.utils import timezone

from common.exceptions import BusinessValidationError, NotFound, OutOfRange
from .models import Medicine

logger = logging.getLogger(__name__)

STOCK_ADD = 'add'
STOCK_SUBTRACT = 'subtract'
STOCK_SET = 'set'
STOCK_OPERATIONS = [STOCK_ADD, STOCK_SUBTRACT, STOCK_SET]

EXPIRING_SOON_DAYS = 30


def _parse_quantity(quantity, operation):
    try:
        quantity = int(quantity)
    except (TypeError, ValueError):
        raise BusinessValidationError('Quantity must be a whole number', quantity=str(quantity))
    if quantity < 0 or (quantity == 0 and operation != STOCK_SET):
        raise OutOfRange('Quantity must be positive', quantity=quantity)
    return quantity


def update_stock(medicine_pk, operation, quantity):
    """
    Add to, subtract from or overwrite a medicine's stock.

    Each operation is a single UPDATE; a subtraction only matches rows that
    still hold at least ``quantity``, so concurrent dispensing can never
    drive stock below zero.
    """
    if operation not in STOCK_OPERATIONS:
        raise BusinessValidationError(
            f"Unknown stock operation '{operation}'",
            operation=operation,
            allowed=STOCK_OPERATIONS,
        )
    quantity = _parse_quantity(quantity, operation)

    rows = Medicine.objects.filter(pk=medicine_pk)
    if operation == STOCK_ADD:
        updated = rows.update(stock=F('stock') + quantity, updated_at=timezone.now())
    elif operation == STOCK_SUBTRACT:
        updated = rows.filter(stock__gte=quantity).update(stock=F('stock') - quantity, updated_at=timezone.now())
    else:
        updated = rows.update(stock=quantity, updated_at=timezone.now())

    medicine = rows.first()
    if medicine is None:
        raise NotFound('Medicine not found', medicine=medicine_pk)
    if not updated:
        logger.warning(
            f"Insufficient stock for {medicine.medicine_id}: requested {quantity}, available {medicine.stock}"
        )
        raise OutOfRange('Insufficient stock', medicine=medicine.medicine_id, available=medicine.stock, requested=quantity)

    logger.info(f"Stock {operation} {quantity} on {medicine.medicine_id}; now {medicine.stock}")
    if medicine.is_low_stock:
        logger.warning(f"{medicine.medicine_id} is at or below its minimum stock level ({medicine.stock}/{medicine.min_stock_level})")
    return medicine


def low_stock(queryset=None):
    queryset = Medicine.objects.all() if queryset is None else queryset
    return queryset.filter(is_active=True, stock__lte=F('min_stock_level')).order_by('stock')


def expired(queryset=None, on_date=None):
    queryset = Medicine.objects.all() if queryset is None else queryset
    on_date = on_date or timezone.localdate()
    return queryset.filter(is_active=True, expiry_date__lt=on_date).order_by('expiry_date')


def expiring_soon(queryset=None, days=EXPIRING_SOON_DAYS, on_date=None):
    queryset = Medicine.objects.all() if queryset is None else queryset
    on_date = on_date or timezone.localdate()
    return queryset.filter(
        is_active=True,
        expiry_date__gte=on_date,
        expiry_date__lte=on_date + timedelta(days=days),
    ).order_by('expiry_date')


def pharmacy_stats(on_date=None):
    """Counts over active medicines plus the stock value at selling price."""
    on_date = on_date or timezone.localdate()
    active = Medicine.objects.filter(is_active=True)

    value = active.aggregate(
        total=Sum(ExpressionWrapper(
            F('stock') * F('selling_price'),
            output_field=DecimalField(max_digits=14, decimal_places=2)
        ))
    )['total'] or Decimal('0.00')

    by_category = [
        {'category': row['category'], 'count': row['count'], 'total_stock': row['total_stock'] or 0}
        for row in active.values('category').annotate(count=Count('id'), total_stock=Sum('stock')).order_by('category')
    ]

    return {
        'total_medicines': active.count(),
        'low_stock': low_stock(active).count(),
        'expired': expired(active, on_date).count(),
        'expiring_soon': expiring_soon(active, on_date=on_date).count(),
        'total_inventory_value': value,
        'by_category': by_category,
    }
