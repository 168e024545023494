# billing/calculations.py
"""
Invoice computation.

``compute_totals`` is the only place derived invoice amounts come from. It
is a pure function over Decimals: same inputs, same outputs, no I/O, and
it never raises for well-typed input. Every amount is rounded half-up to
two places.
"""

from collections import namedtuple
from decimal import Decimal, ROUND_HALF_UP

TWO_PLACES = Decimal('0.01')
ZERO = Decimal('0.00')
HUNDRED = Decimal('100')

PAYMENT_PENDING = 'PENDING'
PAYMENT_PARTIAL = 'PARTIAL'
PAYMENT_PAID = 'PAID'

InvoiceTotals = namedtuple(
    'InvoiceTotals',
    [
        'line_totals',
        'subtotal',
        'tax_amount',
        'discount_amount',
        'total_amount',
        'paid_amount',
        'balance_amount',
        'payment_status',
    ],
)


def to_decimal(value):
    if value is None or value == '':
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def money(value):
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def _get(item, name, default=None):
    """Read a line item field from a mapping or a model instance."""
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


def line_total(unit_price, quantity=1, discount=0):
    """unit_price x quantity - discount, never below zero."""
    total = to_decimal(unit_price) * to_decimal(quantity) - to_decimal(discount)
    return money(max(total, ZERO))


def payment_status_for(paid_amount, total_amount):
    paid = to_decimal(paid_amount)
    if paid <= 0:
        return PAYMENT_PENDING
    if paid >= to_decimal(total_amount):
        return PAYMENT_PAID
    return PAYMENT_PARTIAL


def compute_totals(items, tax_percent=0, discount_percent=0, discount_amount=0, paid_amount=0):
    """
    Derive every computed invoice amount.

    ``items`` are mappings or objects with ``unit_price``, ``quantity`` and
    an optional ``discount``. A positive ``discount_percent`` wins over the
    flat ``discount_amount``.

        >>> totals = compute_totals([{'unit_price': 500, 'quantity': 1}], tax_percent=10)
        >>> totals.total_amount, totals.payment_status
        (Decimal('550.00'), 'PENDING')
    """
    line_totals = tuple(
        line_total(_get(item, 'unit_price', 0), _get(item, 'quantity', 1), _get(item, 'discount', 0))
        for item in items
    )
    subtotal = money(sum(line_totals, ZERO))

    tax_percent = to_decimal(tax_percent)
    tax = money(subtotal * tax_percent / HUNDRED) if tax_percent > 0 else ZERO

    discount_percent = to_decimal(discount_percent)
    if discount_percent > 0:
        discount = money(subtotal * discount_percent / HUNDRED)
    else:
        discount = money(discount_amount)

    total = money(max(subtotal + tax - discount, ZERO))
    paid = money(paid_amount)

    return InvoiceTotals(
        line_totals=line_totals,
        subtotal=subtotal,
        tax_amount=tax,
        discount_amount=discount,
        total_amount=total,
        paid_amount=paid,
        balance_amount=total - paid,
        payment_status=payment_status_for(paid, total),
    )
