"""
Sequential, collision-free identifiers for patients, doctors, appointments,
invoices and clinical records.

Values come from IdentifierSequence rows incremented with a single
UPDATE ... SET last_value = last_value + 1, so two concurrent callers can
never receive the same number and deleting records never causes reuse.
"""

import logging

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from .exceptions import BusinessValidationError
from .models import IdentifierSequence

logger = logging.getLogger(__name__)

PATIENT = 'PATIENT'
DOCTOR = 'DOCTOR'
APPOINTMENT = 'APPOINTMENT'
INVOICE = 'INVOICE'
OPD = 'OPD'
IPD = 'IPD'
LAB = 'LAB'
LAB_ORDER = 'LAB_ORDER'
PHARMACY = 'PHARMACY'

IDENTIFIER_PREFIXES = {
    PATIENT: 'PAT',
    DOCTOR: 'DOC',
    APPOINTMENT: 'APT',
    INVOICE: 'INV',
    OPD: 'OPD',
    IPD: 'IPD',
    LAB: 'TST',
    LAB_ORDER: 'LBO',
    PHARMACY: 'MED',
}

# Kinds whose counter restarts every month; the key carries YYMM
MONTHLY_KINDS = {INVOICE}

COUNTER_WIDTH = 6


def sequence_key(kind, on_date=None):
    """Return the IdentifierSequence key for ``kind`` (e.g. 'INV2501')."""
    try:
        prefix = IDENTIFIER_PREFIXES[kind]
    except KeyError:
        raise BusinessValidationError(
            f"Unknown identifier kind '{kind}'",
            kind=kind,
            allowed=sorted(IDENTIFIER_PREFIXES),
        )

    if kind in MONTHLY_KINDS:
        on_date = on_date or timezone.localdate()
        return f"{prefix}{on_date.strftime('%y%m')}"
    return prefix


def _increment(key):
    return IdentifierSequence.objects.filter(key=key).update(last_value=F('last_value') + 1)


def next_identifier(kind, on_date=None):
    """
    Hand out the next identifier for ``kind``.

    The sequence row is created on first use. If two callers race to create
    it, the primary key rejects the loser, which then increments the row the
    winner created.
    """
    key = sequence_key(kind, on_date)

    with transaction.atomic():
        if not _increment(key):
            try:
                with transaction.atomic():
                    IdentifierSequence.objects.create(key=key, last_value=1)
            except IntegrityError:
                _increment(key)

        value = IdentifierSequence.objects.values_list('last_value', flat=True).get(key=key)

    identifier = f"{key}{value:0{COUNTER_WIDTH}d}"
    logger.debug(f"Issued identifier {identifier}")
    return identifier
