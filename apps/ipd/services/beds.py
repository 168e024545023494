# ipd/services/beds.py
"""
Bed allocation state machine.

    AVAILABLE   -> OCCUPIED      assign_bed
    OCCUPIED    -> AVAILABLE     release_bed
    AVAILABLE   -> MAINTENANCE   mark_maintenance (also from RESERVED)
    AVAILABLE   -> RESERVED      reserve_bed
    MAINTENANCE -> AVAILABLE     mark_available (also from RESERVED)

Every transition is one UPDATE filtered on the expected source state, so
two concurrent callers cannot both win. Zero rows updated means the bed
was not in that state and the caller gets Conflict with the current status.
"""

import logging

from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from common.exceptions import Conflict, NotFound
from ..models import Bed

logger = logging.getLogger(__name__)


def _reject(bed_pk, message):
    """Raise NotFound or Conflict for a transition that updated nothing."""
    bed = Bed.objects.filter(pk=bed_pk).only('bed_number', 'status').first()
    if bed is None:
        raise NotFound('Bed not found', bed=bed_pk)
    logger.warning(f"Bed {bed.bed_number}: {message} (status {bed.status})")
    raise Conflict(message, bed=bed.bed_number, current_status=bed.status)


def _transition(bed_pk, from_statuses, message, **changes):
    changes['updated_at'] = timezone.now()
    updated = Bed.objects.filter(pk=bed_pk, status__in=from_statuses).update(**changes)
    if not updated:
        _reject(bed_pk, message)
    logger.info(f"Bed {bed_pk} -> {changes.get('status')}")
    return Bed.objects.select_related('ward', 'current_patient').get(pk=bed_pk)


def assign_bed(bed_pk, patient):
    """AVAILABLE -> OCCUPIED by ``patient``."""
    return _transition(
        bed_pk,
        [Bed.STATUS_AVAILABLE],
        'Bed is not available',
        status=Bed.STATUS_OCCUPIED,
        current_patient=patient,
    )


def release_bed(bed_pk, patient=None):
    """OCCUPIED -> AVAILABLE. When ``patient`` is given the bed must be theirs."""
    changes = {
        'status': Bed.STATUS_AVAILABLE,
        'current_patient': None,
        'updated_at': timezone.now(),
    }
    queryset = Bed.objects.filter(pk=bed_pk, status=Bed.STATUS_OCCUPIED)
    if patient is not None:
        queryset = queryset.filter(current_patient=patient)
    if not queryset.update(**changes):
        _reject(bed_pk, 'Bed is not occupied by this patient')
    logger.info(f"Bed {bed_pk} -> AVAILABLE")
    return Bed.objects.select_related('ward').get(pk=bed_pk)


def mark_maintenance(bed_pk):
    return _transition(
        bed_pk,
        [Bed.STATUS_AVAILABLE, Bed.STATUS_RESERVED],
        'Cannot mark an occupied bed for maintenance',
        status=Bed.STATUS_MAINTENANCE,
    )


def reserve_bed(bed_pk):
    return _transition(
        bed_pk,
        [Bed.STATUS_AVAILABLE],
        'Only available beds can be reserved',
        status=Bed.STATUS_RESERVED,
    )


def mark_available(bed_pk, cleaned=False):
    """MAINTENANCE/RESERVED -> AVAILABLE; ``cleaned`` stamps last_cleaned_at."""
    changes = {'status': Bed.STATUS_AVAILABLE}
    if cleaned:
        changes['last_cleaned_at'] = timezone.now()
    return _transition(
        bed_pk,
        [Bed.STATUS_MAINTENANCE, Bed.STATUS_RESERVED],
        'Only beds under maintenance or reserved can be made available',
        **changes
    )


def delete_bed(bed_pk):
    """Delete a bed that is not OCCUPIED."""
    with transaction.atomic():
        deleted, _ = Bed.objects.filter(pk=bed_pk).exclude(status=Bed.STATUS_OCCUPIED).delete()
        if not deleted:
            _reject(bed_pk, 'Cannot delete an occupied bed')
    logger.info(f"Bed {bed_pk} deleted")


def bed_stats():
    """Counts by status, occupancy rate and a per-ward-type breakdown."""
    totals = Bed.objects.aggregate(
        total=Count('id'),
        available=Count('id', filter=Q(status=Bed.STATUS_AVAILABLE)),
        occupied=Count('id', filter=Q(status=Bed.STATUS_OCCUPIED)),
        maintenance=Count('id', filter=Q(status=Bed.STATUS_MAINTENANCE)),
        reserved=Count('id', filter=Q(status=Bed.STATUS_RESERVED)),
    )
    total = totals['total']
    totals['occupancy_rate'] = round(totals['occupied'] * 100 / total, 2) if total else 0.0

    by_ward_type = (
        Bed.objects.values('ward__ward_type')
        .annotate(
            total=Count('id'),
            available=Count('id', filter=Q(status=Bed.STATUS_AVAILABLE)),
            occupied=Count('id', filter=Q(status=Bed.STATUS_OCCUPIED)),
        )
        .order_by('ward__ward_type')
    )
    totals['by_ward_type'] = [
        {
            'ward_type': row['ward__ward_type'],
            'total': row['total'],
            'available': row['available'],
            'occupied': row['occupied'],
        }
        for row in by_ward_type
    ]
    return totals
