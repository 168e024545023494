# diagnostics/services.py
"""
Lab orders: PENDING -> IN_PROGRESS -> COMPLETED.

Every step is one conditional UPDATE filtered on the allowed source
status, so collecting a sample twice or entering a result before the
sample is in fails with InvalidState instead of overwriting.
"""

import logging

from django.db.models import Count, Q
from django.utils import timezone

from apps.doctors.models import DoctorProfile
from apps.patients.models import Patient
from common.exceptions import BusinessValidationError, InvalidState, NotFound
from .models import LabOrder, LabTest

logger = logging.getLogger(__name__)


def create_order(patient_pk, test_pk, actor_id=None, doctor_pk=None, opd_record_pk=None,
                 priority='NORMAL', notes=''):
    """Order an active test for a patient."""
    from apps.opd.models import OPDRecord

    try:
        patient = Patient.objects.get(pk=patient_pk)
    except Patient.DoesNotExist:
        raise NotFound('Patient not found', patient=patient_pk)
    try:
        test = LabTest.objects.get(pk=test_pk)
    except LabTest.DoesNotExist:
        raise NotFound('Lab test not found', test=test_pk)
    if not test.is_active:
        raise InvalidState('Lab test is no longer offered', test=test.test_id)

    doctor = None
    if doctor_pk:
        doctor = DoctorProfile.objects.filter(pk=doctor_pk).first()
        if doctor is None:
            raise NotFound('Doctor not found', doctor=doctor_pk)

    opd_record = None
    if opd_record_pk:
        opd_record = OPDRecord.objects.filter(pk=opd_record_pk).first()
        if opd_record is None:
            raise NotFound('OPD record not found', opd_record=opd_record_pk)
        if opd_record.patient_id != patient.pk:
            raise BusinessValidationError('OPD record belongs to another patient', opd_record=opd_record.record_id)

    order = LabOrder.objects.create(
        patient=patient,
        test=test,
        doctor=doctor,
        opd_record=opd_record,
        priority=priority,
        notes=notes or '',
        price=test.price,
        ordered_by_user_id=actor_id,
    )
    logger.info(f"Lab order {order.order_id}: {test.code} for {patient.patient_id} ({priority})")
    return order


def _transition(order_pk, from_statuses, to_status, verb, **fields):
    updated = LabOrder.objects.filter(pk=order_pk, status__in=from_statuses).update(
        status=to_status,
        updated_at=timezone.now(),
        **fields
    )
    order = LabOrder.objects.select_related('test', 'patient').filter(pk=order_pk).first()
    if order is None:
        raise NotFound('Lab order not found', order=order_pk)
    if not updated:
        logger.warning(f"Cannot {verb} lab order {order.order_id} in status {order.status}")
        raise InvalidState(
            f"Cannot {verb} a {order.get_status_display().lower()} lab order",
            order=order.order_id,
            current_status=order.status,
        )

    logger.info(f"Lab order {order.order_id} -> {to_status}")
    return order


def collect_sample(order_pk, actor_id=None):
    return _transition(
        order_pk,
        [LabOrder.STATUS_PENDING],
        LabOrder.STATUS_IN_PROGRESS,
        'collect the sample for',
        sample_collected_at=timezone.now(),
        sample_collected_by_id=actor_id,
    )


def record_result(order_pk, value, actor_id=None, unit='', is_abnormal=False, notes=''):
    """Enter the result of an order whose sample has been collected."""
    value = str(value or '').strip()
    if not value:
        raise BusinessValidationError('A result value is required', field='value')

    return _transition(
        order_pk,
        [LabOrder.STATUS_IN_PROGRESS],
        LabOrder.STATUS_COMPLETED,
        'enter a result for',
        result_value=value,
        result_unit=unit or '',
        is_abnormal=bool(is_abnormal),
        result_notes=notes or '',
        completed_at=timezone.now(),
        completed_by_id=actor_id,
    )


def cancel_order(order_pk):
    return _transition(
        order_pk,
        [LabOrder.STATUS_PENDING, LabOrder.STATUS_IN_PROGRESS],
        LabOrder.STATUS_CANCELLED,
        'cancel',
    )


def patient_history(patient_pk):
    if not Patient.objects.filter(pk=patient_pk).exists():
        raise NotFound('Patient not found', patient=patient_pk)
    return LabOrder.objects.filter(patient_id=patient_pk).select_related('test', 'patient').order_by('-order_date')


def lab_stats(on_date=None):
    """Catalog size, open work and today's throughput."""
    on_date = on_date or timezone.localdate()

    orders = LabOrder.objects.aggregate(
        pending_orders=Count('id', filter=Q(status=LabOrder.STATUS_PENDING)),
        in_progress_orders=Count('id', filter=Q(status=LabOrder.STATUS_IN_PROGRESS)),
        today_orders=Count('id', filter=Q(order_date__date=on_date)),
        today_completed=Count('id', filter=Q(status=LabOrder.STATUS_COMPLETED, completed_at__date=on_date)),
    )
    orders['total_tests'] = LabTest.objects.filter(is_active=True).count()
    orders['date'] = on_date.isoformat()
    return orders
