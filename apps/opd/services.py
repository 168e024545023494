# opd/services.py
"""
Outpatient consultations.

Writing a record for an appointment completes that appointment in the same
transaction; the ``opd_one_record_per_appointment`` constraint keeps a
second record for the same appointment out.
"""

import logging

from django.db import IntegrityError, transaction
from django.db.models import Count, Q
from django.utils import timezone

from apps.appointments.models import Appointment
from apps.doctors.models import DoctorProfile
from apps.patients.models import Patient
from common.exceptions import BusinessValidationError, Conflict, InvalidState, NotFound
from .models import OPDRecord, Prescription

logger = logging.getLogger(__name__)

PRESCRIPTION_FIELDS = ['medicine', 'dosage', 'frequency', 'duration', 'instructions']
REQUIRED_PRESCRIPTION_FIELDS = ['medicine', 'dosage', 'frequency']


def _check_prescriptions(items):
    for index, item in enumerate(items):
        missing = [name for name in REQUIRED_PRESCRIPTION_FIELDS if not str(item.get(name) or '').strip()]
        if missing:
            raise BusinessValidationError('Prescription is incomplete', item=index, missing=missing)


def _build_prescriptions(record, items, actor_id):
    return [
        Prescription(
            record=record,
            prescribed_by_user_id=actor_id,
            **{name: item.get(name) or '' for name in PRESCRIPTION_FIELDS}
        )
        for item in items
    ]


def _close_appointment(appointment_pk, patient, doctor):
    """Lock the linked appointment, check it fits the visit and complete it."""
    try:
        appointment = Appointment.objects.select_for_update().get(pk=appointment_pk)
    except Appointment.DoesNotExist:
        raise NotFound('Appointment not found', appointment=appointment_pk)

    if appointment.patient_id != patient.pk or appointment.doctor_id != doctor.pk:
        raise BusinessValidationError(
            'Appointment belongs to another patient or doctor',
            appointment=appointment.appointment_id,
        )
    if appointment.status in [Appointment.STATUS_CANCELLED, Appointment.STATUS_NO_SHOW]:
        raise InvalidState(
            f"Cannot record a visit for a {appointment.get_status_display().lower()} appointment",
            appointment=appointment.appointment_id,
            current_status=appointment.status,
        )

    if appointment.status in Appointment.OPEN_STATUSES:
        appointment.status = Appointment.STATUS_COMPLETED
        appointment.save(update_fields=['status', 'updated_at'])
        logger.info(f"Appointment {appointment.appointment_id} completed by OPD visit")
    return appointment


def create_record(patient_pk, doctor_pk, actor_id=None, appointment_pk=None, prescriptions=(), **fields):
    """
    Record a consultation, optionally closing ``appointment_pk``.

    NotFound for unknown references; InvalidState when the appointment was
    cancelled or missed; Conflict when it already has a record.
    """
    prescriptions = list(prescriptions or [])
    _check_prescriptions(prescriptions)

    with transaction.atomic():
        try:
            patient = Patient.objects.get(pk=patient_pk)
        except Patient.DoesNotExist:
            raise NotFound('Patient not found', patient=patient_pk)
        try:
            doctor = DoctorProfile.objects.get(pk=doctor_pk)
        except DoctorProfile.DoesNotExist:
            raise NotFound('Doctor not found', doctor=doctor_pk)

        appointment = None
        if appointment_pk:
            appointment = _close_appointment(appointment_pk, patient, doctor)

        try:
            with transaction.atomic():
                record = OPDRecord.objects.create(
                    patient=patient,
                    doctor=doctor,
                    appointment=appointment,
                    created_by_user_id=actor_id,
                    **fields
                )
        except IntegrityError:
            logger.warning(f"Second OPD record for appointment {appointment.appointment_id} rejected")
            raise Conflict(
                'An OPD record already exists for this appointment',
                appointment=appointment.appointment_id,
            )

        Prescription.objects.bulk_create(_build_prescriptions(record, prescriptions, actor_id))

    logger.info(
        f"OPD record {record.record_id}: patient {patient.patient_id}, doctor {doctor.doctor_id}, "
        f"{len(prescriptions)} prescriptions"
    )
    return record


def add_prescriptions(record_pk, items, actor_id=None):
    """Append prescriptions to an existing record."""
    items = list(items or [])
    if not items:
        raise BusinessValidationError('At least one prescription is required')
    _check_prescriptions(items)

    with transaction.atomic():
        try:
            record = OPDRecord.objects.select_for_update().get(pk=record_pk)
        except OPDRecord.DoesNotExist:
            raise NotFound('OPD record not found', record=record_pk)
        created = Prescription.objects.bulk_create(_build_prescriptions(record, items, actor_id))

    logger.info(f"{len(created)} prescriptions added to {record.record_id}")
    return record


def patient_history(patient_pk):
    """A patient's consultations, newest first."""
    if not Patient.objects.filter(pk=patient_pk).exists():
        raise NotFound('Patient not found', patient=patient_pk)
    return (
        OPDRecord.objects.filter(patient_id=patient_pk)
        .select_related('doctor', 'patient')
        .order_by('-visit_date')
    )


def opd_stats(on_date=None, queryset=None):
    on_date = on_date or timezone.localdate()
    queryset = OPDRecord.objects.all() if queryset is None else queryset

    stats = queryset.aggregate(
        today=Count('id', filter=Q(visit_date__date=on_date)),
        this_month=Count('id', filter=Q(visit_date__date__gte=on_date.replace(day=1), visit_date__date__lte=on_date)),
        follow_ups_due=Count('id', filter=Q(follow_up_date=on_date)),
    )
    stats['date'] = on_date.isoformat()
    return stats
