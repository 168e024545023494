# appointments/services.py
"""
Appointment booking and lifecycle.

Slot exclusivity is enforced by the ``unique_active_appointment_slot``
constraint: the insert (or reschedule update) either wins the slot or
raises IntegrityError, which is reported as Conflict. Status changes are
single conditional UPDATEs filtered on the allowed source states.
"""

import logging

from django.db import IntegrityError, transaction
from django.db.models import Count, Q
from django.utils import timezone

from apps.doctors.models import DoctorProfile
from apps.doctors.slots import is_valid_slot, normalize_slot
from apps.patients.models import Patient
from common.exceptions import BusinessValidationError, Conflict, InvalidState, NotFound
from .models import Appointment

logger = logging.getLogger(__name__)


def _get_patient(patient_pk):
    try:
        return Patient.objects.get(pk=patient_pk)
    except Patient.DoesNotExist:
        raise NotFound('Patient not found', patient=patient_pk)


def _get_doctor(doctor_pk):
    try:
        return DoctorProfile.objects.get(pk=doctor_pk)
    except DoctorProfile.DoesNotExist:
        raise NotFound('Doctor not found', doctor=doctor_pk)


def _check_slot(doctor, appointment_date, appointment_time):
    """Validate the requested slot and return its canonical HH:MM token."""
    if appointment_date < timezone.localdate():
        raise BusinessValidationError(
            'Cannot book an appointment in the past',
            appointment_date=appointment_date.isoformat(),
        )

    if not doctor.is_available:
        raise InvalidState('Doctor is not accepting appointments', doctor=doctor.doctor_id)

    token = normalize_slot(appointment_time)
    if not is_valid_slot(doctor, appointment_date, token):
        raise BusinessValidationError(
            f"{token} is not a slot on the doctor's schedule for {appointment_date}",
            appointment_date=appointment_date.isoformat(),
            appointment_time=token,
        )
    return token


def _slot_taken(doctor, appointment_date, token):
    return Conflict(
        'This time slot is already booked',
        doctor=doctor.doctor_id,
        appointment_date=appointment_date.isoformat(),
        appointment_time=token,
    )


def create_appointment(patient_pk, doctor_pk, appointment_date, appointment_time, actor_id=None,
                       appointment_type='CONSULTATION', symptoms='', notes=''):
    """Book a slot. Raises Conflict if a non-cancelled appointment already holds it."""
    patient = _get_patient(patient_pk)
    doctor = _get_doctor(doctor_pk)
    token = _check_slot(doctor, appointment_date, appointment_time)

    try:
        with transaction.atomic():
            appointment = Appointment.objects.create(
                patient=patient,
                doctor=doctor,
                appointment_date=appointment_date,
                appointment_time=token,
                appointment_type=appointment_type,
                symptoms=symptoms,
                notes=notes,
                fee=doctor.consultation_fee,
                created_by_id=actor_id,
            )
    except IntegrityError:
        logger.warning(f"Slot {doctor.doctor_id} {appointment_date} {token} already booked")
        raise _slot_taken(doctor, appointment_date, token)

    logger.info(
        f"Appointment {appointment.appointment_id} booked: patient {patient.patient_id}, "
        f"doctor {doctor.doctor_id}, {appointment_date} {token}"
    )
    return appointment


def reschedule_appointment(appointment_pk, appointment_date, appointment_time, actor_id=None):
    """Move an open appointment to another slot of the same doctor."""
    with transaction.atomic():
        try:
            appointment = (
                Appointment.objects.select_for_update()
                .select_related('doctor')
                .get(pk=appointment_pk)
            )
        except Appointment.DoesNotExist:
            raise NotFound('Appointment not found', appointment=appointment_pk)

        if appointment.status not in Appointment.OPEN_STATUSES:
            raise InvalidState(
                f"Cannot reschedule a {appointment.get_status_display().lower()} appointment",
                current_status=appointment.status,
            )

        doctor = appointment.doctor
        token = _check_slot(doctor, appointment_date, appointment_time)
        if appointment.appointment_date == appointment_date and appointment.appointment_time == token:
            return appointment

        previous = f"{appointment.appointment_date} {appointment.appointment_time}"
        appointment.appointment_date = appointment_date
        appointment.appointment_time = token
        try:
            with transaction.atomic():
                appointment.save(update_fields=['appointment_date', 'appointment_time', 'updated_at'])
        except IntegrityError:
            logger.warning(f"Reschedule of {appointment.appointment_id} to {appointment_date} {token} lost the slot")
            raise _slot_taken(doctor, appointment_date, token)

    logger.info(f"Appointment {appointment.appointment_id} rescheduled from {previous} to {appointment_date} {token}")
    return appointment


def _transition(appointment_pk, from_statuses, to_status, verb, **fields):
    """Conditional status UPDATE; InvalidState if the appointment is elsewhere."""
    updated = Appointment.objects.filter(pk=appointment_pk, status__in=from_statuses).update(
        status=to_status,
        updated_at=timezone.now(),
        **fields
    )
    appointment = Appointment.objects.filter(pk=appointment_pk).first()
    if appointment is None:
        raise NotFound('Appointment not found', appointment=appointment_pk)
    if not updated:
        logger.warning(f"Cannot {verb} appointment {appointment.appointment_id} in status {appointment.status}")
        raise InvalidState(
            f"Cannot {verb} a {appointment.get_status_display().lower()} appointment",
            current_status=appointment.status,
        )

    logger.info(f"Appointment {appointment.appointment_id} -> {to_status}")
    return appointment


def confirm_appointment(appointment_pk):
    return _transition(
        appointment_pk, [Appointment.STATUS_SCHEDULED], Appointment.STATUS_CONFIRMED, 'confirm'
    )


def complete_appointment(appointment_pk):
    return _transition(
        appointment_pk, Appointment.OPEN_STATUSES, Appointment.STATUS_COMPLETED, 'complete'
    )


def mark_no_show(appointment_pk):
    return _transition(
        appointment_pk, Appointment.OPEN_STATUSES, Appointment.STATUS_NO_SHOW, 'mark as no-show'
    )


def cancel_appointment(appointment_pk, reason, actor_id=None):
    """Cancel an open appointment, freeing its slot."""
    reason = (reason or '').strip()
    if not reason:
        raise BusinessValidationError('A cancellation reason is required', field='reason')

    return _transition(
        appointment_pk,
        Appointment.OPEN_STATUSES,
        Appointment.STATUS_CANCELLED,
        'cancel',
        cancel_reason=reason,
        cancelled_by_id=actor_id,
        cancelled_at=timezone.now(),
    )


def appointment_stats(on_date=None, queryset=None):
    """Counts for one day (today by default)."""
    on_date = on_date or timezone.localdate()
    queryset = Appointment.objects.all() if queryset is None else queryset

    stats = queryset.filter(appointment_date=on_date).aggregate(
        today=Count('id'),
        completed=Count('id', filter=Q(status=Appointment.STATUS_COMPLETED)),
        pending=Count('id', filter=Q(status__in=Appointment.OPEN_STATUSES)),
        cancelled=Count('id', filter=Q(status=Appointment.STATUS_CANCELLED)),
        no_show=Count('id', filter=Q(status=Appointment.STATUS_NO_SHOW)),
    )
    stats['date'] = on_date.isoformat()
    return stats
