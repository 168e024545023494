# ipd/services/admissions.py
"""
Admission/discharge state machine.

A stay is ADMITTED from creation until discharge. Admitting occupies the
bed and discharging frees it, both inside the same transaction as the
admission row, so bed status and stay status never disagree. At most one
ADMITTED stay may exist per patient and per bed (database constraints).
"""

import logging

from django.db import IntegrityError, transaction
from django.db.models import Count, Q
from django.utils import timezone

from apps.doctors.models import DoctorProfile
from apps.patients.models import Patient
from common.exceptions import BusinessValidationError, Conflict, InvalidState, NotFound
from ..models import Admission, Bed, BedTransfer, MedicationEntry, TreatmentNote, VitalRecord
from .beds import assign_bed, release_bed

logger = logging.getLogger(__name__)


def _locked_admission(admission_pk):
    try:
        return (
            Admission.objects.select_for_update()
            .select_related('patient')
            .get(pk=admission_pk)
        )
    except Admission.DoesNotExist:
        raise NotFound('Admission not found', admission=admission_pk)


def _active_stay(patient):
    return Admission.objects.filter(patient=patient, status=Admission.STATUS_ADMITTED).first()


def _require_admitted(admission, verb):
    if admission.status != Admission.STATUS_ADMITTED:
        logger.warning(f"Cannot {verb} admission {admission.admission_id} in status {admission.status}")
        raise InvalidState(
            f"Cannot {verb}: patient is not currently admitted",
            admission=admission.admission_id,
            current_status=admission.status,
        )


def admit_patient(patient_pk, doctor_pk, bed_pk, reason, actor_id=None,
                  provisional_diagnosis='', admission_date=None):
    """
    Open a stay for ``patient_pk`` in ``bed_pk``.

    Raises NotFound for an unknown patient, doctor or bed, and Conflict when
    the bed is not AVAILABLE or the patient already has an active stay.
    """
    with transaction.atomic():
        try:
            patient = Patient.objects.get(pk=patient_pk)
        except Patient.DoesNotExist:
            raise NotFound('Patient not found', patient=patient_pk)
        try:
            doctor = DoctorProfile.objects.get(pk=doctor_pk)
        except DoctorProfile.DoesNotExist:
            raise NotFound('Doctor not found', doctor=doctor_pk)

        active = _active_stay(patient)
        if active is not None:
            raise Conflict(
                'Patient is already admitted',
                patient=patient.patient_id,
                admission=active.admission_id,
            )

        bed = assign_bed(bed_pk, patient)

        try:
            with transaction.atomic():
                admission = Admission.objects.create(
                    patient=patient,
                    doctor=doctor,
                    bed=bed,
                    reason=reason,
                    provisional_diagnosis=provisional_diagnosis,
                    admission_date=admission_date or timezone.now(),
                    admitted_by_user_id=actor_id,
                )
        except IntegrityError:
            # Lost a race with a concurrent admission; the outer block rolls back the bed
            logger.warning(f"Concurrent admission of {patient.patient_id} rejected")
            raise Conflict('Patient is already admitted', patient=patient.patient_id)

    logger.info(f"Admission {admission.admission_id}: patient {patient.patient_id} admitted to bed {bed.bed_number}")
    return admission


def discharge_patient(admission_pk, actor_id=None, discharge_condition='', discharge_instructions='',
                      final_diagnosis='', follow_up_date=None, discharge_medications=None):
    """Close an ADMITTED stay and free its bed. InvalidState otherwise."""
    with transaction.atomic():
        admission = _locked_admission(admission_pk)
        _require_admitted(admission, 'discharge')

        admission.status = Admission.STATUS_DISCHARGED
        admission.discharge_date = timezone.now()
        admission.discharged_by_user_id = actor_id
        admission.discharge_condition = discharge_condition or ''
        admission.discharge_instructions = discharge_instructions or ''
        admission.follow_up_date = follow_up_date
        admission.discharge_medications = discharge_medications or []
        if final_diagnosis:
            admission.final_diagnosis = final_diagnosis
        admission.save()

        if admission.bed_id is not None:
            release_bed(admission.bed_id, patient=admission.patient)

    logger.info(f"Admission {admission.admission_id} discharged")
    return admission


def transfer_patient(admission_pk, to_bed_pk, actor_id=None, reason=''):
    """
    Move an admitted patient to another AVAILABLE bed.

    The old bed is freed, a BedTransfer row is written and a treatment
    note records the move.
    """
    with transaction.atomic():
        admission = _locked_admission(admission_pk)
        _require_admitted(admission, 'transfer')

        from_bed = admission.bed
        if from_bed is not None and from_bed.pk == int(to_bed_pk):
            raise Conflict('Patient is already in this bed', bed=from_bed.bed_number)

        to_bed = assign_bed(to_bed_pk, admission.patient)
        if from_bed is not None:
            release_bed(from_bed.pk, patient=admission.patient)

        admission.bed = to_bed
        admission.save(update_fields=['bed', 'updated_at'])

        from_number = from_bed.bed_number if from_bed is not None else ''
        transfer = BedTransfer.objects.create(
            admission=admission,
            from_bed=from_bed,
            to_bed=to_bed,
            from_bed_number=from_number,
            to_bed_number=to_bed.bed_number,
            reason=reason or '',
            performed_by_user_id=actor_id,
        )
        TreatmentNote.objects.create(
            admission=admission,
            note=f"Patient transferred from bed {from_number or '-'} to bed {to_bed.bed_number}",
            added_by_user_id=actor_id,
        )

    logger.info(f"Admission {admission.admission_id} transferred {from_number} -> {to_bed.bed_number}")
    return transfer


def add_treatment_note(admission_pk, note, actor_id=None):
    note = (note or '').strip()
    if not note:
        raise BusinessValidationError('Note text is required', field='note')

    with transaction.atomic():
        admission = _locked_admission(admission_pk)
        _require_admitted(admission, 'add a treatment note')
        entry = TreatmentNote.objects.create(admission=admission, note=note, added_by_user_id=actor_id)

    logger.info(f"Treatment note added to {admission.admission_id}")
    return entry


def add_vital_record(admission_pk, actor_id=None, **vitals):
    with transaction.atomic():
        admission = _locked_admission(admission_pk)
        _require_admitted(admission, 'record vitals')
        record = VitalRecord.objects.create(admission=admission, recorded_by_user_id=actor_id, **vitals)

    logger.info(f"Vitals recorded for {admission.admission_id}")
    return record


def add_medication(admission_pk, actor_id=None, **fields):
    with transaction.atomic():
        admission = _locked_admission(admission_pk)
        _require_admitted(admission, 'add a medication')
        entry = MedicationEntry.objects.create(
            admission=admission,
            administered_by_user_id=actor_id,
            **fields
        )

    logger.info(f"Medication {entry.medicine} added to {admission.admission_id}")
    return entry


def ipd_stats(on_date=None):
    """Admission counts for a day plus the current census."""
    on_date = on_date or timezone.localdate()
    stats = Admission.objects.aggregate(
        currently_admitted=Count('id', filter=Q(status=Admission.STATUS_ADMITTED)),
        admitted_today=Count('id', filter=Q(admission_date__date=on_date)),
        discharged_today=Count('id', filter=Q(discharge_date__date=on_date)),
    )
    stats['available_beds'] = Bed.objects.filter(status=Bed.STATUS_AVAILABLE).count()
    stats['date'] = on_date.isoformat()
    return stats
