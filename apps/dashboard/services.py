# dashboard/services.py
"""
Role dashboards: one read-only summary each for administrators,
doctors and patients, built from the other apps' tables.
"""

import logging
from datetime import timedelta
from decimal import Decimal

from django.db.models import Sum
from django.utils import timezone

from apps.appointments.models import Appointment
from apps.billing.calculations import PAYMENT_PARTIAL, PAYMENT_PENDING
from apps.billing.models import Invoice, Payment
from apps.diagnostics.models import LabOrder
from apps.doctors.models import DoctorProfile
from apps.ipd.models import Admission, Bed
from apps.opd.models import OPDRecord
from apps.patients.models import Patient
from apps.pharmacy import services as pharmacy_services
from common.exceptions import NotFound

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')
OPEN_APPOINTMENT = [Appointment.STATUS_SCHEDULED, Appointment.STATUS_CONFIRMED]
OPEN_INVOICE = [PAYMENT_PENDING, PAYMENT_PARTIAL]
OPEN_LAB_ORDER = [LabOrder.STATUS_PENDING, LabOrder.STATUS_IN_PROGRESS]


def bed_occupancy():
    total = Bed.objects.count()
    occupied = Bed.objects.filter(status=Bed.STATUS_OCCUPIED).count()
    return {
        'total': total,
        'occupied': occupied,
        'available': Bed.objects.filter(status=Bed.STATUS_AVAILABLE).count(),
        'rate': round(occupied * 100 / total, 1) if total else 0.0,
    }


def admin_summary(on_date=None):
    on_date = on_date or timezone.localdate()

    stats = {
        'total_patients': Patient.objects.count(),
        'total_doctors': DoctorProfile.objects.count(),
        'today_appointments': Appointment.objects.active().filter(appointment_date=on_date).count(),
        'currently_admitted': Admission.objects.filter(status=Admission.STATUS_ADMITTED).count(),
        'bed_occupancy': bed_occupancy(),
        'today_revenue': Payment.objects.filter(paid_at__date=on_date).aggregate(total=Sum('amount'))['total'] or ZERO,
        'pending_payments': Invoice.objects.filter(
            payment_status__in=OPEN_INVOICE
        ).aggregate(total=Sum('balance_amount'))['total'] or ZERO,
        'open_lab_orders': LabOrder.objects.filter(status__in=OPEN_LAB_ORDER).count(),
        'low_stock_medicines': pharmacy_services.low_stock().count(),
    }
    recent = Appointment.objects.select_related('patient', 'doctor').order_by('-created_at')[:5]
    return {'date': on_date.isoformat(), 'stats': stats, 'recent_appointments': recent}


def doctor_summary(user_id, on_date=None):
    """Today's list, the coming week and current inpatients of the calling doctor."""
    on_date = on_date or timezone.localdate()
    doctor = DoctorProfile.objects.filter(user_id=user_id).first()
    if doctor is None:
        logger.warning(f"Doctor dashboard requested by {user_id} without a doctor profile")
        raise NotFound('Doctor profile not found', user_id=str(user_id))

    appointments = Appointment.objects.filter(doctor=doctor).select_related('patient', 'doctor')
    today = appointments.filter(appointment_date=on_date).order_by('appointment_time')
    upcoming = appointments.filter(
        appointment_date__gt=on_date,
        appointment_date__lte=on_date + timedelta(days=7),
        status__in=OPEN_APPOINTMENT,
    ).order_by('appointment_date', 'appointment_time')[:10]

    stats = {
        'today_total': today.exclude(status=Appointment.STATUS_CANCELLED).count(),
        'completed': today.filter(status=Appointment.STATUS_COMPLETED).count(),
        'pending': today.filter(status__in=OPEN_APPOINTMENT).count(),
        'total_patients': appointments.filter(
            status=Appointment.STATUS_COMPLETED
        ).values('patient').distinct().count(),
        'ipd_patients': Admission.objects.filter(doctor=doctor, status=Admission.STATUS_ADMITTED).count(),
        'follow_ups_due': OPDRecord.objects.filter(doctor=doctor, follow_up_date=on_date).count(),
    }
    return {
        'date': on_date.isoformat(),
        'doctor': doctor,
        'stats': stats,
        'today_appointments': today,
        'upcoming_appointments': upcoming,
    }


def patient_summary(user_id, on_date=None):
    on_date = on_date or timezone.localdate()
    patient = Patient.objects.filter(user_id=user_id).first()
    if patient is None:
        logger.warning(f"Patient dashboard requested by {user_id} without a patient profile")
        raise NotFound('Patient profile not found', user_id=str(user_id))

    appointments = Appointment.objects.filter(patient=patient).select_related('patient', 'doctor')
    upcoming = appointments.filter(appointment_date__gte=on_date, status__in=OPEN_APPOINTMENT)
    visits = appointments.filter(status=Appointment.STATUS_COMPLETED)
    pending_bills = Invoice.objects.filter(patient=patient, payment_status__in=OPEN_INVOICE).select_related('patient')

    stats = {
        'upcoming_appointments': upcoming.count(),
        'total_visits': visits.count(),
        'medical_records': OPDRecord.objects.filter(patient=patient).count(),
        'open_lab_orders': LabOrder.objects.filter(patient=patient, status__in=OPEN_LAB_ORDER).count(),
        'abnormal_results': LabOrder.objects.filter(
            patient=patient, status=LabOrder.STATUS_COMPLETED, is_abnormal=True
        ).count(),
        'pending_bills': pending_bills.count(),
        'total_due': pending_bills.aggregate(total=Sum('balance_amount'))['total'] or ZERO,
    }
    return {
        'date': on_date.isoformat(),
        'patient': patient,
        'stats': stats,
        'upcoming_appointments': upcoming.order_by('appointment_date', 'appointment_time')[:5],
        'recent_visits': visits.order_by('-appointment_date', '-appointment_time')[:5],
        'pending_bills': pending_bills.order_by('-invoice_date'),
    }
