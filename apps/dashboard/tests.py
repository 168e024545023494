# apps/dashboard/tests.py

import uuid
from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from common.testing import api_client, make_doctor, make_patient
from apps.appointments.models import Appointment
from apps.billing import services as billing_services
from apps.diagnostics.models import LabTest
from apps.diagnostics import services as lab_services
from apps.ipd.models import Ward, Bed
from apps.ipd import services as ipd_services
from apps.opd import services as opd_services

CONSULTATION = {'description': 'Consultation', 'category': 'CONSULTATION', 'quantity': 1, 'unit_price': Decimal('500')}


class DashboardTestCase(TestCase):
    """Role dashboards"""

    def setUp(self):
        self.today = timezone.localdate()
        self.doctor_user = str(uuid.uuid4())
        self.patient_user = str(uuid.uuid4())
        self.doctor = make_doctor(user_id=self.doctor_user)
        self.patient = make_patient(user_id=self.patient_user)

        def book(day, time, status=Appointment.STATUS_SCHEDULED):
            return Appointment.objects.create(
                patient=self.patient, doctor=self.doctor,
                appointment_date=day, appointment_time=time, status=status,
            )

        book(self.today, '09:00', Appointment.STATUS_COMPLETED)
        book(self.today, '09:30')
        book(self.today, '10:00', Appointment.STATUS_CANCELLED)
        book(self.today + timedelta(days=3), '11:00')

        ward = Ward.objects.create(name='General Ward A', ward_type='GENERAL', floor=1)
        bed = Bed.objects.create(ward=ward, bed_number='B-1', daily_rate=Decimal('1500.00'))
        Bed.objects.create(ward=ward, bed_number='B-2', daily_rate=Decimal('1500.00'))
        ipd_services.admit_patient(self.patient.pk, self.doctor.pk, bed.pk, 'Observation')

        invoice = billing_services.create_invoice(self.patient.pk, [CONSULTATION])
        billing_services.add_payment(invoice.pk, Decimal('200.00'), 'CASH')

        test = LabTest.objects.create(name='Complete Blood Count', code='CBC', price=Decimal('350.00'))
        order = lab_services.create_order(self.patient.pk, test.pk)
        lab_services.collect_sample(order.pk)
        lab_services.record_result(order.pk, '9.1', is_abnormal=True)
        lab_services.create_order(self.patient.pk, test.pk)

        opd_services.create_record(self.patient.pk, self.doctor.pk, follow_up_date=self.today)

    def test_admin_dashboard(self):
        response = api_client('ADMIN').get('/api/dashboard/admin/')

        self.assertEqual(response.status_code, 200)
        stats = response.data['data']['stats']
        self.assertEqual(stats['total_patients'], 1)
        self.assertEqual(stats['today_appointments'], 2)
        self.assertEqual(stats['currently_admitted'], 1)
        self.assertEqual(stats['bed_occupancy'], {'total': 2, 'occupied': 1, 'available': 1, 'rate': 50.0})
        self.assertEqual(stats['today_revenue'], Decimal('200.00'))
        self.assertEqual(stats['pending_payments'], Decimal('300.00'))
        self.assertEqual(stats['open_lab_orders'], 1)
        self.assertEqual(len(response.data['data']['recent_appointments']), 4)

    def test_doctor_dashboard(self):
        response = api_client('DOCTOR', user_id=self.doctor_user).get('/api/dashboard/doctor/')

        self.assertEqual(response.status_code, 200)
        data = response.data['data']
        self.assertEqual(data['doctor']['doctor_id'], self.doctor.doctor_id)
        self.assertEqual(data['stats']['today_total'], 2)
        self.assertEqual(data['stats']['completed'], 1)
        self.assertEqual(data['stats']['pending'], 1)
        self.assertEqual(data['stats']['total_patients'], 1)
        self.assertEqual(data['stats']['ipd_patients'], 1)
        self.assertEqual(data['stats']['follow_ups_due'], 1)
        self.assertEqual([a['appointment_time'] for a in data['today_appointments']], ['09:00', '09:30', '10:00'])
        self.assertEqual(len(data['upcoming_appointments']), 1)

    def test_patient_dashboard(self):
        response = api_client('PATIENT', user_id=self.patient_user).get('/api/dashboard/patient/')

        self.assertEqual(response.status_code, 200)
        data = response.data['data']
        self.assertEqual(data['patient']['patient_id'], self.patient.patient_id)
        self.assertEqual(data['stats']['upcoming_appointments'], 2)
        self.assertEqual(data['stats']['total_visits'], 1)
        self.assertEqual(data['stats']['medical_records'], 1)
        self.assertEqual(data['stats']['open_lab_orders'], 1)
        self.assertEqual(data['stats']['abnormal_results'], 1)
        self.assertEqual(data['stats']['pending_bills'], 1)
        self.assertEqual(data['stats']['total_due'], Decimal('300.00'))

    def test_missing_profile_is_404(self):
        response = api_client('DOCTOR').get('/api/dashboard/doctor/')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data['error']['code'], 'not_found')

        self.assertEqual(api_client('PATIENT').get('/api/dashboard/patient/').status_code, 404)

    def test_dashboards_are_role_scoped(self):
        self.assertEqual(api_client('DOCTOR', user_id=self.doctor_user).get('/api/dashboard/admin/').status_code, 403)
        self.assertEqual(api_client('PATIENT', user_id=self.patient_user).get('/api/dashboard/doctor/').status_code, 403)
        self.assertEqual(api_client('NURSE').get('/api/dashboard/patient/').status_code, 403)
