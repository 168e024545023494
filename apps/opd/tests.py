# apps/opd/tests.py

import uuid

from django.test import TestCase

from common.exceptions import BusinessValidationError, Conflict, InvalidState, NotFound
from common.testing import api_client, make_doctor, make_patient, next_weekday
from apps.appointments import services as appointment_services
from apps.appointments.models import Appointment
from .models import OPDRecord, Prescription
from . import services

PARACETAMOL = {'medicine': 'Paracetamol 500mg', 'dosage': '1 tablet', 'frequency': '1-0-1', 'duration': '5 days'}


class OPDRecordTestCase(TestCase):
    """Consultations through the OPD services"""

    def setUp(self):
        self.doctor = make_doctor(windows=[('monday', '09:00', '10:00')])
        self.patient = make_patient()
        self.appointment = appointment_services.create_appointment(
            self.patient.pk, self.doctor.pk, next_weekday(0), '09:00'
        )

    def test_record_completes_appointment(self):
        record = services.create_record(
            self.patient.pk, self.doctor.pk,
            appointment_pk=self.appointment.pk,
            symptoms=['Fever', 'Cough'],
            diagnosis='Viral fever',
            prescriptions=[PARACETAMOL],
        )

        self.assertRegex(record.record_id, r'^OPD\d{6}$')
        self.assertEqual(record.symptoms, ['Fever', 'Cough'])
        self.assertEqual(record.prescriptions.get().medicine, 'Paracetamol 500mg')
        self.appointment.refresh_from_db()
        self.assertEqual(self.appointment.status, Appointment.STATUS_COMPLETED)

    def test_one_record_per_appointment(self):
        services.create_record(self.patient.pk, self.doctor.pk, appointment_pk=self.appointment.pk)

        with self.assertRaises(Conflict):
            services.create_record(self.patient.pk, self.doctor.pk, appointment_pk=self.appointment.pk)
        self.assertEqual(OPDRecord.objects.count(), 1)

    def test_cancelled_appointment_cannot_be_recorded(self):
        appointment_services.cancel_appointment(self.appointment.pk, 'Unwell')

        with self.assertRaises(InvalidState):
            services.create_record(self.patient.pk, self.doctor.pk, appointment_pk=self.appointment.pk)
        self.assertFalse(OPDRecord.objects.exists())

    def test_appointment_must_match_visit(self):
        other = make_patient(first_name='Ravi', phone='9123456780')

        with self.assertRaises(BusinessValidationError):
            services.create_record(other.pk, self.doctor.pk, appointment_pk=self.appointment.pk)
        self.appointment.refresh_from_db()
        self.assertEqual(self.appointment.status, Appointment.STATUS_SCHEDULED)

    def test_walk_in_without_appointment(self):
        record = services.create_record(self.patient.pk, self.doctor.pk, diagnosis='Sprain')
        self.assertIsNone(record.appointment)

    def test_incomplete_prescription_rejected_before_writing(self):
        with self.assertRaises(BusinessValidationError) as ctx:
            services.create_record(
                self.patient.pk, self.doctor.pk,
                appointment_pk=self.appointment.pk,
                prescriptions=[{'medicine': 'Amoxicillin'}],
            )
        self.assertEqual(ctx.exception.detail['missing'], ['dosage', 'frequency'])
        self.appointment.refresh_from_db()
        self.assertEqual(self.appointment.status, Appointment.STATUS_SCHEDULED)

    def test_add_prescriptions(self):
        record = services.create_record(self.patient.pk, self.doctor.pk)

        services.add_prescriptions(record.pk, [PARACETAMOL, dict(PARACETAMOL, medicine='ORS')])

        self.assertEqual(list(record.prescriptions.values_list('medicine', flat=True)), ['Paracetamol 500mg', 'ORS'])
        with self.assertRaises(BusinessValidationError):
            services.add_prescriptions(record.pk, [])
        with self.assertRaises(NotFound):
            services.add_prescriptions(999999, [PARACETAMOL])

    def test_unknown_references(self):
        with self.assertRaises(NotFound):
            services.create_record(999999, self.doctor.pk)
        with self.assertRaises(NotFound):
            services.create_record(self.patient.pk, self.doctor.pk, appointment_pk=999999)

    def test_history_and_stats(self):
        services.create_record(self.patient.pk, self.doctor.pk, appointment_pk=self.appointment.pk)
        services.create_record(self.patient.pk, self.doctor.pk)

        self.assertEqual(services.patient_history(self.patient.pk).count(), 2)
        stats = services.opd_stats()
        self.assertEqual(stats['today'], 2)
        self.assertEqual(stats['this_month'], 2)


class OPDApiTestCase(TestCase):
    """OPD endpoints"""

    def setUp(self):
        self.doctor = make_doctor()
        self.patient = make_patient()
        self.client = api_client('DOCTOR')

    def visit(self, **extra):
        body = {'patient': self.patient.pk, 'doctor': self.doctor.pk, 'diagnosis': 'Migraine'}
        body.update(extra)
        return self.client.post('/api/opd/records/', body, format='json')

    def test_record_visit_with_prescriptions(self):
        response = self.visit(
            symptoms=['Headache'],
            blood_pressure_systolic=130,
            blood_pressure_diastolic=85,
            prescriptions=[PARACETAMOL],
        )

        self.assertEqual(response.status_code, 201)
        data = response.data['data']
        self.assertEqual(data['blood_pressure'], '130/85')
        self.assertEqual(len(data['prescriptions']), 1)

        response = self.client.post(
            f"/api/opd/records/{data['id']}/prescriptions/", {'prescriptions': [PARACETAMOL]}, format='json'
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(Prescription.objects.count(), 2)

    def test_vitals_are_checked(self):
        response = self.visit(blood_pressure_systolic=80, blood_pressure_diastolic=90)
        self.assertEqual(response.status_code, 400)
        self.assertIn('blood_pressure_systolic', response.data['error']['detail'])

    def test_nurse_cannot_record_visit(self):
        response = api_client('NURSE').post(
            '/api/opd/records/', {'patient': self.patient.pk, 'doctor': self.doctor.pk}, format='json'
        )
        self.assertEqual(response.status_code, 403)

    def test_patient_sees_only_own_history(self):
        self.visit()
        user_id = str(uuid.uuid4())
        own = make_patient(first_name='Ravi', phone='9123456780', user_id=user_id)
        client = api_client('PATIENT', user_id=user_id)

        self.assertEqual(client.get('/api/opd/records/').data['count'], 0)
        self.assertEqual(client.get(f'/api/opd/records/patient/{self.patient.pk}/').status_code, 403)
        self.assertEqual(client.get(f'/api/opd/records/patient/{own.pk}/').status_code, 200)

    def test_update_clinical_fields(self):
        record_id = self.visit().data['data']['id']

        response = self.client.patch(
            f'/api/opd/records/{record_id}/', {'follow_up_date': '2030-01-15', 'treatment_notes': 'Rest'}, format='json'
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['data']['follow_up_date'], '2030-01-15')
