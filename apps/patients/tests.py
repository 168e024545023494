# apps/patients/tests.py

import re
import uuid

from django.test import TestCase

from common.testing import api_client, make_doctor, make_patient
from .models import Patient


class PatientRegistryTestCase(TestCase):
    """Patient registration and the generated identifier"""

    def test_patient_id_is_sequential(self):
        first = make_patient()
        second = make_patient(first_name='Ravi', phone='9123456780')

        self.assertTrue(re.match(r'^PAT\d{6}$', first.patient_id))
        self.assertEqual(int(second.patient_id[3:]), int(first.patient_id[3:]) + 1)

    def test_patient_id_kept_on_save(self):
        patient = make_patient()
        original = patient.patient_id
        patient.phone = '9000000000'
        patient.save()
        patient.refresh_from_db()
        self.assertEqual(patient.patient_id, original)

    def test_full_name_and_age(self):
        patient = make_patient(last_name='')
        self.assertEqual(patient.full_name, 'Asha')
        self.assertGreaterEqual(patient.age, 30)


class PatientApiTestCase(TestCase):
    """Patient endpoints"""

    def setUp(self):
        self.client = api_client('RECEPTIONIST')

    def test_register_patient(self):
        """Front desk registers a walk-in patient"""
        response = self.client.post('/api/patients/', {
            'first_name': 'Meera',
            'last_name': 'Iyer',
            'date_of_birth': '1985-02-11',
            'gender': 'FEMALE',
            'phone': '+919812345678',
            'allergies': ['penicillin'],
        }, format='json')

        self.assertEqual(response.status_code, 201)
        self.assertTrue(response.data['success'])
        self.assertTrue(response.data['data']['patient_id'].startswith('PAT'))
        self.assertEqual(Patient.objects.count(), 1)
        self.assertIsNotNone(Patient.objects.get().created_by_user_id)

    def test_patient_id_not_writable(self):
        response = self.client.post('/api/patients/', {
            'patient_id': 'PAT999999',
            'first_name': 'Meera',
            'date_of_birth': '1985-02-11',
            'gender': 'FEMALE',
            'phone': '9812345678',
        }, format='json')

        self.assertEqual(response.status_code, 201)
        self.assertNotEqual(response.data['data']['patient_id'], 'PAT999999')

    def test_invalid_phone_rejected(self):
        response = self.client.post('/api/patients/', {
            'first_name': 'Meera',
            'date_of_birth': '1985-02-11',
            'gender': 'FEMALE',
            'phone': 'call me',
        }, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['error']['code'], 'validation_error')
        self.assertIn('phone', response.data['error']['detail'])

    def test_future_birth_date_rejected(self):
        response = self.client.post('/api/patients/', {
            'first_name': 'Meera',
            'date_of_birth': '2999-01-01',
            'gender': 'FEMALE',
            'phone': '9812345678',
        }, format='json')
        self.assertEqual(response.status_code, 400)

    def test_insurance_policy_required_with_provider(self):
        response = self.client.post('/api/patients/', {
            'first_name': 'Meera',
            'date_of_birth': '1985-02-11',
            'gender': 'FEMALE',
            'phone': '9812345678',
            'insurance_provider': 'Star Health',
        }, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertIn('insurance_policy_number', response.data['error']['detail'])

    def test_search_by_name(self):
        make_patient()
        make_patient(first_name='Ravi', last_name='Kumar', phone='9123456780')

        response = self.client.get('/api/patients/', {'search': 'Ravi'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['full_name'], 'Ravi Kumar')

    def test_patient_sees_only_own_record(self):
        user_id = str(uuid.uuid4())
        own = make_patient(user_id=user_id)
        other = make_patient(first_name='Ravi', phone='9123456780')
        client = api_client('PATIENT', user_id=user_id)

        self.assertEqual(client.get(f'/api/patients/{own.pk}/').status_code, 200)
        self.assertEqual(client.get(f'/api/patients/{other.pk}/').status_code, 404)
        # Listing the registry is staff only
        self.assertEqual(client.get('/api/patients/').status_code, 403)

    def test_me(self):
        user_id = str(uuid.uuid4())
        patient = make_patient(user_id=user_id)

        response = api_client('PATIENT', user_id=user_id).get('/api/patients/me/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['data']['patient_id'], patient.patient_id)

        response = api_client('PATIENT').get('/api/patients/me/')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data['error']['code'], 'not_found')

    def test_delete_is_admin_only(self):
        patient = make_patient()
        self.assertEqual(self.client.delete(f'/api/patients/{patient.pk}/').status_code, 403)
        self.assertEqual(api_client('ADMIN').delete(f'/api/patients/{patient.pk}/').status_code, 204)

    def test_delete_patient_with_history_conflicts(self):
        """Patients referenced by appointments are protected"""
        from apps.appointments.models import Appointment
        from common.testing import next_weekday

        patient = make_patient()
        doctor = make_doctor(windows=[('monday', '09:00', '10:00')])
        Appointment.objects.create(
            patient=patient,
            doctor=doctor,
            appointment_date=next_weekday(0),
            appointment_time='09:00',
        )

        response = api_client('ADMIN').delete(f'/api/patients/{patient.pk}/')

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data['error']['code'], 'conflict')
        self.assertTrue(Patient.objects.filter(pk=patient.pk).exists())
