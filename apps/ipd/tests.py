# apps/ipd/tests.py

from decimal import Decimal
from unittest import mock

from django.test import TestCase

from common.exceptions import Conflict, InvalidState, NotFound
from common.testing import api_client, make_doctor, make_patient
from .models import Ward, Bed, Admission, BedTransfer, TreatmentNote
from . import services


class IPDTestMixin:

    def setUp(self):
        self.ward = Ward.objects.create(name='General Ward A', ward_type='GENERAL', floor=1)
        self.icu = Ward.objects.create(name='ICU 1', ward_type='ICU', floor=3)
        self.bed = Bed.objects.create(ward=self.ward, bed_number='B-1', daily_rate=Decimal('1500.00'))
        self.bed2 = Bed.objects.create(ward=self.ward, bed_number='B-2', daily_rate=Decimal('1500.00'))
        self.icu_bed = Bed.objects.create(ward=self.icu, bed_number='ICU-1', daily_rate=Decimal('8000.00'))
        self.patient = make_patient()
        self.other_patient = make_patient(first_name='Ravi', phone='9123456780')
        self.doctor = make_doctor()

    def admit(self, patient=None, bed=None):
        return services.admit_patient(
            (patient or self.patient).pk,
            self.doctor.pk,
            (bed or self.bed).pk,
            reason='Pneumonia',
        )


class AdmissionLifecycleTestCase(IPDTestMixin, TestCase):
    """Admit, discharge and transfer through the service layer"""

    def test_admit_occupies_bed(self):
        """Admitting a patient to B-1 marks the stay admitted and the bed occupied by them"""
        admission = self.admit()

        self.bed.refresh_from_db()
        self.assertEqual(admission.status, Admission.STATUS_ADMITTED)
        self.assertTrue(admission.admission_id.startswith('IPD'))
        self.assertEqual(self.bed.status, Bed.STATUS_OCCUPIED)
        self.assertEqual(self.bed.current_patient, self.patient)

    def test_second_admit_to_same_bed_conflicts(self):
        """An occupied bed cannot take a second patient"""
        self.admit()

        with self.assertRaises(Conflict) as ctx:
            self.admit(patient=self.other_patient)
        self.assertEqual(ctx.exception.detail['current_status'], Bed.STATUS_OCCUPIED)
        self.assertEqual(Admission.objects.count(), 1)

    def test_patient_cannot_hold_two_active_stays(self):
        self.admit()

        with self.assertRaises(Conflict):
            self.admit(bed=self.bed2)

        self.bed2.refresh_from_db()
        self.assertEqual(self.bed2.status, Bed.STATUS_AVAILABLE)
        self.assertIsNone(self.bed2.current_patient)

    def test_concurrent_admission_loses_and_frees_bed(self):
        """A stay created between the pre-check and the insert is caught by the constraint"""
        self.admit()

        with mock.patch('apps.ipd.services.admissions._active_stay', return_value=None):
            with self.assertRaises(Conflict) as ctx:
                self.admit(bed=self.bed2)

        self.assertEqual(ctx.exception.detail, {'patient': self.patient.patient_id})
        self.bed2.refresh_from_db()
        self.assertEqual(self.bed2.status, Bed.STATUS_AVAILABLE)
        self.assertIsNone(self.bed2.current_patient)
        self.assertEqual(Admission.objects.filter(patient=self.patient).count(), 1)

    def test_admit_unknown_references(self):
        with self.assertRaises(NotFound):
            services.admit_patient(999999, self.doctor.pk, self.bed.pk, reason='x')
        with self.assertRaises(NotFound):
            services.admit_patient(self.patient.pk, self.doctor.pk, 999999, reason='x')

    def test_admit_to_bed_under_maintenance_conflicts(self):
        services.mark_maintenance(self.bed.pk)

        with self.assertRaises(Conflict):
            self.admit()

    def test_discharge_frees_bed(self):
        """Discharge closes the stay and returns the bed to AVAILABLE with no occupant"""
        admission = self.admit()
        admission = services.discharge_patient(admission.pk, discharge_condition='RECOVERED')

        self.bed.refresh_from_db()
        self.assertEqual(admission.status, Admission.STATUS_DISCHARGED)
        self.assertIsNotNone(admission.discharge_date)
        self.assertEqual(self.bed.status, Bed.STATUS_AVAILABLE)
        self.assertIsNone(self.bed.current_patient)

    def test_discharge_twice_is_invalid(self):
        admission = self.admit()
        services.discharge_patient(admission.pk)

        with self.assertRaises(InvalidState) as ctx:
            services.discharge_patient(admission.pk)
        self.assertEqual(ctx.exception.detail['current_status'], Admission.STATUS_DISCHARGED)

    def test_readmit_after_discharge(self):
        admission = self.admit()
        services.discharge_patient(admission.pk)

        again = self.admit()
        self.assertNotEqual(again.admission_id, admission.admission_id)

    def test_transfer_moves_patient(self):
        admission = self.admit()
        transfer = services.transfer_patient(admission.pk, self.icu_bed.pk, reason='Deteriorating')

        admission.refresh_from_db()
        self.bed.refresh_from_db()
        self.icu_bed.refresh_from_db()
        self.assertEqual(admission.bed, self.icu_bed)
        self.assertEqual(admission.status, Admission.STATUS_ADMITTED)
        self.assertEqual(self.bed.status, Bed.STATUS_AVAILABLE)
        self.assertIsNone(self.bed.current_patient)
        self.assertEqual(self.icu_bed.current_patient, self.patient)
        self.assertEqual(transfer.from_bed_number, 'B-1')
        self.assertEqual(transfer.to_bed_number, 'ICU-1')
        self.assertTrue(
            TreatmentNote.objects.filter(
                admission=admission,
                note='Patient transferred from bed B-1 to bed ICU-1'
            ).exists()
        )

    def test_transfer_to_occupied_bed_conflicts(self):
        admission = self.admit()
        self.admit(patient=self.other_patient, bed=self.bed2)

        with self.assertRaises(Conflict):
            services.transfer_patient(admission.pk, self.bed2.pk)

        self.bed.refresh_from_db()
        self.assertEqual(self.bed.current_patient, self.patient)
        self.assertEqual(BedTransfer.objects.count(), 0)

    def test_transfer_to_same_bed_conflicts(self):
        admission = self.admit()
        with self.assertRaises(Conflict):
            services.transfer_patient(admission.pk, self.bed.pk)

    def test_clinical_entries_need_active_stay(self):
        admission = self.admit()
        services.add_treatment_note(admission.pk, 'Started IV antibiotics')
        services.add_vital_record(admission.pk, temperature=Decimal('38.2'), pulse=96)
        services.discharge_patient(admission.pk)

        with self.assertRaises(InvalidState):
            services.add_treatment_note(admission.pk, 'Late note')
        with self.assertRaises(InvalidState):
            services.add_medication(admission.pk, medicine='Paracetamol', dosage='500mg', frequency='TID')
        self.assertEqual(admission.treatment_notes.count(), 1)


class BedStateMachineTestCase(IPDTestMixin, TestCase):
    """Bed transitions and deletion"""

    def test_delete_occupied_bed_conflicts_until_discharge(self):
        """An occupied bed cannot be deleted; after discharge it can"""
        admission = self.admit()

        with self.assertRaises(Conflict):
            services.delete_bed(self.bed.pk)
        self.assertTrue(Bed.objects.filter(pk=self.bed.pk).exists())

        services.discharge_patient(admission.pk)
        services.delete_bed(self.bed.pk)

        self.assertFalse(Bed.objects.filter(pk=self.bed.pk).exists())
        admission.refresh_from_db()
        self.assertIsNone(admission.bed)

    def test_delete_missing_bed(self):
        with self.assertRaises(NotFound):
            services.delete_bed(999999)

    def test_maintenance_cycle(self):
        bed = services.mark_maintenance(self.bed.pk)
        self.assertEqual(bed.status, Bed.STATUS_MAINTENANCE)

        bed = services.mark_available(self.bed.pk, cleaned=True)
        self.assertEqual(bed.status, Bed.STATUS_AVAILABLE)
        self.assertIsNotNone(bed.last_cleaned_at)

    def test_occupied_bed_cannot_go_to_maintenance(self):
        self.admit()
        with self.assertRaises(Conflict):
            services.mark_maintenance(self.bed.pk)

    def test_reserve_only_available(self):
        services.reserve_bed(self.bed.pk)
        with self.assertRaises(Conflict):
            services.reserve_bed(self.bed.pk)
        with self.assertRaises(Conflict):
            self.admit()

    def test_release_checks_occupant(self):
        self.admit()
        with self.assertRaises(Conflict):
            services.release_bed(self.bed.pk, patient=self.other_patient)

    def test_bed_stats(self):
        self.admit()
        services.mark_maintenance(self.bed2.pk)

        stats = services.bed_stats()
        self.assertEqual(stats['total'], 3)
        self.assertEqual(stats['occupied'], 1)
        self.assertEqual(stats['maintenance'], 1)
        self.assertEqual(stats['available'], 1)
        self.assertEqual(stats['occupancy_rate'], 33.33)
        by_type = {row['ward_type']: row for row in stats['by_ward_type']}
        self.assertEqual(by_type['GENERAL']['total'], 2)
        self.assertEqual(by_type['ICU']['available'], 1)


class IPDApiTestCase(IPDTestMixin, TestCase):
    """HTTP surface for wards, beds and admissions"""

    def setUp(self):
        super().setUp()
        self.client = api_client('ADMIN')

    def test_admit_and_discharge_over_api(self):
        response = self.client.post('/api/ipd/admissions/', {
            'patient': self.patient.pk,
            'doctor': self.doctor.pk,
            'bed': self.bed.pk,
            'reason': 'Observation',
        }, format='json')
        self.assertEqual(response.status_code, 201)
        data = response.json()['data']
        self.assertEqual(data['status'], 'ADMITTED')
        self.assertEqual(data['bed_number'], 'B-1')

        response = self.client.post('/api/ipd/admissions/', {
            'patient': self.other_patient.pk,
            'doctor': self.doctor.pk,
            'bed': self.bed.pk,
            'reason': 'Observation',
        }, format='json')
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['error']['code'], 'conflict')

        response = self.client.post(f"/api/ipd/admissions/{data['id']}/discharge/", {
            'discharge_condition': 'IMPROVED',
            'discharge_medications': [{'medicine': 'Amoxicillin', 'dosage': '500mg', 'duration': '5 days'}],
        }, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['status'], 'DISCHARGED')
        self.assertIsNotNone(response.json()['data']['discharge_date'])

        response = self.client.post(f"/api/ipd/admissions/{data['id']}/discharge/", {}, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error']['code'], 'invalid_state')

    def test_bed_status_is_not_writable(self):
        response = self.client.patch(f"/api/ipd/beds/{self.bed.pk}/", {'status': 'OCCUPIED'}, format='json')
        self.assertEqual(response.status_code, 200)
        self.bed.refresh_from_db()
        self.assertEqual(self.bed.status, Bed.STATUS_AVAILABLE)

    def test_delete_occupied_bed_over_api(self):
        admission = self.admit()

        response = self.client.delete(f"/api/ipd/beds/{self.bed.pk}/")
        self.assertEqual(response.status_code, 409)

        services.discharge_patient(admission.pk)
        response = self.client.delete(f"/api/ipd/beds/{self.bed.pk}/")
        self.assertEqual(response.status_code, 204)

    def test_available_beds_by_ward_type(self):
        self.admit()
        response = self.client.get('/api/ipd/beds/available/', {'ward_type': 'general'})
        self.assertEqual(response.status_code, 200)
        numbers = [bed['bed_number'] for bed in response.json()['data']]
        self.assertEqual(numbers, ['B-2'])

    def test_vitals_validation(self):
        admission = self.admit()
        url = f"/api/ipd/admissions/{admission.pk}/vitals/"

        response = self.client.post(url, {
            'blood_pressure_systolic': 80,
            'blood_pressure_diastolic': 90,
        }, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error']['code'], 'validation_error')

        response = self.client.post(url, {
            'blood_pressure_systolic': 120,
            'blood_pressure_diastolic': 80,
            'pulse': 72,
        }, format='json')
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['data']['blood_pressure'], '120/80')

    def test_ward_with_beds_cannot_be_deleted(self):
        response = self.client.delete(f"/api/ipd/wards/{self.ward.pk}/")
        self.assertEqual(response.status_code, 409)

    def test_nurse_cannot_admit(self):
        response = api_client('NURSE').post('/api/ipd/admissions/', {
            'patient': self.patient.pk,
            'doctor': self.doctor.pk,
            'bed': self.bed.pk,
            'reason': 'Observation',
        }, format='json')
        self.assertEqual(response.status_code, 403)
