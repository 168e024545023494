# apps/doctors/tests.py

import uuid

from django.test import SimpleTestCase, TestCase

from common.exceptions import BusinessValidationError
from common.testing import api_client, make_doctor, make_patient, next_weekday
from .models import DoctorAvailability, DoctorProfile
from .slots import TimeSlotGrid, available_slots, is_valid_slot, normalize_slot


class TimeSlotGridTestCase(SimpleTestCase):
    """Slot token generation"""

    def test_half_hour_grid(self):
        self.assertEqual(list(TimeSlotGrid('09:00', '10:00', 30)), ['09:00', '09:30'])

    def test_last_slot_may_overrun_end(self):
        """Slots start strictly before the window end"""
        grid = TimeSlotGrid('09:00', '10:00', 25)
        self.assertEqual(list(grid), ['09:00', '09:25', '09:50'])
        self.assertEqual(len(grid), 3)

    def test_grid_is_restartable(self):
        grid = TimeSlotGrid('14:00', '15:00', 15)
        self.assertEqual(list(grid), list(grid))
        self.assertEqual(len(grid), 4)

    def test_empty_window(self):
        grid = TimeSlotGrid('10:00', '10:00', 15)
        self.assertEqual(list(grid), [])
        self.assertEqual(len(grid), 0)

    def test_membership(self):
        grid = TimeSlotGrid('09:00', '10:00', 30)
        self.assertIn('09:30', grid)
        self.assertIn('9:30', grid)
        self.assertNotIn('09:15', grid)
        self.assertNotIn('10:00', grid)
        self.assertNotIn('not a time', grid)

    def test_invalid_duration(self):
        with self.assertRaises(BusinessValidationError):
            TimeSlotGrid('09:00', '10:00', 0)

    def test_normalize_slot(self):
        self.assertEqual(normalize_slot('9:05'), '09:05')
        with self.assertRaises(BusinessValidationError):
            normalize_slot('25:00')


class SlotListingTestCase(TestCase):
    """Slots for a doctor on a date"""

    def setUp(self):
        self.doctor = make_doctor(windows=[('monday', '09:00', '10:00')])
        self.monday = next_weekday(0)

    def test_slots_for_scheduled_day(self):
        result = available_slots(self.doctor, self.monday)

        self.assertTrue(result['available'])
        self.assertEqual(result['day'], 'Monday')
        self.assertEqual(
            result['slots'],
            [{'time': '09:00', 'is_booked': False}, {'time': '09:30', 'is_booked': False}]
        )

    def test_booked_slot_is_marked(self):
        from apps.appointments.models import Appointment

        Appointment.objects.create(
            patient=make_patient(), doctor=self.doctor,
            appointment_date=self.monday, appointment_time='09:30',
        )

        slots = available_slots(self.doctor, self.monday)['slots']
        self.assertEqual([slot['is_booked'] for slot in slots], [False, True])

    def test_cancelled_appointment_frees_slot(self):
        from apps.appointments.models import Appointment

        Appointment.objects.create(
            patient=make_patient(), doctor=self.doctor,
            appointment_date=self.monday, appointment_time='09:30',
            status=Appointment.STATUS_CANCELLED,
        )

        slots = available_slots(self.doctor, self.monday)['slots']
        self.assertFalse(any(slot['is_booked'] for slot in slots))

    def test_day_without_window(self):
        tuesday = next_weekday(1)
        result = available_slots(self.doctor, tuesday)

        self.assertFalse(result['available'])
        self.assertEqual(result['slots'], [])
        self.assertEqual(result['message'], 'Doctor is not available on Tuesday')

    def test_unavailable_doctor(self):
        self.doctor.is_available = False
        self.doctor.save()

        result = available_slots(self.doctor, self.monday)
        self.assertFalse(result['available'])
        self.assertEqual(result['message'], 'Doctor is not accepting appointments')

    def test_multiple_windows_merge_in_order(self):
        DoctorAvailability.objects.create(
            doctor=self.doctor, day_of_week='monday',
            start_time='14:00', end_time='14:30',
        )

        times = [slot['time'] for slot in available_slots(self.doctor, self.monday)['slots']]
        self.assertEqual(times, ['09:00', '09:30', '14:00'])
        self.assertTrue(is_valid_slot(self.doctor, self.monday, '14:00'))
        self.assertFalse(is_valid_slot(self.doctor, self.monday, '12:00'))


class DoctorApiTestCase(TestCase):
    """Doctor endpoints"""

    def setUp(self):
        self.doctor = make_doctor(windows=[('monday', '09:00', '10:00')])

    def test_doctor_id_format(self):
        self.assertRegex(self.doctor.doctor_id, r'^DOC\d{6}$')

    def test_create_doctor(self):
        response = api_client('ADMIN').post('/api/doctors/', {
            'first_name': 'Leela',
            'last_name': 'Nair',
            'specialization': 'Cardiology',
            'department': 'Cardiology',
            'consultation_fee': '800.00',
            'slot_duration': 20,
        }, format='json')

        self.assertEqual(response.status_code, 201)
        created = DoctorProfile.objects.get(first_name='Leela')
        self.assertTrue(created.doctor_id.startswith('DOC'))
        self.assertEqual(created.slot_duration, 20)

    def test_short_slot_duration_rejected(self):
        response = api_client('ADMIN').post('/api/doctors/', {
            'first_name': 'Leela',
            'specialization': 'Cardiology',
            'department': 'Cardiology',
            'slot_duration': 2,
        }, format='json')
        self.assertEqual(response.status_code, 400)

    def test_receptionist_cannot_create_doctor(self):
        response = api_client('RECEPTIONIST').post('/api/doctors/', {
            'first_name': 'Leela',
            'specialization': 'Cardiology',
            'department': 'Cardiology',
        }, format='json')
        self.assertEqual(response.status_code, 403)

    def test_slots_endpoint(self):
        """Monday 09:00-10:00 at 30 minutes lists two slots"""
        monday = next_weekday(0)

        response = api_client('PATIENT').get(
            f'/api/doctors/{self.doctor.pk}/slots/', {'date': monday.isoformat()}
        )

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['success'])
        times = [slot['time'] for slot in response.data['data']['slots']]
        self.assertEqual(times, ['09:00', '09:30'])

    def test_slots_endpoint_requires_date(self):
        response = api_client('PATIENT').get(f'/api/doctors/{self.doctor.pk}/slots/')
        self.assertEqual(response.status_code, 400)
        self.assertIn('date', response.data['error']['detail'])

    def test_replace_availability(self):
        response = api_client('ADMIN').put(
            f'/api/doctors/{self.doctor.pk}/availability/',
            {'availability': [
                {'day_of_week': 'tuesday', 'start_time': '10:00', 'end_time': '12:00'},
                {'day_of_week': 'thursday', 'start_time': '16:00', 'end_time': '18:00'},
            ]},
            format='json'
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['count'], 2)
        days = set(self.doctor.availability.values_list('day_of_week', flat=True))
        self.assertEqual(days, {'tuesday', 'thursday'})

    def test_availability_window_must_end_after_start(self):
        response = api_client('ADMIN').put(
            f'/api/doctors/{self.doctor.pk}/availability/',
            {'availability': [{'day_of_week': 'tuesday', 'start_time': '12:00', 'end_time': '10:00'}]},
            format='json'
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.doctor.availability.count(), 1)

    def test_doctor_edits_only_own_availability(self):
        own_user = str(uuid.uuid4())
        self.doctor.user_id = own_user
        self.doctor.save()
        other = make_doctor(first_name='Leela')
        client = api_client('DOCTOR', user_id=own_user)
        body = {'availability': [{'day_of_week': 'friday', 'start_time': '09:00', 'end_time': '11:00'}]}

        self.assertEqual(
            client.put(f'/api/doctors/{self.doctor.pk}/availability/', body, format='json').status_code, 200
        )
        self.assertEqual(
            client.put(f'/api/doctors/{other.pk}/availability/', body, format='json').status_code, 403
        )

    def test_specializations(self):
        make_doctor(first_name='Leela', specialization='Cardiology')

        response = api_client('RECEPTIONIST').get('/api/doctors/specializations/')
        self.assertEqual(response.data['data'], ['Cardiology', 'General Medicine'])
