# apps/appointments/tests.py

import datetime
import uuid
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from common.exceptions import BusinessValidationError, Conflict, InvalidState, NotFound
from common.testing import api_client, make_doctor, make_patient, next_weekday
from apps.doctors.slots import available_slots
from .models import Appointment
from . import services


class BookingTestCase(TestCase):
    """Slot allocation through the appointment services"""

    def setUp(self):
        self.doctor = make_doctor(windows=[('monday', '09:00', '10:00')])
        self.patient = make_patient()
        self.other_patient = make_patient(first_name='Ravi', phone='9123456780')
        self.monday = next_weekday(0)

    def book(self, patient=None, time='09:00', on_date=None):
        return services.create_appointment(
            (patient or self.patient).pk, self.doctor.pk, on_date or self.monday, time
        )

    def test_book_slot(self):
        appointment = self.book()

        self.assertRegex(appointment.appointment_id, r'^APT\d{6}$')
        self.assertEqual(appointment.status, Appointment.STATUS_SCHEDULED)
        self.assertEqual(appointment.appointment_time, '09:00')
        self.assertEqual(appointment.fee, Decimal('500.00'))

    def test_double_booking_conflicts(self):
        """Second booking of a held slot is rejected"""
        self.book()

        with self.assertRaises(Conflict):
            self.book(patient=self.other_patient)

        self.assertEqual(Appointment.objects.count(), 1)
        slots = available_slots(self.doctor, self.monday)['slots']
        self.assertEqual(slots, [{'time': '09:00', 'is_booked': True}, {'time': '09:30', 'is_booked': False}])

    def test_time_is_normalised(self):
        appointment = self.book(time='9:30')
        self.assertEqual(appointment.appointment_time, '09:30')
        with self.assertRaises(Conflict):
            self.book(patient=self.other_patient, time='09:30')

    def test_cancel_frees_slot(self):
        appointment = self.book()
        services.cancel_appointment(appointment.pk, 'Patient travelling')

        rebooked = self.book(patient=self.other_patient)
        self.assertEqual(rebooked.appointment_time, '09:00')

        appointment.refresh_from_db()
        self.assertEqual(appointment.status, Appointment.STATUS_CANCELLED)
        self.assertEqual(appointment.cancel_reason, 'Patient travelling')
        self.assertIsNotNone(appointment.cancelled_at)

    def test_off_grid_time_rejected(self):
        with self.assertRaises(BusinessValidationError):
            self.book(time='09:15')
        with self.assertRaises(BusinessValidationError):
            self.book(time='10:00')

    def test_day_without_window_rejected(self):
        with self.assertRaises(BusinessValidationError):
            self.book(on_date=next_weekday(1))

    def test_past_date_rejected(self):
        past_monday = timezone.localdate() - datetime.timedelta(days=7 + timezone.localdate().weekday())
        with self.assertRaises(BusinessValidationError):
            self.book(on_date=past_monday)

    def test_unavailable_doctor_rejected(self):
        self.doctor.is_available = False
        self.doctor.save()
        with self.assertRaises(InvalidState):
            self.book()

    def test_unknown_references(self):
        with self.assertRaises(NotFound):
            services.create_appointment(999999, self.doctor.pk, self.monday, '09:00')
        with self.assertRaises(NotFound):
            services.create_appointment(self.patient.pk, 999999, self.monday, '09:00')


class AppointmentLifecycleTestCase(TestCase):
    """Status transitions and rescheduling"""

    def setUp(self):
        self.doctor = make_doctor(windows=[('monday', '09:00', '10:00'), ('wednesday', '14:00', '15:00')])
        self.patient = make_patient()
        self.monday = next_weekday(0)
        self.appointment = services.create_appointment(self.patient.pk, self.doctor.pk, self.monday, '09:00')

    def test_confirm_then_complete(self):
        confirmed = services.confirm_appointment(self.appointment.pk)
        self.assertEqual(confirmed.status, Appointment.STATUS_CONFIRMED)

        completed = services.complete_appointment(self.appointment.pk)
        self.assertEqual(completed.status, Appointment.STATUS_COMPLETED)

    def test_confirm_only_from_scheduled(self):
        services.confirm_appointment(self.appointment.pk)
        with self.assertRaises(InvalidState):
            services.confirm_appointment(self.appointment.pk)

    def test_cannot_cancel_completed(self):
        services.complete_appointment(self.appointment.pk)

        with self.assertRaises(InvalidState) as ctx:
            services.cancel_appointment(self.appointment.pk, 'Changed mind')
        self.assertEqual(ctx.exception.detail['current_status'], Appointment.STATUS_COMPLETED)

    def test_cancel_requires_reason(self):
        with self.assertRaises(BusinessValidationError):
            services.cancel_appointment(self.appointment.pk, '   ')

    def test_no_show_is_terminal(self):
        services.mark_no_show(self.appointment.pk)
        with self.assertRaises(InvalidState):
            services.complete_appointment(self.appointment.pk)

    def test_transition_unknown_appointment(self):
        with self.assertRaises(NotFound):
            services.confirm_appointment(999999)

    def test_reschedule_moves_slot(self):
        wednesday = next_weekday(2, after=self.monday)

        moved = services.reschedule_appointment(self.appointment.pk, wednesday, '14:30')

        self.assertEqual(moved.appointment_date, wednesday)
        self.assertEqual(moved.appointment_time, '14:30')
        # Old slot is free again
        other = services.create_appointment(
            make_patient(first_name='Ravi', phone='9123456780').pk, self.doctor.pk, self.monday, '09:00'
        )
        self.assertEqual(other.status, Appointment.STATUS_SCHEDULED)

    def test_reschedule_to_taken_slot_conflicts(self):
        services.create_appointment(
            make_patient(first_name='Ravi', phone='9123456780').pk, self.doctor.pk, self.monday, '09:30'
        )

        with self.assertRaises(Conflict):
            services.reschedule_appointment(self.appointment.pk, self.monday, '09:30')

        self.appointment.refresh_from_db()
        self.assertEqual(self.appointment.appointment_time, '09:00')

    def test_reschedule_cancelled_is_invalid(self):
        services.cancel_appointment(self.appointment.pk, 'Unwell')
        with self.assertRaises(InvalidState):
            services.reschedule_appointment(self.appointment.pk, self.monday, '09:30')

    def test_stats(self):
        services.cancel_appointment(self.appointment.pk, 'Unwell')
        services.create_appointment(self.patient.pk, self.doctor.pk, self.monday, '09:30')

        stats = services.appointment_stats(on_date=self.monday)

        self.assertEqual(stats['today'], 2)
        self.assertEqual(stats['pending'], 1)
        self.assertEqual(stats['cancelled'], 1)
        self.assertEqual(stats['completed'], 0)
        self.assertEqual(stats['date'], self.monday.isoformat())


class AppointmentApiTestCase(TestCase):
    """Appointment endpoints"""

    def setUp(self):
        self.doctor = make_doctor(windows=[('monday', '09:00', '10:00')])
        self.patient = make_patient()
        self.monday = next_weekday(0)
        self.client = api_client('RECEPTIONIST')

    def booking(self, patient=None, time='09:00'):
        return {
            'patient': (patient or self.patient).pk,
            'doctor': self.doctor.pk,
            'appointment_date': self.monday.isoformat(),
            'appointment_time': time,
        }

    def test_book_and_double_book(self):
        """Booked slot shows as taken and a second booking gets 409"""
        response = self.client.post('/api/appointments/', self.booking(), format='json')
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['data']['status'], 'SCHEDULED')

        other = make_patient(first_name='Ravi', phone='9123456780')
        response = self.client.post('/api/appointments/', self.booking(patient=other), format='json')
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data['error']['code'], 'conflict')
        self.assertEqual(response.data['error']['detail']['appointment_time'], '09:00')

        slots = self.client.get(
            f'/api/doctors/{self.doctor.pk}/slots/', {'date': self.monday.isoformat()}
        ).data['data']['slots']
        self.assertEqual([s['is_booked'] for s in slots], [True, False])

    def test_off_grid_booking(self):
        response = self.client.post('/api/appointments/', self.booking(time='09:10'), format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['error']['code'], 'validation_error')

    def test_cancel_over_api(self):
        appointment_id = self.client.post('/api/appointments/', self.booking(), format='json').data['data']['id']

        response = self.client.post(f'/api/appointments/{appointment_id}/cancel/', {'reason': 'Unwell'}, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['data']['status'], 'CANCELLED')
        self.assertEqual(response.data['message'], 'Appointment cancelled')

    def test_complete_twice(self):
        appointment_id = self.client.post('/api/appointments/', self.booking(), format='json').data['data']['id']
        doctor = api_client('DOCTOR')

        self.assertEqual(doctor.post(f'/api/appointments/{appointment_id}/complete/').status_code, 200)
        response = doctor.post(f'/api/appointments/{appointment_id}/complete/')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['error']['code'], 'invalid_state')

    def test_slot_not_editable_via_update(self):
        appointment_id = self.client.post('/api/appointments/', self.booking(), format='json').data['data']['id']

        response = self.client.patch(
            f'/api/appointments/{appointment_id}/',
            {'appointment_time': '09:30', 'notes': 'Bring reports'},
            format='json'
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['data']['appointment_time'], '09:00')
        self.assertEqual(response.data['data']['notes'], 'Bring reports')

    def test_appointments_cannot_be_deleted(self):
        appointment_id = self.client.post('/api/appointments/', self.booking(), format='json').data['data']['id']
        response = api_client('ADMIN').delete(f'/api/appointments/{appointment_id}/')
        self.assertEqual(response.status_code, 405)

    def test_patient_books_for_self_only(self):
        user_id = str(uuid.uuid4())
        own = make_patient(first_name='Ravi', phone='9123456780', user_id=user_id)
        client = api_client('PATIENT', user_id=user_id)

        response = client.post('/api/appointments/', self.booking(patient=self.patient), format='json')
        self.assertEqual(response.status_code, 403)

        response = client.post('/api/appointments/', self.booking(patient=own), format='json')
        self.assertEqual(response.status_code, 201)

        listing = client.get('/api/appointments/')
        self.assertEqual(listing.data['count'], 1)

    def test_stats_endpoint(self):
        response = api_client('ADMIN').get('/api/appointments/stats/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['data']['today'], 0)

    def test_date_range_filter(self):
        self.client.post('/api/appointments/', self.booking(), format='json')
        monday = self.monday.isoformat()

        response = self.client.get('/api/appointments/', {'date_from': monday, 'date_to': monday})
        self.assertEqual(response.data['count'], 1)

        response = self.client.get('/api/appointments/', {'date_to': (self.monday - datetime.timedelta(days=1)).isoformat()})
        self.assertEqual(response.data['count'], 0)

    def test_malformed_date_filter_is_400(self):
        response = self.client.get('/api/appointments/', {'date_to': '31/12/2025'})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['error']['code'], 'validation_error')
