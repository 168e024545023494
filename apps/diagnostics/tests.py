# apps/diagnostics/tests.py

import uuid
from decimal import Decimal

from django.test import TestCase

from common.exceptions import BusinessValidationError, InvalidState, NotFound
from common.testing import api_client, make_doctor, make_patient
from apps.opd import services as opd_services
from .models import LabTest, LabOrder
from . import services


def make_test(**overrides):
    fields = {'name': 'Complete Blood Count', 'code': 'CBC', 'category': 'BLOOD', 'price': Decimal('350.00')}
    fields.update(overrides)
    return LabTest.objects.create(**fields)


class LabOrderTestCase(TestCase):
    """Order lifecycle through the diagnostics services"""

    def setUp(self):
        self.patient = make_patient()
        self.doctor = make_doctor()
        self.test = make_test()

    def test_order_copies_price_and_numbers(self):
        order = services.create_order(self.patient.pk, self.test.pk, doctor_pk=self.doctor.pk, priority='URGENT')

        self.assertRegex(order.order_id, r'^LBO\d{6}$')
        self.assertRegex(self.test.test_id, r'^TST\d{6}$')
        self.assertEqual(order.price, Decimal('350.00'))
        self.assertEqual(order.status, LabOrder.STATUS_PENDING)

        # Later price changes do not reach existing orders
        self.test.price = Decimal('400.00')
        self.test.save()
        order.refresh_from_db()
        self.assertEqual(order.price, Decimal('350.00'))

    def test_code_defaults_to_test_id(self):
        test = LabTest.objects.create(name='Lipid Profile', price=Decimal('600.00'))
        self.assertEqual(test.code, test.test_id)

    def test_sample_then_result(self):
        order = services.create_order(self.patient.pk, self.test.pk)
        actor = str(uuid.uuid4())

        order = services.collect_sample(order.pk, actor_id=actor)
        self.assertEqual(order.status, LabOrder.STATUS_IN_PROGRESS)
        self.assertIsNotNone(order.sample_collected_at)
        self.assertEqual(str(order.sample_collected_by_id), actor)

        order = services.record_result(order.pk, '13.5', actor_id=actor, unit='g/dL', is_abnormal=False)
        self.assertEqual(order.status, LabOrder.STATUS_COMPLETED)
        self.assertEqual(order.result_value, '13.5')
        self.assertEqual(order.result_unit, 'g/dL')
        self.assertIsNotNone(order.completed_at)

    def test_steps_must_follow_order(self):
        order = services.create_order(self.patient.pk, self.test.pk)

        with self.assertRaises(InvalidState):
            services.record_result(order.pk, '13.5')

        services.collect_sample(order.pk)
        with self.assertRaises(InvalidState) as ctx:
            services.collect_sample(order.pk)
        self.assertEqual(ctx.exception.detail['current_status'], LabOrder.STATUS_IN_PROGRESS)

        services.record_result(order.pk, '13.5')
        with self.assertRaises(InvalidState):
            services.record_result(order.pk, '14.0')
        with self.assertRaises(InvalidState):
            services.cancel_order(order.pk)

        order.refresh_from_db()
        self.assertEqual(order.result_value, '13.5')

    def test_result_value_required(self):
        order = services.create_order(self.patient.pk, self.test.pk)
        services.collect_sample(order.pk)

        with self.assertRaises(BusinessValidationError):
            services.record_result(order.pk, '   ')
        order.refresh_from_db()
        self.assertEqual(order.status, LabOrder.STATUS_IN_PROGRESS)

    def test_cancel(self):
        order = services.create_order(self.patient.pk, self.test.pk)

        order = services.cancel_order(order.pk)
        self.assertEqual(order.status, LabOrder.STATUS_CANCELLED)
        with self.assertRaises(InvalidState):
            services.collect_sample(order.pk)

    def test_inactive_test_cannot_be_ordered(self):
        self.test.is_active = False
        self.test.save()

        with self.assertRaises(InvalidState):
            services.create_order(self.patient.pk, self.test.pk)
        self.assertFalse(LabOrder.objects.exists())

    def test_unknown_references(self):
        with self.assertRaises(NotFound):
            services.create_order(999999, self.test.pk)
        with self.assertRaises(NotFound):
            services.create_order(self.patient.pk, 999999)
        with self.assertRaises(NotFound):
            services.create_order(self.patient.pk, self.test.pk, doctor_pk=999999)
        with self.assertRaises(NotFound):
            services.collect_sample(999999)

    def test_order_from_visit_must_match_patient(self):
        record = opd_services.create_record(self.patient.pk, self.doctor.pk)
        other = make_patient(first_name='Ravi', phone='9123456780')

        order = services.create_order(self.patient.pk, self.test.pk, opd_record_pk=record.pk)
        self.assertEqual(order.opd_record, record)
        with self.assertRaises(BusinessValidationError):
            services.create_order(other.pk, self.test.pk, opd_record_pk=record.pk)

    def test_history_and_stats(self):
        first = services.create_order(self.patient.pk, self.test.pk)
        second = services.create_order(self.patient.pk, self.test.pk)
        services.create_order(self.patient.pk, self.test.pk)
        services.collect_sample(first.pk)
        services.record_result(first.pk, 'Normal')
        services.collect_sample(second.pk)

        self.assertEqual(services.patient_history(self.patient.pk).count(), 3)
        stats = services.lab_stats()
        self.assertEqual(stats['total_tests'], 1)
        self.assertEqual(stats['pending_orders'], 1)
        self.assertEqual(stats['in_progress_orders'], 1)
        self.assertEqual(stats['today_orders'], 3)
        self.assertEqual(stats['today_completed'], 1)


class LabApiTestCase(TestCase):
    """Lab endpoints"""

    def setUp(self):
        self.patient = make_patient()
        self.test = make_test()
        self.lab = api_client('LAB')

    def place_order(self, client=None, **extra):
        body = {'patient': self.patient.pk, 'test': self.test.pk}
        body.update(extra)
        return (client or api_client('DOCTOR')).post('/api/lab/orders/', body, format='json')

    def test_order_to_result(self):
        response = self.place_order(priority='URGENT')
        self.assertEqual(response.status_code, 201)
        order_id = response.data['data']['id']
        self.assertEqual(response.data['data']['test_code'], 'CBC')

        response = api_client('NURSE').post(f'/api/lab/orders/{order_id}/collect-sample/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['data']['status'], 'IN_PROGRESS')

        response = self.lab.post(
            f'/api/lab/orders/{order_id}/result/', {'value': '9.1', 'unit': 'g/dL', 'is_abnormal': True}, format='json'
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['data']['status'], 'COMPLETED')
        self.assertTrue(response.data['data']['is_abnormal'])

    def test_result_before_sample_is_400(self):
        order_id = self.place_order().data['data']['id']

        response = self.lab.post(f'/api/lab/orders/{order_id}/result/', {'value': '9.1'}, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.data['success'])

    def test_roles(self):
        self.assertEqual(self.place_order(client=api_client('RECEPTIONIST')).status_code, 403)
        order_id = self.place_order().data['data']['id']

        response = api_client('DOCTOR').post(f'/api/lab/orders/{order_id}/collect-sample/')
        self.assertEqual(response.status_code, 403)
        response = api_client('NURSE').post(f'/api/lab/orders/{order_id}/result/', {'value': '1'}, format='json')
        self.assertEqual(response.status_code, 403)
        self.assertEqual(api_client('DOCTOR').get('/api/lab/orders/stats/').status_code, 403)
        self.assertEqual(self.lab.get('/api/lab/orders/stats/').status_code, 200)

    def test_patient_sees_only_own_orders(self):
        self.place_order()
        user_id = str(uuid.uuid4())
        own = make_patient(first_name='Ravi', phone='9123456780', user_id=user_id)
        client = api_client('PATIENT', user_id=user_id)

        self.assertEqual(client.get('/api/lab/orders/').data['count'], 0)
        self.assertEqual(client.get(f'/api/lab/orders/patient/{self.patient.pk}/').status_code, 403)
        self.assertEqual(client.get(f'/api/lab/orders/patient/{own.pk}/').status_code, 200)

    def test_catalog_soft_delete(self):
        response = api_client('ADMIN').delete(f'/api/lab/tests/{self.test.pk}/')
        self.assertEqual(response.status_code, 200)

        self.test.refresh_from_db()
        self.assertFalse(self.test.is_active)
        self.assertEqual(self.lab.get('/api/lab/tests/').data['count'], 0)
        self.assertEqual(self.lab.get('/api/lab/tests/', {'include_inactive': 'true'}).data['count'], 1)
        self.assertEqual(self.place_order().status_code, 400)

    def test_lab_staff_manage_catalog(self):
        response = self.lab.post(
            '/api/lab/tests/', {'name': 'Thyroid Panel', 'code': 'TFT', 'category': 'BLOOD', 'price': '800.00'}, format='json'
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(self.lab.delete(f"/api/lab/tests/{self.test.pk}/").status_code, 403)
