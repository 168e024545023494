# apps/pharmacy/tests.py

import datetime
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from common.exceptions import BusinessValidationError, NotFound, OutOfRange
from common.testing import api_client
from .models import Medicine
from . import services


def make_medicine(**overrides):
    today = timezone.localdate()
    fields = {
        'name': 'Paracetamol 500mg',
        'generic_name': 'Acetaminophen',
        'category': 'TABLET',
        'manufacturer': 'Cipla',
        'batch_number': 'PCM2401',
        'manufacturing_date': today - datetime.timedelta(days=90),
        'expiry_date': today + datetime.timedelta(days=365),
        'stock': 50,
        'purchase_price': Decimal('12.00'),
        'selling_price': Decimal('18.50'),
    }
    fields.update(overrides)
    return Medicine.objects.create(**fields)


class StockTestCase(TestCase):
    """Stock movements through update_stock"""

    def setUp(self):
        self.medicine = make_medicine()

    def test_numbering(self):
        self.assertRegex(self.medicine.medicine_id, r'^MED\d{6}$')

    def test_add_subtract_set(self):
        self.assertEqual(services.update_stock(self.medicine.pk, 'add', 25).stock, 75)
        self.assertEqual(services.update_stock(self.medicine.pk, 'subtract', 70).stock, 5)
        self.assertEqual(services.update_stock(self.medicine.pk, 'set', 0).stock, 0)

    def test_subtract_never_goes_negative(self):
        with self.assertRaises(OutOfRange) as ctx:
            services.update_stock(self.medicine.pk, 'subtract', 51)

        self.assertEqual(ctx.exception.detail['available'], 50)
        self.assertEqual(ctx.exception.detail['requested'], 51)
        self.medicine.refresh_from_db()
        self.assertEqual(self.medicine.stock, 50)

        # Exactly the remaining stock is allowed
        self.assertEqual(services.update_stock(self.medicine.pk, 'subtract', 50).stock, 0)
        with self.assertRaises(OutOfRange):
            services.update_stock(self.medicine.pk, 'subtract', 1)

    def test_rejects_bad_input(self):
        with self.assertRaises(BusinessValidationError):
            services.update_stock(self.medicine.pk, 'multiply', 2)
        with self.assertRaises(BusinessValidationError):
            services.update_stock(self.medicine.pk, 'add', 'ten')
        with self.assertRaises(OutOfRange):
            services.update_stock(self.medicine.pk, 'add', -5)
        with self.assertRaises(OutOfRange):
            services.update_stock(self.medicine.pk, 'subtract', 0)
        with self.assertRaises(NotFound):
            services.update_stock(999999, 'add', 1)

        self.medicine.refresh_from_db()
        self.assertEqual(self.medicine.stock, 50)

    def test_alert_lists_and_stats(self):
        today = timezone.localdate()
        low = make_medicine(name='Cetirizine', batch_number='CTZ01', stock=4, category='TABLET')
        make_medicine(
            name='Cough Syrup', batch_number='CS01', category='SYRUP',
            manufacturing_date=today - datetime.timedelta(days=400),
            expiry_date=today - datetime.timedelta(days=1),
        )
        make_medicine(name='Insulin', batch_number='INS01', category='INJECTION', expiry_date=today + datetime.timedelta(days=10))
        make_medicine(name='Retired', batch_number='OLD01', stock=0, is_active=False)

        self.assertEqual(list(services.low_stock()), [low])
        self.assertTrue(low.is_low_stock)
        self.assertEqual(services.expired().get().name, 'Cough Syrup')
        self.assertEqual(services.expiring_soon().get().name, 'Insulin')
        self.assertEqual(services.expiring_soon(days=5).count(), 0)

        stats = services.pharmacy_stats()
        self.assertEqual(stats['total_medicines'], 4)
        self.assertEqual(stats['low_stock'], 1)
        self.assertEqual(stats['expired'], 1)
        self.assertEqual(stats['expiring_soon'], 1)
        # 50 + 4 + 50 + 50 units at 18.50
        self.assertEqual(stats['total_inventory_value'], Decimal('2849.00'))
        by_category = {row['category']: row for row in stats['by_category']}
        self.assertEqual(by_category['TABLET']['count'], 2)
        self.assertEqual(by_category['TABLET']['total_stock'], 54)


class PharmacyApiTestCase(TestCase):
    """Pharmacy endpoints"""

    def setUp(self):
        self.medicine = make_medicine()
        self.pharmacy = api_client('PHARMACY')

    def stock(self, operation, quantity, client=None):
        return (client or self.pharmacy).post(
            f'/api/pharmacy/medicines/{self.medicine.pk}/stock/',
            {'operation': operation, 'quantity': quantity},
            format='json'
        )

    def test_dispense_and_overdraw(self):
        response = self.stock('subtract', 20)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['data']['stock'], 30)

        response = self.stock('subtract', 31)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['error']['code'], 'out_of_range')
        self.assertEqual(response.data['error']['detail']['available'], 30)
        self.medicine.refresh_from_db()
        self.assertEqual(self.medicine.stock, 30)

    def test_stock_is_not_editable_directly(self):
        response = self.pharmacy.patch(
            f'/api/pharmacy/medicines/{self.medicine.pk}/', {'stock': 999, 'min_stock_level': 20}, format='json'
        )

        self.assertEqual(response.status_code, 200)
        self.medicine.refresh_from_db()
        self.assertEqual(self.medicine.stock, 50)
        self.assertEqual(self.medicine.min_stock_level, 20)

    def test_create_with_opening_stock(self):
        today = timezone.localdate()
        response = self.pharmacy.post('/api/pharmacy/medicines/', {
            'name': 'Amoxicillin 250mg',
            'category': 'CAPSULE',
            'manufacturer': 'Sun Pharma',
            'batch_number': 'AMX77',
            'expiry_date': (today + datetime.timedelta(days=200)).isoformat(),
            'stock': 120,
            'purchase_price': '4.00',
            'selling_price': '6.00',
        }, format='json')

        self.assertEqual(response.status_code, 201)
        self.assertEqual(Medicine.objects.get(batch_number='AMX77').stock, 120)

    def test_expiry_must_follow_manufacture(self):
        response = self.pharmacy.patch(
            f'/api/pharmacy/medicines/{self.medicine.pk}/',
            {'expiry_date': (self.medicine.manufacturing_date - datetime.timedelta(days=1)).isoformat()},
            format='json'
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn('expiry_date', response.data['error']['detail'])

    def test_roles(self):
        self.assertEqual(self.stock('add', 5, client=api_client('NURSE')).status_code, 403)
        self.assertEqual(api_client('DOCTOR').get('/api/pharmacy/medicines/').status_code, 200)
        self.assertEqual(api_client('DOCTOR').get('/api/pharmacy/medicines/stats/').status_code, 403)
        self.assertEqual(self.pharmacy.delete(f'/api/pharmacy/medicines/{self.medicine.pk}/').status_code, 403)

    def test_soft_delete(self):
        response = api_client('ADMIN').delete(f'/api/pharmacy/medicines/{self.medicine.pk}/')
        self.assertEqual(response.status_code, 200)

        self.assertEqual(self.pharmacy.get('/api/pharmacy/medicines/').data['count'], 0)
        response = self.pharmacy.get('/api/pharmacy/medicines/', {'include_inactive': 'true'})
        self.assertEqual(response.data['count'], 1)

    def test_alert_endpoints(self):
        make_medicine(name='Cetirizine', batch_number='CTZ01', stock=3)

        response = self.pharmacy.get('/api/pharmacy/medicines/low-stock/')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(self.pharmacy.get('/api/pharmacy/medicines/', {'low_stock': 'true'}).data['count'], 1)

        response = self.pharmacy.get('/api/pharmacy/medicines/expiring-soon/', {'days': 365})
        self.assertEqual(response.data['threshold_days'], 365)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual(self.pharmacy.get('/api/pharmacy/medicines/expiring-soon/', {'days': 'soon'}).status_code, 400)
        self.assertEqual(self.pharmacy.get('/api/pharmacy/medicines/expiring-soon/', {'days': 400}).status_code, 400)

        response = self.pharmacy.get('/api/pharmacy/medicines/stats/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['data']['low_stock'], 1)
