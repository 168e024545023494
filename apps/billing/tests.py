# apps/billing/tests.py

from decimal import Decimal

from django.test import SimpleTestCase, TestCase
from django.utils import timezone

from common.exceptions import BusinessValidationError, Conflict, InvalidState, NotFound, OutOfRange
from common.testing import api_client, make_patient
from .calculations import compute_totals, line_total, payment_status_for
from .models import Invoice, Payment
from . import services

CONSULTATION = {'description': 'Consultation', 'category': 'CONSULTATION', 'quantity': 1, 'unit_price': Decimal('500')}


class ComputeTotalsTestCase(SimpleTestCase):
    """Pure invoice computation"""

    def test_consultation_with_tax(self):
        """One 500 consultation at 10% tax gives 550 pending"""
        totals = compute_totals([CONSULTATION], tax_percent=10)

        self.assertEqual(totals.subtotal, Decimal('500.00'))
        self.assertEqual(totals.tax_amount, Decimal('50.00'))
        self.assertEqual(totals.total_amount, Decimal('550.00'))
        self.assertEqual(totals.balance_amount, Decimal('550.00'))
        self.assertEqual(totals.payment_status, 'PENDING')

    def test_same_input_same_output(self):
        items = [CONSULTATION, {'description': 'CBC', 'quantity': 2, 'unit_price': '199.99', 'discount': '10'}]
        first = compute_totals(items, tax_percent='5', discount_percent='12.5', paid_amount='100')
        second = compute_totals(items, tax_percent='5', discount_percent='12.5', paid_amount='100')
        self.assertEqual(first, second)

    def test_line_total_clamped_at_zero(self):
        self.assertEqual(line_total(100, 1, 150), Decimal('0.00'))
        self.assertEqual(line_total('19.99', 3), Decimal('59.97'))

    def test_percentage_discount_wins_over_flat(self):
        totals = compute_totals([CONSULTATION], discount_percent=10, discount_amount=200)
        self.assertEqual(totals.discount_amount, Decimal('50.00'))
        self.assertEqual(totals.total_amount, Decimal('450.00'))

    def test_flat_discount_when_no_percentage(self):
        totals = compute_totals([CONSULTATION], tax_percent=10, discount_amount=25)
        self.assertEqual(totals.discount_amount, Decimal('25.00'))
        self.assertEqual(totals.total_amount, Decimal('525.00'))

    def test_total_floored_at_zero(self):
        totals = compute_totals([CONSULTATION], discount_amount=900)
        self.assertEqual(totals.total_amount, Decimal('0.00'))

    def test_rounding_to_two_places(self):
        totals = compute_totals([{'description': 'x', 'quantity': 3, 'unit_price': '33.33'}], tax_percent='18')
        self.assertEqual(totals.subtotal, Decimal('99.99'))
        self.assertEqual(totals.tax_amount, Decimal('18.00'))
        self.assertEqual(totals.total_amount, Decimal('117.99'))

    def test_payment_status(self):
        self.assertEqual(payment_status_for(0, 100), 'PENDING')
        self.assertEqual(payment_status_for('0.01', 100), 'PARTIAL')
        self.assertEqual(payment_status_for(100, 100), 'PAID')
        self.assertEqual(payment_status_for(0, 0), 'PENDING')

    def test_no_items(self):
        totals = compute_totals([])
        self.assertEqual(totals.total_amount, Decimal('0.00'))
        self.assertEqual(totals.line_totals, ())


class PaymentLedgerTestCase(TestCase):
    """Invoice lifecycle through the billing services"""

    def setUp(self):
        self.patient = make_patient()
        self.invoice = services.create_invoice(self.patient.pk, [CONSULTATION], tax_percent=Decimal('10'))

    def assertConsistent(self, invoice):
        invoice.refresh_from_db()
        ledger = sum((p.amount for p in invoice.payments.all()), Decimal('0.00'))
        self.assertEqual(invoice.paid_amount, ledger)
        self.assertEqual(invoice.balance_amount, invoice.total_amount - invoice.paid_amount)
        self.assertEqual(invoice.payment_status, payment_status_for(invoice.paid_amount, invoice.total_amount))
        self.assertLessEqual(invoice.paid_amount, invoice.total_amount)

    def test_invoice_created_pending(self):
        invoice = self.invoice
        self.assertTrue(invoice.invoice_id.startswith('INV' + timezone.localdate().strftime('%y%m')))
        self.assertEqual(len(invoice.invoice_id), 13)
        self.assertEqual(invoice.subtotal, Decimal('500.00'))
        self.assertEqual(invoice.tax_amount, Decimal('50.00'))
        self.assertEqual(invoice.total_amount, Decimal('550.00'))
        self.assertEqual(invoice.balance_amount, Decimal('550.00'))
        self.assertEqual(invoice.payment_status, 'PENDING')
        self.assertEqual(invoice.items.get().total, Decimal('500.00'))

    def test_full_payment_then_reject(self):
        """Paying 550 in cash settles the invoice; any further payment is refused"""
        invoice = services.add_payment(self.invoice.pk, Decimal('550'), 'CASH')

        self.assertEqual(invoice.paid_amount, Decimal('550.00'))
        self.assertEqual(invoice.balance_amount, Decimal('0.00'))
        self.assertEqual(invoice.payment_status, 'PAID')

        with self.assertRaises(InvalidState):
            services.add_payment(self.invoice.pk, Decimal('1'), 'CASH')
        self.assertConsistent(invoice)

    def test_exact_balance_and_one_cent_over(self):
        with self.assertRaises(OutOfRange) as ctx:
            services.add_payment(self.invoice.pk, Decimal('550.01'), 'CARD')
        self.assertEqual(ctx.exception.detail['max_payable'], '550.00')
        self.assertEqual(Payment.objects.count(), 0)

        invoice = services.add_payment(self.invoice.pk, Decimal('550.00'), 'CARD')
        self.assertEqual(invoice.payment_status, 'PAID')
        self.assertEqual(invoice.balance_amount, Decimal('0.00'))

    def test_partial_payments_accumulate(self):
        services.add_payment(self.invoice.pk, Decimal('200'), 'UPI', transaction_ref='UPI-1')
        invoice = services.add_payment(self.invoice.pk, Decimal('100.50'), 'CASH')

        self.assertEqual(invoice.paid_amount, Decimal('300.50'))
        self.assertEqual(invoice.balance_amount, Decimal('249.50'))
        self.assertEqual(invoice.payment_status, 'PARTIAL')
        self.assertConsistent(invoice)

    def test_non_positive_payment_rejected(self):
        for amount in [Decimal('0'), Decimal('-5')]:
            with self.assertRaises(OutOfRange):
                services.add_payment(self.invoice.pk, amount, 'CASH')

    def test_idempotency_key_records_once(self):
        services.add_payment(self.invoice.pk, Decimal('100'), 'CASH', idempotency_key='abc-1')
        invoice = services.add_payment(self.invoice.pk, Decimal('100'), 'CASH', idempotency_key='abc-1')

        self.assertEqual(invoice.paid_amount, Decimal('100.00'))
        self.assertEqual(invoice.payments.count(), 1)

    def test_edit_recomputes_and_paid_invoice_is_locked(self):
        invoice = services.update_invoice(self.invoice.pk, discount_percent=Decimal('10'))
        self.assertEqual(invoice.discount_amount, Decimal('50.00'))
        self.assertEqual(invoice.total_amount, Decimal('500.00'))

        services.add_payment(self.invoice.pk, Decimal('500'), 'CASH')
        with self.assertRaises(Conflict):
            services.update_invoice(self.invoice.pk, notes='late edit')

    def test_edit_cannot_drop_total_below_paid(self):
        services.add_payment(self.invoice.pk, Decimal('300'), 'CASH')

        with self.assertRaises(OutOfRange):
            services.update_invoice(self.invoice.pk, items=[
                {'description': 'Dressing', 'quantity': 1, 'unit_price': Decimal('100')},
            ])
        self.assertConsistent(self.invoice)
        self.assertEqual(self.invoice.items.get().description, 'Consultation')

    def test_replace_items(self):
        invoice = services.update_invoice(self.invoice.pk, items=[
            {'description': 'Room', 'category': 'ROOM_CHARGE', 'quantity': 3, 'unit_price': Decimal('1500')},
            {'description': 'Dressing', 'quantity': 1, 'unit_price': Decimal('200'), 'discount': Decimal('50')},
        ])
        self.assertEqual(invoice.subtotal, Decimal('4650.00'))
        self.assertEqual(invoice.total_amount, Decimal('5115.00'))
        self.assertEqual(list(invoice.items.values_list('position', flat=True)), [0, 1])

    def test_negative_price_rejected(self):
        with self.assertRaises(OutOfRange):
            services.create_invoice(self.patient.pk, [{'description': 'x', 'quantity': 1, 'unit_price': '-1'}])
        with self.assertRaises(OutOfRange):
            services.create_invoice(self.patient.pk, [{'description': 'x', 'quantity': 0, 'unit_price': '10'}])

    def test_non_finite_amounts_rejected(self):
        """NaN and Infinity never reach the ledger or the totals"""
        for amount in ['NaN', 'Infinity', '-Infinity', 'abc']:
            with self.assertRaises(BusinessValidationError):
                services.add_payment(self.invoice.pk, amount, 'CASH')
        self.assertEqual(Payment.objects.count(), 0)

        with self.assertRaises(BusinessValidationError):
            services.create_invoice(self.patient.pk, [{'description': 'x', 'quantity': 1, 'unit_price': 'NaN'}])
        with self.assertRaises(BusinessValidationError):
            services.create_invoice(self.patient.pk, [CONSULTATION], tax_percent='ten')
        with self.assertRaises(BusinessValidationError):
            services.update_invoice(self.invoice.pk, discount_percent='NaN')
        self.assertEqual(Invoice.objects.count(), 1)

    def test_overlong_idempotency_key_rejected(self):
        with self.assertRaises(BusinessValidationError):
            services.add_payment(self.invoice.pk, Decimal('10'), 'CASH', idempotency_key='k' * 65)
        self.assertEqual(Payment.objects.count(), 0)

    def test_delete_guard(self):
        services.add_payment(self.invoice.pk, Decimal('10'), 'CASH')
        with self.assertRaises(Conflict):
            services.delete_invoice(self.invoice.pk)

        other = services.create_invoice(self.patient.pk, [CONSULTATION])
        services.delete_invoice(other.pk)
        self.assertFalse(Invoice.objects.filter(pk=other.pk).exists())

    def test_unknown_patient(self):
        with self.assertRaises(NotFound):
            services.create_invoice(999999, [CONSULTATION])

    def test_invoice_numbers_are_sequential(self):
        second = services.create_invoice(self.patient.pk, [CONSULTATION])
        self.assertEqual(int(second.invoice_id[-6:]), int(self.invoice.invoice_id[-6:]) + 1)

    def test_patient_history_summary(self):
        services.add_payment(self.invoice.pk, Decimal('150'), 'CASH')
        services.create_invoice(self.patient.pk, [CONSULTATION])

        invoices, summary = services.patient_history(self.patient.pk)
        self.assertEqual(invoices.count(), 2)
        self.assertEqual(summary['total_billed'], Decimal('1050.00'))
        self.assertEqual(summary['total_paid'], Decimal('150.00'))
        self.assertEqual(summary['total_outstanding'], Decimal('900.00'))

    def test_billing_stats(self):
        services.add_payment(self.invoice.pk, Decimal('550'), 'CASH')
        services.create_invoice(self.patient.pk, [CONSULTATION])

        stats = services.billing_stats()
        self.assertEqual(stats['today']['bills'], 2)
        self.assertEqual(stats['today']['collected'], Decimal('550.00'))
        self.assertEqual(stats['pending_bills'], 1)
        self.assertEqual(stats['total_outstanding'], Decimal('500.00'))
        self.assertEqual(stats['monthly_revenue']['billed'], Decimal('1050.00'))


class BillingApiTestCase(TestCase):
    """HTTP surface for invoices and payments"""

    def setUp(self):
        self.patient = make_patient()
        self.client = api_client('RECEPTIONIST')

    def create_invoice(self):
        response = self.client.post('/api/billing/', {
            'patient': self.patient.pk,
            'tax_percent': '10',
            'items': [{'description': 'Consultation', 'category': 'CONSULTATION', 'quantity': 1, 'unit_price': '500'}],
        }, format='json')
        self.assertEqual(response.status_code, 201)
        return response.json()['data']

    def test_create_and_pay(self):
        invoice = self.create_invoice()
        self.assertEqual(invoice['total_amount'], '550.00')
        self.assertEqual(invoice['payment_status'], 'PENDING')

        url = f"/api/billing/{invoice['id']}/payments/"
        response = self.client.post(url, {'amount': '550.01', 'method': 'CASH'}, format='json')
        self.assertEqual(response.status_code, 400)
        error = response.json()['error']
        self.assertEqual(error['code'], 'out_of_range')
        self.assertEqual(error['detail']['max_payable'], '550.00')

        response = self.client.post(url, {'amount': '550', 'method': 'CASH'}, format='json')
        self.assertEqual(response.status_code, 200)
        data = response.json()['data']
        self.assertEqual(data['payment_status'], 'PAID')
        self.assertEqual(data['balance_amount'], '0.00')
        self.assertEqual(len(data['payments']), 1)

        response = self.client.post(url, {'amount': '1', 'method': 'CASH'}, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error']['code'], 'invalid_state')

    def test_idempotency_header(self):
        invoice = self.create_invoice()
        url = f"/api/billing/{invoice['id']}/payments/"

        for _ in range(2):
            response = self.client.post(
                url, {'amount': '100', 'method': 'UPI'}, format='json', HTTP_IDEMPOTENCY_KEY='retry-7'
            )
            self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['paid_amount'], '100.00')

    def test_derived_fields_ignored_on_create(self):
        response = self.client.post('/api/billing/', {
            'patient': self.patient.pk,
            'total_amount': '1',
            'payment_status': 'PAID',
            'items': [{'description': 'Consultation', 'quantity': 1, 'unit_price': '500'}],
        }, format='json')
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['data']['total_amount'], '500.00')
        self.assertEqual(response.json()['data']['payment_status'], 'PENDING')

    def test_receptionist_cannot_delete(self):
        invoice = self.create_invoice()
        response = self.client.delete(f"/api/billing/{invoice['id']}/")
        self.assertEqual(response.status_code, 403)

    def test_admin_delete_with_payment_conflicts(self):
        invoice = self.create_invoice()
        services.add_payment(invoice['id'], Decimal('50'), 'CASH')

        response = api_client('ADMIN').delete(f"/api/billing/{invoice['id']}/")
        self.assertEqual(response.status_code, 409)

    def test_document_and_history(self):
        invoice = self.create_invoice()

        response = self.client.get(f"/api/billing/{invoice['id']}/document/")
        self.assertEqual(response.status_code, 200)
        document = response.json()['data']
        self.assertEqual(document['patient']['patient_id'], self.patient.patient_id)
        self.assertEqual(document['items'][0]['category'], 'Consultation')

        response = self.client.get(f"/api/billing/patient/{self.patient.pk}/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['summary']['total_outstanding'], '550.00')

    def test_patient_sees_only_own_invoices(self):
        self.create_invoice()
        stranger = make_patient(first_name='Other', phone='9000000001', user_id='6f1c2a3b-1111-4222-8333-944455556666')

        response = api_client('PATIENT', user_id=str(stranger.user_id)).get('/api/billing/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['count'], 0)

    def test_date_filters(self):
        self.create_invoice()
        today = timezone.localdate().isoformat()

        response = self.client.get('/api/billing/', {'date_from': today, 'date_to': today})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['count'], 1)

        response = self.client.get('/api/billing/', {'date_from': '2000-01-01', 'date_to': '2000-01-31'})
        self.assertEqual(response.json()['count'], 0)

    def test_malformed_date_filter_is_400(self):
        response = self.client.get('/api/billing/', {'date_from': 'garbage'})

        self.assertEqual(response.status_code, 400)
        error = response.json()['error']
        self.assertEqual(error['code'], 'validation_error')
        self.assertIn('date_from', error['detail'])

    def test_nan_payment_over_api(self):
        invoice = self.create_invoice()
        response = self.client.post(
            f"/api/billing/{invoice['id']}/payments/", {'amount': 'NaN', 'method': 'CASH'}, format='json'
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error']['code'], 'validation_error')

    def test_overlong_idempotency_header(self):
        invoice = self.create_invoice()

        response = self.client.post(
            f"/api/billing/{invoice['id']}/payments/", {'amount': '100', 'method': 'UPI'},
            format='json', HTTP_IDEMPOTENCY_KEY='k' * 65
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error']['code'], 'validation_error')
        self.assertIn('idempotency_key', response.json()['error']['detail'])
        self.assertEqual(Payment.objects.count(), 0)
