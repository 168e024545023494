# common/tests.py

import datetime
import uuid
from datetime import timedelta
from unittest import mock

import jwt
from django.conf import settings
from django.test import SimpleTestCase, TestCase
from django.utils import timezone
from rest_framework.exceptions import NotAuthenticated, ValidationError as DRFValidationError
from rest_framework.test import APIClient

from . import identifiers
from .exceptions import BusinessValidationError, Conflict, InvalidState, OutOfRange, api_exception_handler
from .identifiers import INVOICE, PATIENT, next_identifier, sequence_key
from .models import IdentifierSequence
from .testing import api_client, make_token


class IdentifierTestCase(TestCase):
    """Sequential identifier generation"""

    def test_sequential_and_zero_padded(self):
        self.assertEqual(next_identifier(PATIENT), 'PAT000001')
        self.assertEqual(next_identifier(PATIENT), 'PAT000002')

    def test_kinds_have_independent_counters(self):
        next_identifier(PATIENT)
        self.assertEqual(next_identifier('DOCTOR'), 'DOC000001')

    def test_invoice_counter_is_monthly(self):
        january = datetime.date(2025, 1, 15)
        february = datetime.date(2025, 2, 1)

        self.assertEqual(next_identifier(INVOICE, on_date=january), 'INV2501000001')
        self.assertEqual(next_identifier(INVOICE, on_date=january), 'INV2501000002')
        self.assertEqual(next_identifier(INVOICE, on_date=february), 'INV2502000001')

    def test_no_reuse_after_delete(self):
        """Counters live in their own table, not in the records they number"""
        from apps.patients.models import Patient
        from .testing import make_patient

        first = make_patient()
        Patient.objects.filter(pk=first.pk).delete()
        second = make_patient()

        self.assertNotEqual(first.patient_id, second.patient_id)
        self.assertEqual(IdentifierSequence.objects.get(key='PAT').last_value, 2)

    def test_sequence_create_race(self):
        """Losing the create of a new sequence row falls back to incrementing it"""
        next_identifier(PATIENT)
        real_increment = identifiers._increment
        calls = []

        def row_created_concurrently(key):
            calls.append(key)
            return 0 if len(calls) == 1 else real_increment(key)

        with mock.patch('common.identifiers._increment', side_effect=row_created_concurrently):
            self.assertEqual(next_identifier(PATIENT), 'PAT000002')

        self.assertEqual(calls, ['PAT', 'PAT'])
        self.assertEqual(IdentifierSequence.objects.get(key='PAT').last_value, 2)

    def test_all_record_kinds(self):
        self.assertEqual(next_identifier('OPD'), 'OPD000001')
        self.assertEqual(next_identifier('LAB'), 'TST000001')
        self.assertEqual(next_identifier('LAB_ORDER'), 'LBO000001')
        self.assertEqual(next_identifier('PHARMACY'), 'MED000001')

    def test_unknown_kind(self):
        with self.assertRaises(BusinessValidationError) as ctx:
            next_identifier('BOGUS')
        self.assertIn('allowed', ctx.exception.detail)

    def test_sequence_key(self):
        self.assertEqual(sequence_key(PATIENT), 'PAT')
        self.assertEqual(sequence_key(INVOICE, on_date=datetime.date(2024, 12, 31)), 'INV2412')


class ExceptionHandlerTestCase(SimpleTestCase):
    """Error envelope produced by the DRF exception handler"""

    def test_domain_errors_keep_their_code_and_detail(self):
        response = api_exception_handler(Conflict('Bed is occupied', bed='B-1'), {})

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data, {
            'success': False,
            'error': {'code': 'conflict', 'message': 'Bed is occupied', 'detail': {'bed': 'B-1'}},
        })

    def test_status_codes(self):
        self.assertEqual(api_exception_handler(InvalidState(), {}).status_code, 400)
        self.assertEqual(api_exception_handler(OutOfRange(), {}).data['error']['code'], 'out_of_range')
        self.assertEqual(api_exception_handler(BusinessValidationError(), {}).data['error']['code'], 'validation_error')

    def test_drf_validation_error(self):
        response = api_exception_handler(DRFValidationError({'amount': ['This field is required.']}), {})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['error']['code'], 'validation_error')
        self.assertEqual(response.data['error']['detail'], {'amount': ['This field is required.']})

    def test_drf_api_exception(self):
        response = api_exception_handler(NotAuthenticated(), {})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.data['error']['code'], 'not_authenticated')

    def test_unexpected_error_is_500(self):
        with self.assertLogs('common.exceptions', level='ERROR'):
            response = api_exception_handler(RuntimeError('boom'), {})

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data['error']['code'], 'server_error')
        self.assertNotIn('boom', response.data['error']['message'])


class JWTMiddlewareTestCase(TestCase):
    """Bearer token checks on /api/ paths"""

    url = '/api/patients/'

    def test_missing_header(self):
        response = APIClient().get(self.url)
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()['error']['message'], 'Authorization header required')

    def test_wrong_scheme(self):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Token {make_token()}")
        self.assertEqual(client.get(self.url).status_code, 401)

    def test_expired_token(self):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {make_token(expires_in=timedelta(hours=-1))}")

        response = client.get(self.url)
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()['error']['message'], 'Token has expired')

    def test_bad_signature(self):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {make_token()}tampered")
        self.assertEqual(client.get(self.url).status_code, 401)

    def test_missing_claim(self):
        payload = {
            'user_id': str(uuid.uuid4()),
            'email': 'nurse@caredesk.test',
            'exp': timezone.now() + timedelta(hours=1),
        }
        token = jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

        response = client.get(self.url)
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()['error']['message'], 'Missing required field in token: role')

    def test_non_uuid_user_id(self):
        """Subject ids that are not UUIDs are rejected before any write"""
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {make_token(user_id='user-42')}")

        response = client.post('/api/billing/', {}, format='json')
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()['error']['message'], 'Invalid user_id in token')

    def test_unknown_role(self):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {make_token(role='JANITOR')}")

        response = client.get(self.url)
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()['error']['code'], 'permission_denied')

    def test_role_is_case_insensitive(self):
        self.assertEqual(api_client('admin').get(self.url).status_code, 200)

    def test_docs_are_public(self):
        self.assertNotEqual(APIClient().get('/api/schema/').status_code, 401)

    def test_non_api_paths_skip_token_check(self):
        response = APIClient().get('/')
        self.assertEqual(response.status_code, 302)
