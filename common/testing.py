"""Helpers shared by the app test suites."""

import datetime
import uuid
from decimal import Decimal
from datetime import timedelta

import jwt
from django.conf import settings
from django.utils import timezone
from rest_framework.test import APIClient


def make_token(role='ADMIN', user_id=None, email=None, expires_in=timedelta(hours=1), **claims):
    """Encode a JWT the way the identity service does."""
    user_id = user_id or str(uuid.uuid4())
    payload = {
        'user_id': user_id,
        'email': email or f"{role.lower()}@caredesk.test",
        'role': role,
        'exp': timezone.now() + expires_in,
    }
    payload.update(claims)
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def api_client(role='ADMIN', user_id=None):
    """APIClient carrying a bearer token for ``role``."""
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {make_token(role, user_id=user_id)}")
    return client


def make_patient(**overrides):
    from apps.patients.models import Patient

    fields = {
        'first_name': 'Asha',
        'last_name': 'Rao',
        'date_of_birth': datetime.date(1990, 5, 17),
        'gender': 'FEMALE',
        'phone': '9876543210',
    }
    fields.update(overrides)
    return Patient.objects.create(**fields)


def make_doctor(windows=(), **overrides):
    """
    Doctor profile with optional weekly windows given as
    ``(day_of_week, 'HH:MM', 'HH:MM')`` tuples.
    """
    from apps.doctors.models import DoctorProfile, DoctorAvailability

    fields = {
        'first_name': 'Vikram',
        'last_name': 'Menon',
        'specialization': 'General Medicine',
        'department': 'Medicine',
        'consultation_fee': Decimal('500.00'),
        'slot_duration': 30,
    }
    fields.update(overrides)
    doctor = DoctorProfile.objects.create(**fields)
    for day, start, end in windows:
        DoctorAvailability.objects.create(
            doctor=doctor,
            day_of_week=day,
            start_time=datetime.time.fromisoformat(start),
            end_time=datetime.time.fromisoformat(end),
        )
    return doctor


def next_weekday(weekday, after=None):
    """First date strictly after ``after`` (today by default) falling on ``weekday`` (0 = Monday)."""
    after = after or timezone.localdate()
    days = (weekday - after.weekday()) % 7 or 7
    return after + timedelta(days=days)
