"""
Appointment slot grid for a doctor's weekly availability.

A slot is an ``HH:MM`` token. Tokens start at the window's start time and
step by the doctor's slot duration while they are strictly before the
window's end time; the last slot may therefore run past the end.
"""

import datetime
import logging

from common.exceptions import BusinessValidationError

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60


def parse_time(value):
    """Minutes since midnight for a ``datetime.time`` or an ``HH:MM`` string."""
    if isinstance(value, datetime.time):
        return value.hour * 60 + value.minute
    try:
        hours, minutes = str(value).split(':')[:2]
        hours, minutes = int(hours), int(minutes)
    except (TypeError, ValueError):
        raise BusinessValidationError(f"Invalid time '{value}', expected HH:MM", value=str(value))
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise BusinessValidationError(f"Invalid time '{value}', expected HH:MM", value=str(value))
    return hours * 60 + minutes


def format_time(minutes):
    """``HH:MM`` token for minutes since midnight."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_slot(value):
    """Canonical ``HH:MM`` form of a slot token ("9:00" -> "09:00")."""
    return format_time(parse_time(value))


class TimeSlotGrid:
    """
    Lazy, finite, restartable sequence of slot tokens.

    Iterating twice yields the same tokens; nothing is materialised until
    iteration.

        >>> list(TimeSlotGrid('09:00', '10:00', 30))
        ['09:00', '09:30']
    """

    def __init__(self, start, end, duration):
        if duration is None or int(duration) <= 0:
            raise BusinessValidationError('Slot duration must be a positive number of minutes', duration=duration)
        self.start = parse_time(start)
        self.end = parse_time(end)
        self.duration = int(duration)

    def __iter__(self):
        current = self.start
        while current < self.end and current < MINUTES_PER_DAY:
            yield format_time(current)
            current += self.duration

    def __len__(self):
        if self.end <= self.start:
            return 0
        end = min(self.end, MINUTES_PER_DAY)
        return -(-(end - self.start) // self.duration)

    def __contains__(self, token):
        try:
            minutes = parse_time(token)
        except BusinessValidationError:
            return False
        return (
            self.start <= minutes < self.end
            and (minutes - self.start) % self.duration == 0
        )

    def __repr__(self):
        return f"TimeSlotGrid({format_time(self.start)!r}, {format_time(self.end)!r}, {self.duration})"


def day_name(on_date):
    """Lower-case weekday name as stored in DoctorAvailability.day_of_week."""
    return on_date.strftime('%A').lower()


def windows_for(doctor, on_date):
    return list(
        doctor.availability.filter(day_of_week=day_name(on_date)).order_by('start_time')
    )


def slot_grids(doctor, on_date):
    """One TimeSlotGrid per availability window on ``on_date``."""
    return [
        TimeSlotGrid(window.start_time, window.end_time, doctor.slot_duration)
        for window in windows_for(doctor, on_date)
    ]


def is_valid_slot(doctor, on_date, token):
    """True when ``token`` is on the doctor's grid for ``on_date``."""
    return any(token in grid for grid in slot_grids(doctor, on_date))


def booked_times(doctor, on_date, exclude_pk=None):
    """Slot tokens taken by non-cancelled appointments."""
    from apps.appointments.models import Appointment

    queryset = Appointment.objects.active().filter(doctor=doctor, appointment_date=on_date)
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    return set(queryset.values_list('appointment_time', flat=True))


def available_slots(doctor, on_date):
    """
    Slot listing for a doctor on a date.

    Returns ``{available, date, day, slot_duration, slots: [{time, is_booked}]}``;
    when the doctor has no window that day (or is marked unavailable),
    ``available`` is False, ``slots`` is empty and ``message`` says why.
    """
    day_display = on_date.strftime('%A')
    result = {
        'available': False,
        'date': on_date.isoformat(),
        'day': day_display,
        'slot_duration': doctor.slot_duration,
        'slots': [],
    }

    if not doctor.is_available:
        result['message'] = 'Doctor is not accepting appointments'
        return result

    grids = slot_grids(doctor, on_date)
    if not grids:
        result['message'] = f"Doctor is not available on {day_display}"
        return result

    taken = booked_times(doctor, on_date)
    seen = set()
    slots = []
    for grid in grids:
        for token in grid:
            if token in seen:
                continue
            seen.add(token)
            slots.append({'time': token, 'is_booked': token in taken})

    slots.sort(key=lambda slot: slot['time'])
    result['available'] = True
    result['slots'] = slots
    logger.debug(f"{len(slots)} slots for {doctor.doctor_id} on {on_date} ({len(taken)} booked)")
    return result
