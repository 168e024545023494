from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import AppointmentViewSet

router = SimpleRouter()
router.register(r'', AppointmentViewSet, basename='appointment')

urlpatterns = [
    path('', include(router.urls)),
]

# Available URLs:
# GET    /api/appointments/                    - List appointments
# POST   /api/appointments/                    - Book appointment
# GET    /api/appointments/today/              - Today's appointments
# GET    /api/appointments/stats/              - Today's statistics
# GET    /api/appointments/{id}/               - Appointment details
# PATCH  /api/appointments/{id}/               - Update details (type, symptoms, notes, is_paid)
# POST   /api/appointments/{id}/reschedule/    - Move to another slot
# POST   /api/appointments/{id}/confirm/       - SCHEDULED -> CONFIRMED
# POST   /api/appointments/{id}/complete/      - -> COMPLETED
# POST   /api/appointments/{id}/cancel/        - -> CANCELLED (reason required)
# POST   /api/appointments/{id}/no-show/       - -> NO_SHOW
